import pytest

from fleetflow.core.metrics import track_performance
from fleetflow.core.prometheus_metrics import REGISTRY, prometheus_collector


def sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


class Doubler:

    @track_performance()
    async def ok(self, value):
        return value * 2

    @track_performance(service_name="DoublerService")
    async def fails(self):
        raise RuntimeError("boom")


@pytest.mark.asyncio
async def test_success_is_counted_under_class_name():
    before = sample("fleetflow_service_requests_total", status="success", service="Doubler", method="ok")

    assert await Doubler().ok(21) == 42

    after = sample("fleetflow_service_requests_total", status="success", service="Doubler", method="ok")
    assert after == before + 1


@pytest.mark.asyncio
async def test_failure_is_counted_and_reraised():
    before = sample("fleetflow_service_requests_total", status="error", service="DoublerService", method="fails")

    with pytest.raises(RuntimeError):
        await Doubler().fails()

    after = sample("fleetflow_service_requests_total", status="error", service="DoublerService", method="fails")
    assert after == before + 1


def test_wraps_preserves_metadata():
    assert Doubler.ok.__name__ == "ok"
    assert hasattr(Doubler.ok, "__wrapped__")


def test_transition_and_rejection_counters():
    before_t = sample("fleetflow_trip_transitions_total", from_status="draft", to_status="dispatched")
    before_r = sample("fleetflow_guard_rejections_total", error_type="AssignmentError")

    prometheus_collector.record_transition("draft", "dispatched")
    prometheus_collector.record_rejection("AssignmentError")

    assert sample("fleetflow_trip_transitions_total", from_status="draft", to_status="dispatched") == before_t + 1
    assert sample("fleetflow_guard_rejections_total", error_type="AssignmentError") == before_r + 1


def test_exposition_contains_fleet_metrics():
    text = prometheus_collector.get_prometheus_metrics().decode()

    assert "fleetflow_trip_transitions_total" in text
    assert "fleetflow_info" in text
