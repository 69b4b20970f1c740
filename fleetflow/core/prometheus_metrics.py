from prometheus_client import Counter, Histogram, Info, generate_latest
from prometheus_client.core import CollectorRegistry
import logging

logger = logging.getLogger(__name__)

# Prometheus Registry
REGISTRY = CollectorRegistry()

# Service Metrics
service_requests_total = Counter(
    'fleetflow_service_requests_total',
    'Total service method calls',
    ['status', 'service', 'method'],
    registry=REGISTRY
)

service_duration_seconds = Histogram(
    'fleetflow_service_duration_seconds',
    'Service method duration in seconds',
    ['service', 'method'],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0],
    registry=REGISTRY
)

# Dispatch Metrics
trip_transitions_total = Counter(
    'fleetflow_trip_transitions_total',
    'Committed trip status transitions',
    ['from_status', 'to_status'],
    registry=REGISTRY
)

guard_rejections_total = Counter(
    'fleetflow_guard_rejections_total',
    'Trip operations rejected by a guard or the transition table',
    ['error_type'],
    registry=REGISTRY
)

system_info = Info(
    'fleetflow_info',
    'System information',
    registry=REGISTRY
)


class PrometheusMetricsCollector:
    """Records dispatch and service metrics to the Prometheus registry"""

    def __init__(self):
        system_info.info({
            'version': '1.0.0',
            'service': 'fleetflow-dispatch'
        })

    def record_service_call(
        self,
        service_name: str,
        method_name: str,
        duration_seconds: float,
        success: bool
    ):
        status = 'success' if success else 'error'

        service_requests_total.labels(
            status=status,
            service=service_name,
            method=method_name
        ).inc()

        service_duration_seconds.labels(
            service=service_name,
            method=method_name
        ).observe(duration_seconds)

    def record_transition(self, from_status: str, to_status: str):
        trip_transitions_total.labels(
            from_status=from_status,
            to_status=to_status
        ).inc()

    def record_rejection(self, error_type: str):
        guard_rejections_total.labels(error_type=error_type).inc()

    def get_prometheus_metrics(self) -> bytes:
        """Get Prometheus metrics in text format"""
        return generate_latest(REGISTRY)

# Global instance
prometheus_collector = PrometheusMetricsCollector()
