from types import SimpleNamespace

from fleetflow.services import kpi


def fuel_log(liters, cost_per_liter=0.0, trip=None, odometer_km=None):
    return SimpleNamespace(
        liters=liters,
        cost_per_liter=cost_per_liter,
        trip_id=trip.id if trip else None,
        trip=trip,
        odometer_km=odometer_km,
    )


def trip(trip_id, distance_km):
    return SimpleNamespace(id=trip_id, distance_km=distance_km)


class TestFuelEfficiency:

    def test_linked_trip_distance(self):
        logs = [
            fuel_log(60, trip=trip(1, 250)),
            fuel_log(40, trip=trip(2, 150)),
        ]
        assert kpi.fuel_efficiency(logs) == 4.0

    def test_no_fuel_returns_none(self):
        assert kpi.fuel_efficiency([]) is None
        assert kpi.fuel_efficiency([fuel_log(0, trip=trip(1, 100))]) is None

    def test_trip_fueled_twice_counts_once(self):
        shared = trip(1, 300)
        logs = [fuel_log(30, trip=shared), fuel_log(30, trip=shared)]
        assert kpi.fuel_efficiency(logs) == 5.0

    def test_falls_back_to_odometer_delta(self):
        logs = [
            fuel_log(20, odometer_km=1000),
            fuel_log(25, odometer_km=None),
            fuel_log(15, odometer_km=1450),
        ]
        assert kpi.fuel_efficiency(logs) == round(450 / 60, 2)

    def test_single_odometer_reading_is_not_enough(self):
        assert kpi.fuel_efficiency([fuel_log(20, odometer_km=1000), fuel_log(10)]) is None

    def test_zero_distance_trips_fall_back_to_odometer(self):
        logs = [
            fuel_log(10, trip=trip(1, 0), odometer_km=100),
            fuel_log(10, odometer_km=300),
        ]
        assert kpi.fuel_efficiency(logs) == 10.0

    def test_decreasing_odometer_returns_none(self):
        logs = [fuel_log(10, odometer_km=500), fuel_log(10, odometer_km=400)]
        assert kpi.fuel_efficiency(logs) is None

    def test_rounds_to_two_decimals(self):
        assert kpi.fuel_efficiency([fuel_log(3, trip=trip(1, 10))]) == 3.33


class TestRoi:

    def test_roi(self):
        assert kpi.roi(50000, 8000, 2000, 100000) == 0.4

    def test_negative_roi(self):
        assert kpi.roi(1000, 3000, 0, 10000) == -0.2

    def test_no_acquisition_cost(self):
        assert kpi.roi(1000, 0, 0, 0) is None
        assert kpi.roi(1000, 0, 0, -5) is None
        assert kpi.roi(1000, 0, 0, None) is None

    def test_rounds_to_four_decimals(self):
        assert kpi.roi(1, 0, 0, 3) == 0.3333


def test_total_liters():
    logs = [fuel_log(10), fuel_log(20.5), fuel_log(None)]
    assert kpi.total_liters(logs) == 30.5


def test_cost_per_km():
    assert kpi.cost_per_km(300, 100, 200) == 2.0
    assert kpi.cost_per_km(300, 100, 0) is None


def test_utilization_rate():
    assert kpi.utilization_rate(1, 3) == 33.3
    assert kpi.utilization_rate(0, 4) == 0.0
    assert kpi.utilization_rate(0, 0) is None
