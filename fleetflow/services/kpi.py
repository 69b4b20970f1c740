"""
Pure KPI math over raw fleet rows.

Nothing here touches the database: inputs are any objects exposing the
model attributes (ORM rows, SimpleNamespace fixtures, ...). Every value is
recomputed on each call and None means "not enough data", never zero.
"""

from typing import Iterable, Optional


def total_liters(fuel_logs: Iterable) -> float:
    return sum(float(log.liters or 0.0) for log in fuel_logs)


def total_fuel_cost(fuel_logs: Iterable) -> float:
    return sum(float(log.liters or 0.0) * float(log.cost_per_liter or 0.0) for log in fuel_logs)


def total_maintenance_cost(maintenance_logs: Iterable) -> float:
    return sum(float(log.cost or 0.0) for log in maintenance_logs)


def total_revenue(trips: Iterable) -> float:
    return sum(float(trip.revenue or 0.0) for trip in trips)


def total_distance(trips: Iterable) -> float:
    return sum(float(trip.distance_km or 0.0) for trip in trips)


def linked_trip_distance(fuel_logs: Iterable) -> float:
    """
    Sum of distance_km over the distinct trips the fuel logs point at.

    A trip fueled several times counts once, unlike a per-log sum.
    """
    seen = {}
    for log in fuel_logs:
        trip = getattr(log, "trip", None)
        if log.trip_id is not None and trip is not None:
            seen[log.trip_id] = float(trip.distance_km or 0.0)
    return sum(seen.values())


def odometer_distance(fuel_logs: Iterable) -> float:
    """
    Last minus first odometer reading among logs that carry one.

    Logs must already be in fueling order. Fewer than two readings
    yields 0.
    """
    readings = [float(log.odometer_km) for log in fuel_logs if log.odometer_km is not None]
    if len(readings) < 2:
        return 0.0
    return readings[-1] - readings[0]


def fuel_efficiency(fuel_logs) -> Optional[float]:
    """Kilometers per liter, rounded to 2 decimals."""
    logs = list(fuel_logs)
    liters = total_liters(logs)
    if liters <= 0:
        return None

    km = linked_trip_distance(logs)
    if km <= 0:
        km = odometer_distance(logs)
    if km <= 0:
        return None

    return round(km / liters, 2)


def roi(
    revenue: float,
    fuel_cost: float,
    maintenance_cost: float,
    acquisition_cost: Optional[float]
) -> Optional[float]:
    """(revenue - fuel - maintenance) / acquisition cost, rounded to 4 decimals."""
    if acquisition_cost is None or acquisition_cost <= 0:
        return None
    return round((revenue - fuel_cost - maintenance_cost) / acquisition_cost, 4)


def cost_per_km(fuel_cost: float, maintenance_cost: float, distance_km: float) -> Optional[float]:
    if distance_km is None or distance_km <= 0:
        return None
    return round((fuel_cost + maintenance_cost) / distance_km, 2)


def utilization_rate(in_use: int, total: int) -> Optional[float]:
    """Share of the fleet currently on a trip, as a percentage rounded to 1 decimal."""
    if total <= 0:
        return None
    return round(in_use / total * 100, 1)
