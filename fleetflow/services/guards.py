"""
Assignability guards for trip creation, update and dispatch.

Every function here is pure: it inspects the entity it is given and either
returns or raises. Callers re-run them at each mutation point because vehicle,
driver and cargo state can change between steps.
"""

from datetime import date, datetime, timezone
from typing import Optional

from fleetflow.models.enums import DriverStatus, VehicleStatus
from fleetflow.services.exceptions import AssignmentError, CapacityExceededError


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def is_license_valid(driver, today: Optional[date] = None) -> bool:
    """
    A license is valid only if it expires strictly after today.

    Comparison is at day granularity, so a license expiring today is
    already invalid.
    """
    if driver.license_expires_at is None:
        return False
    today = _as_date(today) if today is not None else utc_today()
    return _as_date(driver.license_expires_at) > today


def ensure_vehicle_assignable(vehicle) -> None:
    if vehicle.status != VehicleStatus.AVAILABLE:
        raise AssignmentError(
            f"Vehicle {vehicle.id} cannot be assigned (status: {VehicleStatus(vehicle.status).value}). "
            "Only available vehicles can be assigned to trips."
        )


def ensure_driver_assignable(driver, today: Optional[date] = None) -> None:
    if driver.status != DriverStatus.AVAILABLE:
        raise AssignmentError(
            f"Driver {driver.id} cannot be assigned (status: {DriverStatus(driver.status).value})."
        )
    if not is_license_valid(driver, today):
        raise AssignmentError(
            f"Driver {driver.id} has an expired license (expires {driver.license_expires_at})."
        )


def validate_cargo_weight(vehicle, cargo_weight_kg: float) -> None:
    if cargo_weight_kg > vehicle.capacity_kg:
        raise CapacityExceededError(
            f"Cargo weight ({cargo_weight_kg} kg) exceeds vehicle {vehicle.id} capacity ({vehicle.capacity_kg} kg)."
        )
