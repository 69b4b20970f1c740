import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from sqlalchemy import inspect as sa_inspect, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

# Models
from fleetflow.models import Driver, DriverStatus, Trip, TripStatus, Vehicle, VehicleStatus

# Metrics
from fleetflow.core.metrics import track_performance
from fleetflow.core.prometheus_metrics import prometheus_collector

# Guards
from fleetflow.services.fleet_store import FleetStore
from fleetflow.services.guards import (
    ensure_driver_assignable,
    ensure_vehicle_assignable,
    validate_cargo_weight,
)

# Exceptions
from fleetflow.services.exceptions import (
    AssignmentError,
    CapacityExceededError,
    DatabaseQueryError,
    FleetDomainError,
    InvalidTransitionError,
    NotFoundError,
    OdometerConsistencyError,
)

logger = logging.getLogger(__name__)

ROUTE_FIELDS = ("distance_km", "revenue", "scheduled_at")
DRAFT_PATCH_FIELDS = ("vehicle_id", "driver_id", "cargo_weight_kg") + ROUTE_FIELDS
NULLABLE_PATCH_FIELDS = ("scheduled_at",)

_REJECTIONS = (
    InvalidTransitionError,
    AssignmentError,
    CapacityExceededError,
    OdometerConsistencyError,
    NotFoundError,
)

TripRef = Union[Trip, int]


class DispatchService:
    """
    Trip dispatch lifecycle: draft -> dispatched -> completed / cancelled.

    Each operation runs as one unit of work:
    - Trip, Vehicle and Driver rows are locked (SELECT ... FOR UPDATE) in that order
    - Guards are re-run against the locked, current state
    - Trip, Vehicle and Driver writes commit together or roll back together

    Vehicle.status and Driver.status are only ever written here, so they
    always mirror the trip that holds them.
    """

    def __init__(self, db: AsyncSession, clock: Optional[Callable[[], datetime]] = None):
        """
        Args:
            db (AsyncSession): Active SQLAlchemy async database session
            clock (callable, optional): Returns the current aware datetime.
                Defaults to UTC wall-clock time.
        """
        self.db = db
        self.store = FleetStore(db)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def now(self) -> datetime:
        return self._clock()

    @track_performance(service_name="DispatchService")
    async def get_trip(self, trip_id: int) -> Trip:
        trip = await self.store.find_trip(trip_id)
        if trip is None:
            raise NotFoundError(f"Trip {trip_id} not found.")
        return trip

    @track_performance(service_name="DispatchService")
    async def list_assignable_drivers(self, today=None) -> List[Driver]:
        """Drivers that are available and hold a license valid past today."""
        today = today or self.now().date()
        stmt = (
            select(Driver)
            .where(
                Driver.status == DriverStatus.AVAILABLE,
                Driver.license_expires_at > today,
            )
            .order_by(Driver.id)
        )
        try:
            result = await self.db.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))

    @track_performance(service_name="DispatchService")
    async def create_draft(
        self,
        vehicle_id: int,
        driver_id: int,
        cargo_weight_kg: float,
        route_info: Optional[Mapping[str, Any]] = None
    ) -> Trip:
        """
        Creates a trip in DRAFT after validating vehicle, driver and cargo.

        Args:
            vehicle_id (int): Vehicle to assign
            driver_id (int): Driver to assign
            cargo_weight_kg (float): Cargo weight, must fit the vehicle capacity
            route_info (mapping, optional): distance_km, revenue and scheduled_at

        Returns:
            Trip: The persisted draft trip

        Raises:
            NotFoundError: Vehicle or driver does not exist
            AssignmentError: Vehicle/driver not assignable, or vehicle already holds an active trip
            CapacityExceededError: Cargo exceeds the vehicle capacity
        """
        route = self._clean_fields(route_info or {}, ROUTE_FIELDS)

        async def _create():
            vehicle = await self._require_vehicle(vehicle_id)
            driver = await self._require_driver(driver_id)
            self._check_assignment(vehicle, driver, cargo_weight_kg)
            await self._ensure_vehicle_free(vehicle.id)

            trip = Trip(
                status=TripStatus.DRAFT,
                vehicle_id=vehicle.id,
                driver_id=driver.id,
                cargo_weight_kg=cargo_weight_kg,
                distance_km=route.get("distance_km", 0.0),
                revenue=route.get("revenue", 0.0),
                scheduled_at=route.get("scheduled_at"),
            )
            self.db.add(trip)
            await self.db.flush()
            return trip

        trip = await self._run(_create)
        logger.info(
            "Draft trip created",
            extra={'trip_id': trip.id, 'vehicle_id': trip.vehicle_id, 'driver_id': trip.driver_id}
        )
        return trip

    @track_performance(service_name="DispatchService")
    async def update_draft(self, trip: TripRef, patch: Mapping[str, Any]) -> Trip:
        """
        Applies `patch` to a DRAFT trip, re-validating the final vehicle,
        driver and cargo values. Any other status raises InvalidTransitionError.
        """
        changes = self._clean_fields(patch, DRAFT_PATCH_FIELDS)
        trip_id = self._trip_id(trip)

        async def _update():
            current = await self._require_trip(trip_id)
            if current.status != TripStatus.DRAFT:
                raise InvalidTransitionError(
                    f"Only draft trips can be updated (trip {current.id} is {current.status.value})."
                )

            vehicle = await self._require_vehicle(changes.get("vehicle_id", current.vehicle_id))
            driver = await self._require_driver(changes.get("driver_id", current.driver_id))
            cargo_weight_kg = changes.get("cargo_weight_kg", current.cargo_weight_kg)
            self._check_assignment(vehicle, driver, cargo_weight_kg)
            await self._ensure_vehicle_free(vehicle.id, exclude_trip_id=current.id)

            for field, value in changes.items():
                setattr(current, field, value)
            await self.db.flush()
            return current

        updated = await self._run(_update)
        logger.info("Draft trip updated", extra={'trip_id': updated.id, 'fields': sorted(changes)})
        return updated

    @track_performance(service_name="DispatchService")
    async def dispatch(self, trip: TripRef) -> Trip:
        """
        DRAFT -> DISPATCHED; vehicle -> IN_USE; driver -> ON_TRIP.

        Vehicle and driver are re-validated against their locked, current
        state since either may have changed after the draft was created.
        On any guard failure nothing is written.
        """
        trip_id = self._trip_id(trip)

        async def _dispatch():
            current = await self._require_trip(trip_id)
            self._ensure_transition(current, TripStatus.DISPATCHED)

            vehicle = await self._require_vehicle(current.vehicle_id)
            driver = await self._require_driver(current.driver_id)
            self._check_assignment(vehicle, driver, current.cargo_weight_kg)
            await self._ensure_vehicle_free(vehicle.id, exclude_trip_id=current.id)

            current.status = TripStatus.DISPATCHED
            current.dispatched_at = self.now()
            vehicle.status = VehicleStatus.IN_USE
            driver.status = DriverStatus.ON_TRIP
            await self.db.flush()
            return current

        dispatched = await self._run(_dispatch)
        self._record_transition(dispatched, TripStatus.DRAFT)
        return dispatched

    @track_performance(service_name="DispatchService")
    async def complete(
        self,
        trip: TripRef,
        start_odometer: Optional[float] = None,
        end_odometer: Optional[float] = None
    ) -> Trip:
        """
        DISPATCHED -> COMPLETED; vehicle and driver -> AVAILABLE.

        When odometer readings are supplied the trip distance becomes
        end - start and the vehicle odometer moves to `end_odometer`.
        A missing start reading defaults to the vehicle's recorded odometer.

        Raises:
            InvalidTransitionError: Trip is not dispatched
            OdometerConsistencyError: Readings do not strictly increase
        """
        trip_id = self._trip_id(trip)

        async def _complete():
            current = await self._require_trip(trip_id)
            self._ensure_transition(current, TripStatus.COMPLETED)

            vehicle = await self._require_vehicle(current.vehicle_id)
            driver = await self._require_driver(current.driver_id)

            if start_odometer is not None or end_odometer is not None:
                start, end = self._resolve_odometer(vehicle, start_odometer, end_odometer)
                current.start_odometer = start
                current.end_odometer = end
                current.distance_km = end - start
                vehicle.odometer_km = end

            current.status = TripStatus.COMPLETED
            current.completed_at = self.now()
            vehicle.status = VehicleStatus.AVAILABLE
            driver.status = DriverStatus.AVAILABLE
            await self.db.flush()
            return current

        completed = await self._run(_complete)
        self._record_transition(completed, TripStatus.DISPATCHED)
        return completed

    @track_performance(service_name="DispatchService")
    async def cancel(self, trip: TripRef) -> Trip:
        """
        DRAFT or DISPATCHED -> CANCELLED.

        Only a dispatched trip releases its vehicle and driver back to
        AVAILABLE; cancelling a draft touches nothing but the trip.
        """
        trip_id = self._trip_id(trip)
        prior = {}

        async def _cancel():
            current = await self._require_trip(trip_id)
            self._ensure_transition(current, TripStatus.CANCELLED)
            prior["status"] = current.status

            if current.status == TripStatus.DISPATCHED:
                vehicle = await self._require_vehicle(current.vehicle_id)
                driver = await self._require_driver(current.driver_id)
                vehicle.status = VehicleStatus.AVAILABLE
                driver.status = DriverStatus.AVAILABLE

            current.status = TripStatus.CANCELLED
            await self.db.flush()
            return current

        cancelled = await self._run(_cancel)
        self._record_transition(cancelled, prior["status"])
        return cancelled

    @track_performance(service_name="DispatchService")
    async def delete_draft(self, trip: TripRef) -> None:
        """Hard-deletes a draft trip. Trips that were ever dispatched are kept."""
        trip_id = self._trip_id(trip)

        async def _delete():
            current = await self._require_trip(trip_id)
            if current.status != TripStatus.DRAFT:
                raise InvalidTransitionError(
                    f"Only draft trips can be deleted (trip {current.id} is {current.status.value})."
                )
            await self.db.delete(current)
            await self.db.flush()

        await self._run(_delete)
        logger.info("Draft trip deleted", extra={'trip_id': trip_id})

    def handle_exception_core(self, e: Exception) -> dict:
        """
        Maps a domain error to the structured payload returned to callers.

        Anything that is not a FleetDomainError is a real failure and is re-raised.
        """
        if isinstance(e, FleetDomainError):
            return {
                "success": False,
                "error_type": e.__class__.__name__,
                "message": str(e)
            }

        raise e

    async def _run(self, fn):
        try:
            return await self.store.run_in_transaction(fn)
        except _REJECTIONS as e:
            prometheus_collector.record_rejection(e.__class__.__name__)
            logger.warning(
                f"Trip operation rejected: {e}",
                extra={'error_type': e.__class__.__name__}
            )
            raise

    async def _require_trip(self, trip_id: int) -> Trip:
        trip = await self.store.find_trip(trip_id, for_update=True)
        if trip is None:
            raise NotFoundError(f"Trip {trip_id} not found.")
        return trip

    async def _require_vehicle(self, vehicle_id: int) -> Vehicle:
        vehicle = await self.store.find_vehicle(vehicle_id, for_update=True)
        if vehicle is None:
            raise NotFoundError(f"Vehicle {vehicle_id} not found.")
        return vehicle

    async def _require_driver(self, driver_id: int) -> Driver:
        driver = await self.store.find_driver(driver_id, for_update=True)
        if driver is None:
            raise NotFoundError(f"Driver {driver_id} not found.")
        return driver

    def _check_assignment(self, vehicle: Vehicle, driver: Driver, cargo_weight_kg: float) -> None:
        ensure_vehicle_assignable(vehicle)
        ensure_driver_assignable(driver, today=self.now().date())
        validate_cargo_weight(vehicle, cargo_weight_kg)

    async def _ensure_vehicle_free(self, vehicle_id: int, exclude_trip_id: Optional[int] = None) -> None:
        active = await self.store.list_active_trips_for_vehicle(vehicle_id, exclude_trip_id=exclude_trip_id)
        if active:
            raise AssignmentError(
                f"Vehicle {vehicle_id} already has an active trip ({active[0].id}, {active[0].status.value})."
            )

    @staticmethod
    def _ensure_transition(trip: Trip, target: TripStatus) -> None:
        if not trip.status.can_transition_to(target):
            raise InvalidTransitionError(
                f"Cannot move trip {trip.id} from {trip.status.value} to {target.value}."
            )

    @staticmethod
    def _resolve_odometer(vehicle: Vehicle, start: Optional[float], end: Optional[float]):
        if end is None:
            raise OdometerConsistencyError("end_odometer is required when start_odometer is given.")
        if start is None:
            start = vehicle.odometer_km or 0.0
        if end <= start:
            raise OdometerConsistencyError(
                f"end_odometer ({end}) must be greater than start_odometer ({start})."
            )
        if vehicle.odometer_km is not None and end < vehicle.odometer_km:
            raise OdometerConsistencyError(
                f"end_odometer ({end}) is below vehicle {vehicle.id} recorded odometer ({vehicle.odometer_km})."
            )
        return start, end

    @staticmethod
    def _clean_fields(values: Mapping[str, Any], allowed) -> Dict[str, Any]:
        unknown = set(values) - set(allowed)
        if unknown:
            raise ValueError(f"Unsupported trip fields: {', '.join(sorted(unknown))}")
        for field, value in values.items():
            if value is None and field not in NULLABLE_PATCH_FIELDS:
                raise ValueError(f"Trip field '{field}' cannot be null.")
        return dict(values)

    @staticmethod
    def _trip_id(trip: TripRef) -> int:
        if isinstance(trip, int):
            return trip
        # Identity key survives the expiry a rollback applies to every loaded instance
        state = sa_inspect(trip, raiseerr=False)
        if state is not None and state.identity:
            return state.identity[0]
        return trip.id

    def _record_transition(self, trip: Trip, from_status: TripStatus) -> None:
        prometheus_collector.record_transition(from_status.value, trip.status.value)
        logger.info(
            f"Trip {trip.id} transitioned {from_status.value} -> {trip.status.value}",
            extra={
                'trip_id': trip.id,
                'vehicle_id': trip.vehicle_id,
                'driver_id': trip.driver_id,
                'from_status': from_status.value,
                'to_status': trip.status.value,
            }
        )
