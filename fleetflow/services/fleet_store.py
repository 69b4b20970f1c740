from datetime import date
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from fleetflow.models import (
    ACTIVE_TRIP_STATUSES,
    Driver,
    DriverStatus,
    FuelLog,
    MaintenanceLog,
    Trip,
    TripStatus,
    Vehicle,
    VehicleStatus,
)
from fleetflow.services.exceptions import DatabaseQueryError

T = TypeVar("T")


class FleetStore:
    """
    Entity store for vehicles, drivers, trips and their fuel/maintenance logs.

    Wraps an AsyncSession with the lookups the dispatch and metrics services
    need, plus the grouped counts the dashboard reads in a single query each.
    Lookups that feed a write can lock the row with SELECT ... FOR UPDATE
    and refresh any copy already held in the identity map, so guards always
    run against the committed state. SQLite ignores FOR UPDATE but serializes
    writers on its own.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get(self, model, entity_id: int, for_update: bool = False):
        stmt = select(model).where(model.id == entity_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        try:
            result = await self.db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))

    async def find_vehicle(self, vehicle_id: int, for_update: bool = False) -> Optional[Vehicle]:
        return await self._get(Vehicle, vehicle_id, for_update)

    async def find_driver(self, driver_id: int, for_update: bool = False) -> Optional[Driver]:
        return await self._get(Driver, driver_id, for_update)

    async def find_trip(self, trip_id: int, for_update: bool = False) -> Optional[Trip]:
        return await self._get(Trip, trip_id, for_update)

    async def list_active_trips_for_vehicle(
        self,
        vehicle_id: int,
        exclude_trip_id: Optional[int] = None
    ) -> List[Trip]:
        """Draft or dispatched trips holding the vehicle."""
        stmt = select(Trip).where(
            Trip.vehicle_id == vehicle_id,
            Trip.status.in_(ACTIVE_TRIP_STATUSES),
        )
        if exclude_trip_id is not None:
            stmt = stmt.where(Trip.id != exclude_trip_id)
        try:
            result = await self.db.execute(stmt.order_by(Trip.id))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))

    async def list_vehicles(self) -> List[Vehicle]:
        try:
            result = await self.db.execute(select(Vehicle).order_by(Vehicle.id))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))

    async def list_fuel_logs(
        self,
        vehicle_id: int,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None
    ) -> List[FuelLog]:
        """Fuel logs for a vehicle in fueling order, with their linked trip loaded."""
        stmt = (
            select(FuelLog)
            .where(FuelLog.vehicle_id == vehicle_id)
            .options(selectinload(FuelLog.trip))
            .order_by(FuelLog.fueled_at, FuelLog.id)
        )
        if date_from is not None:
            stmt = stmt.where(FuelLog.fueled_at >= date_from)
        if date_to is not None:
            stmt = stmt.where(FuelLog.fueled_at <= date_to)
        try:
            result = await self.db.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))

    async def list_maintenance_logs(self, vehicle_id: Optional[int] = None) -> List[MaintenanceLog]:
        stmt = select(MaintenanceLog).order_by(MaintenanceLog.performed_at, MaintenanceLog.id)
        if vehicle_id is not None:
            stmt = stmt.where(MaintenanceLog.vehicle_id == vehicle_id)
        try:
            result = await self.db.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))

    async def list_completed_trips(self, vehicle_id: int) -> List[Trip]:
        stmt = select(Trip).where(
            Trip.vehicle_id == vehicle_id,
            Trip.status == TripStatus.COMPLETED,
        )
        try:
            result = await self.db.execute(stmt.order_by(Trip.id))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))

    async def _count_by_status(self, status_column) -> Dict:
        stmt = select(status_column, func.count()).group_by(status_column)
        try:
            rows = (await self.db.execute(stmt)).all()
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))
        return {status: int(count) for status, count in rows}

    async def count_vehicles_by_status(self) -> Dict[VehicleStatus, int]:
        """One grouped query; statuses with no vehicles are absent."""
        return await self._count_by_status(Vehicle.status)

    async def count_trips_by_status(self) -> Dict[TripStatus, int]:
        return await self._count_by_status(Trip.status)

    async def count_drivers(self, today: date) -> Dict[str, int]:
        """Total drivers and those available with a license valid past `today`."""
        assignable = and_(
            Driver.status == DriverStatus.AVAILABLE,
            Driver.license_expires_at > today,
        )
        stmt = select(
            func.count(Driver.id).label("total"),
            func.sum(case((assignable, 1), else_=0)).label("assignable"),
        )
        try:
            row = (await self.db.execute(stmt)).one()
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))
        return {"total": int(row.total or 0), "assignable": int(row.assignable or 0)}

    async def maintenance_due_counts(self, today: date, due_soon_end: date) -> Dict[str, int]:
        """
        Overdue (due_at < today) and due-soon (today <= due_at <= due_soon_end)
        maintenance logs, counted in a single aggregate query.
        """
        stmt = (
            select(
                func.sum(case((MaintenanceLog.due_at < today, 1), else_=0)).label("overdue"),
                func.sum(
                    case(
                        (and_(MaintenanceLog.due_at >= today, MaintenanceLog.due_at <= due_soon_end), 1),
                        else_=0,
                    )
                ).label("due_soon"),
            )
            .where(MaintenanceLog.due_at.is_not(None))
        )
        try:
            row = (await self.db.execute(stmt)).one()
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))
        return {"overdue": int(row.overdue or 0), "due_soon": int(row.due_soon or 0)}

    async def run_in_transaction(self, fn: Callable[[], Awaitable[T]]) -> T:
        """
        Runs `fn` and commits its writes as one unit.

        Any exception rolls back everything `fn` did, including the row locks
        it took. Database errors surface as DatabaseQueryError; domain errors
        raised by guards inside `fn` propagate unchanged.
        """
        try:
            result = await fn()
            await self.db.commit()
            return result
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseQueryError(str(e)) from e
        except Exception:
            await self.db.rollback()
            raise
