from datetime import date, timedelta
from typing import Dict, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

# Models
from fleetflow.models import TripStatus, Vehicle, VehicleStatus

# Metrics
from fleetflow.core.environment import get_maintenance_due_soon_days
from fleetflow.core.metrics import track_performance

from fleetflow.services import kpi
from fleetflow.services.fleet_store import FleetStore
from fleetflow.services.guards import utc_today

# Exceptions
from fleetflow.services.exceptions import NotFoundError

VehicleRef = Union[Vehicle, int]


class MetricsService:
    """
    Read-only fleet KPIs computed on demand from raw rows.

    Nothing is written and nothing is cached: fuel efficiency, ROI and cost
    per km are derived on every call from the fuel logs, maintenance logs
    and completed trips the store lists, using the pure functions in `kpi`.
    Status counts and maintenance alerts come from the store's grouped
    queries instead of per-row iteration.

    The store is injectable, so any object exposing the same read methods
    (an in-memory fake in tests) can stand in for the database.
    """

    def __init__(self, db: Optional[AsyncSession] = None, store: Optional[FleetStore] = None):
        """
        Args:
            db (AsyncSession, optional): Session used to build the default store
            store (FleetStore, optional): Read-only repository to query instead
        """
        self.db = db
        self.store = store or FleetStore(db)

    async def _resolve_vehicle(self, vehicle: VehicleRef) -> Vehicle:
        if not isinstance(vehicle, int):
            return vehicle
        found = await self.store.find_vehicle(vehicle)
        if found is None:
            raise NotFoundError(f"Vehicle {vehicle} not found.")
        return found

    @track_performance(service_name="MetricsService")
    async def fuel_efficiency(
        self,
        vehicle: VehicleRef,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None
    ) -> Optional[float]:
        """
        Kilometers per liter for a vehicle over an optional fueling window.

        Distance comes from the trips linked to the fuel logs, falling back
        to the odometer delta across logs that recorded one.

        Returns:
            float | None: km/L rounded to 2 decimals, or None without fuel or distance data
        """
        vehicle = await self._resolve_vehicle(vehicle)
        logs = await self.store.list_fuel_logs(vehicle.id, date_from, date_to)
        return kpi.fuel_efficiency(logs)

    @track_performance(service_name="MetricsService")
    async def vehicle_roi(self, vehicle: VehicleRef) -> Optional[float]:
        """
        (completed-trip revenue - fuel cost - maintenance cost) / acquisition cost.

        Returns:
            float | None: ROI rounded to 4 decimals, or None without an acquisition cost
        """
        vehicle = await self._resolve_vehicle(vehicle)
        if not vehicle.acquisition_cost or vehicle.acquisition_cost <= 0:
            return None

        revenue = kpi.total_revenue(await self.store.list_completed_trips(vehicle.id))
        fuel_cost = kpi.total_fuel_cost(await self.store.list_fuel_logs(vehicle.id))
        maintenance_cost = kpi.total_maintenance_cost(await self.store.list_maintenance_logs(vehicle.id))
        return kpi.roi(revenue, fuel_cost, maintenance_cost, vehicle.acquisition_cost)

    @track_performance(service_name="MetricsService")
    async def cost_per_km(self, vehicle: VehicleRef) -> Optional[float]:
        """Operating cost (fuel + maintenance) per completed-trip kilometer."""
        vehicle = await self._resolve_vehicle(vehicle)
        distance = kpi.total_distance(await self.store.list_completed_trips(vehicle.id))
        if distance <= 0:
            return None
        fuel_cost = kpi.total_fuel_cost(await self.store.list_fuel_logs(vehicle.id))
        maintenance_cost = kpi.total_maintenance_cost(await self.store.list_maintenance_logs(vehicle.id))
        return kpi.cost_per_km(fuel_cost, maintenance_cost, distance)

    @track_performance(service_name="MetricsService")
    async def fleet_fuel_efficiency(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None
    ) -> Dict[int, Optional[float]]:
        return {
            v.id: await self.fuel_efficiency(v, date_from, date_to)
            for v in await self.store.list_vehicles()
        }

    @track_performance(service_name="MetricsService")
    async def fleet_roi(self) -> Dict[int, Optional[float]]:
        return {v.id: await self.vehicle_roi(v) for v in await self.store.list_vehicles()}

    @track_performance(service_name="MetricsService")
    async def fleet_cost_per_km(self) -> Dict[int, Optional[float]]:
        return {v.id: await self.cost_per_km(v) for v in await self.store.list_vehicles()}

    @track_performance(service_name="MetricsService")
    async def vehicle_summary(self, vehicle_id: int) -> Dict:
        vehicle = await self._resolve_vehicle(vehicle_id)
        return {
            "vehicle_id": vehicle.id,
            "status": VehicleStatus(vehicle.status).value,
            "fuel_efficiency_km_per_liter": await self.fuel_efficiency(vehicle),
            "roi": await self.vehicle_roi(vehicle),
            "cost_per_km": await self.cost_per_km(vehicle),
        }

    @staticmethod
    def _zero_filled(raw_counts, enum_cls) -> Dict[str, int]:
        counts = {member.value: 0 for member in enum_cls}
        for status, count in raw_counts.items():
            counts[enum_cls(status).value] = int(count)
        counts["total"] = sum(counts.values())
        return counts

    @track_performance(service_name="MetricsService")
    async def vehicle_counts_by_status(self) -> Dict[str, int]:
        """Vehicles per status value, every status present, plus 'total'."""
        return self._zero_filled(await self.store.count_vehicles_by_status(), VehicleStatus)

    @track_performance(service_name="MetricsService")
    async def trip_counts_by_status(self) -> Dict[str, int]:
        """Trips per status value, every status present, plus 'total'."""
        return self._zero_filled(await self.store.count_trips_by_status(), TripStatus)

    @track_performance(service_name="MetricsService")
    async def maintenance_alerts(
        self,
        today: Optional[date] = None,
        due_soon_window_days: Optional[int] = None
    ) -> Dict[str, int]:
        """
        Overdue (due_at < today) and due-soon (today <= due_at <= today + window)
        maintenance. The window defaults to MAINTENANCE_DUE_SOON_DAYS.
        """
        today = today or utc_today()
        if due_soon_window_days is None:
            due_soon_window_days = get_maintenance_due_soon_days()

        counts = await self.store.maintenance_due_counts(today, today + timedelta(days=due_soon_window_days))
        return {
            "overdue": counts["overdue"],
            "due_soon": counts["due_soon"],
            "total": counts["overdue"] + counts["due_soon"],
        }

    @track_performance(service_name="MetricsService")
    async def utilization_rate(self) -> Optional[float]:
        counts = await self.vehicle_counts_by_status()
        return kpi.utilization_rate(counts[VehicleStatus.IN_USE.value], counts["total"])

    @track_performance(service_name="MetricsService")
    async def dashboard_summary(self, today: Optional[date] = None) -> Dict:
        """
        Fleet dashboard KPIs, all computed on demand:
        vehicle/driver counts, pending trips, utilization, maintenance
        alerts and per-vehicle fuel efficiency and ROI.
        """
        today = today or utc_today()
        vehicles = await self.vehicle_counts_by_status()
        trips = await self.trip_counts_by_status()
        drivers = await self.store.count_drivers(today)

        return {
            "vehicle_count": vehicles["total"],
            "driver_count": drivers["total"],
            "trip_draft_count": trips[TripStatus.DRAFT.value],
            "trip_dispatched_count": trips[TripStatus.DISPATCHED.value],
            "available_vehicle_count": vehicles[VehicleStatus.AVAILABLE.value],
            "available_driver_count": drivers["assignable"],
            "active_fleet": vehicles["total"] - vehicles[VehicleStatus.OUT_OF_SERVICE.value],
            "utilization_rate": kpi.utilization_rate(vehicles[VehicleStatus.IN_USE.value], vehicles["total"]),
            "pending_trips": trips[TripStatus.DRAFT.value] + trips[TripStatus.DISPATCHED.value],
            "maintenance_alerts": await self.maintenance_alerts(today=today),
            "fleet_fuel_efficiency": await self.fleet_fuel_efficiency(),
            "fleet_roi": await self.fleet_roi(),
        }
