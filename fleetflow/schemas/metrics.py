from typing import Dict, Optional

from pydantic import BaseModel


class MaintenanceAlertsOut(BaseModel):
    overdue: int
    due_soon: int
    total: int


class VehicleMetricsOut(BaseModel):
    vehicle_id: int
    status: str
    fuel_efficiency_km_per_liter: Optional[float] = None
    roi: Optional[float] = None
    cost_per_km: Optional[float] = None


class DashboardOut(BaseModel):
    vehicle_count: int
    driver_count: int
    trip_draft_count: int
    trip_dispatched_count: int
    available_vehicle_count: int
    available_driver_count: int
    active_fleet: int
    utilization_rate: Optional[float] = None
    pending_trips: int
    maintenance_alerts: MaintenanceAlertsOut
    fleet_fuel_efficiency: Dict[int, Optional[float]]
    fleet_roi: Dict[int, Optional[float]]
