from datetime import date
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fleetflow.core.db import get_db
from fleetflow.core.prometheus_metrics import prometheus_collector
from fleetflow.schemas.metrics import DashboardOut, MaintenanceAlertsOut, VehicleMetricsOut
from fleetflow.services.metrics_service import MetricsService

router = APIRouter(prefix="/metrics", tags=["metrics"])

@router.get("/dashboard", response_model=DashboardOut)
async def dashboard(db: AsyncSession = Depends(get_db)):
    """Fleet KPIs for the dashboard, recomputed on every request"""
    return await MetricsService(db).dashboard_summary()


@router.get("/vehicles/{vehicle_id}", response_model=VehicleMetricsOut)
async def vehicle_metrics(vehicle_id: int, db: AsyncSession = Depends(get_db)):
    return await MetricsService(db).vehicle_summary(vehicle_id)


@router.get("/fleet/fuel-efficiency")
async def fleet_fuel_efficiency(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db: AsyncSession = Depends(get_db)
) -> Dict[int, Optional[float]]:
    return await MetricsService(db).fleet_fuel_efficiency(date_from, date_to)


@router.get("/fleet/roi")
async def fleet_roi(db: AsyncSession = Depends(get_db)) -> Dict[int, Optional[float]]:
    return await MetricsService(db).fleet_roi()


@router.get("/fleet/cost-per-km")
async def fleet_cost_per_km(db: AsyncSession = Depends(get_db)) -> Dict[int, Optional[float]]:
    return await MetricsService(db).fleet_cost_per_km()


@router.get("/maintenance-alerts", response_model=MaintenanceAlertsOut)
async def maintenance_alerts(
    due_soon_window_days: Optional[int] = Query(None, ge=0),
    db: AsyncSession = Depends(get_db)
):
    return await MetricsService(db).maintenance_alerts(due_soon_window_days=due_soon_window_days)


@router.get("/prometheus")  # Public endpoint for Prometheus scraping
async def prometheus_metrics():
    """Prometheus metrics endpoint for scraping"""
    return Response(content=prometheus_collector.get_prometheus_metrics(), media_type="text/plain")
