from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fleetflow.core.db import get_db
from fleetflow.schemas.trip import (
    TripCompleteRequest,
    TripCreateRequest,
    TripOut,
    TripUpdateRequest,
)
from fleetflow.services.dispatch_service import DispatchService


router = APIRouter(prefix="/trips", tags=["trips"])

# Domain errors raised below are translated by the handler registered in main.py

@router.post("", response_model=TripOut, status_code=201)
async def create_trip(req: TripCreateRequest, db: AsyncSession = Depends(get_db)):
    svc = DispatchService(db)
    return await svc.create_draft(
        vehicle_id=req.vehicle_id,
        driver_id=req.driver_id,
        cargo_weight_kg=req.cargo_weight_kg,
        route_info=req.route_info(),
    )

@router.get("/{trip_id}", response_model=TripOut)
async def get_trip(trip_id: int, db: AsyncSession = Depends(get_db)):
    return await DispatchService(db).get_trip(trip_id)

@router.patch("/{trip_id}", response_model=TripOut)
async def update_trip(trip_id: int, req: TripUpdateRequest, db: AsyncSession = Depends(get_db)):
    return await DispatchService(db).update_draft(trip_id, req.patch())

@router.delete("/{trip_id}", status_code=204)
async def delete_trip(trip_id: int, db: AsyncSession = Depends(get_db)):
    await DispatchService(db).delete_draft(trip_id)
    return Response(status_code=204)

@router.post("/{trip_id}/dispatch", response_model=TripOut)
async def dispatch_trip(trip_id: int, db: AsyncSession = Depends(get_db)):
    return await DispatchService(db).dispatch(trip_id)

@router.post("/{trip_id}/complete", response_model=TripOut)
async def complete_trip(
    trip_id: int,
    req: Optional[TripCompleteRequest] = None,
    db: AsyncSession = Depends(get_db)
):
    req = req or TripCompleteRequest()
    return await DispatchService(db).complete(
        trip_id,
        start_odometer=req.start_odometer,
        end_odometer=req.end_odometer,
    )

@router.post("/{trip_id}/cancel", response_model=TripOut)
async def cancel_trip(trip_id: int, db: AsyncSession = Depends(get_db)):
    return await DispatchService(db).cancel(trip_id)
