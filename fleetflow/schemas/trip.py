from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fleetflow.models.enums import TripStatus


class RouteInfo(BaseModel):
    distance_km: float = Field(0.0, ge=0, description="Planned distance in km")
    revenue: float = Field(0.0, ge=0)
    scheduled_at: Optional[datetime] = None


class TripCreateRequest(RouteInfo):
    vehicle_id: int
    driver_id: int
    cargo_weight_kg: float = Field(..., ge=0, description="Cargo weight in kg")

    def route_info(self) -> dict:
        return self.model_dump(include={"distance_km", "revenue", "scheduled_at"})


class TripUpdateRequest(BaseModel):
    vehicle_id: Optional[int] = None
    driver_id: Optional[int] = None
    cargo_weight_kg: Optional[float] = Field(None, ge=0)
    distance_km: Optional[float] = Field(None, ge=0)
    revenue: Optional[float] = Field(None, ge=0)
    scheduled_at: Optional[datetime] = None

    @field_validator("vehicle_id", "driver_id", "cargo_weight_kg", "distance_km", "revenue")
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    def patch(self) -> dict:
        return self.model_dump(exclude_unset=True)


class TripCompleteRequest(BaseModel):
    start_odometer: Optional[float] = Field(None, ge=0)
    end_odometer: Optional[float] = Field(None, ge=0)

    @field_validator("end_odometer")
    def end_after_start(cls, v, info):
        start = info.data.get("start_odometer")
        if v is not None and start is not None and v <= start:
            raise ValueError("end_odometer must be greater than start_odometer")
        return v


class TripOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: TripStatus
    vehicle_id: int
    driver_id: int
    cargo_weight_kg: float
    distance_km: float
    revenue: float
    scheduled_at: Optional[datetime] = None
    dispatched_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    start_odometer: Optional[float] = None
    end_odometer: Optional[float] = None
