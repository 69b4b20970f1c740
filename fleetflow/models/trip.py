from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from fleetflow.core.db import Base
from fleetflow.models.enums import TripStatus, status_column_type

class Trip(Base):
    __tablename__ = "trips"
    __table_args__ = (
        Index("ix_trips_vehicle_status", "vehicle_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    status = Column(status_column_type(TripStatus), nullable=False, default=TripStatus.DRAFT, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=False)
    cargo_weight_kg = Column(Float, nullable=False, default=0.0)
    distance_km = Column(Float, nullable=False, default=0.0)
    revenue = Column(Float, nullable=False, default=0.0)
    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    dispatched_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    start_odometer = Column(Float, nullable=True)
    end_odometer = Column(Float, nullable=True)

    vehicle = relationship("Vehicle", back_populates="trips")
    driver = relationship("Driver", back_populates="trips")
    fuel_logs = relationship("FuelLog", back_populates="trip")
