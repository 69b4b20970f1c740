from sqlalchemy import Column, Integer, Float, Date, ForeignKey, Index
from sqlalchemy.orm import relationship
from fleetflow.core.db import Base

class FuelLog(Base):
    __tablename__ = "fuel_logs"
    __table_args__ = (
        Index("ix_fuel_logs_vehicle_fueled_at", "vehicle_id", "fueled_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=True)
    liters = Column(Float, nullable=False)
    cost_per_liter = Column(Float, nullable=False, default=0.0)
    odometer_km = Column(Float, nullable=True)
    fueled_at = Column(Date, nullable=False)

    vehicle = relationship("Vehicle", back_populates="fuel_logs")
    trip = relationship("Trip", back_populates="fuel_logs")
