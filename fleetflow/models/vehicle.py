from sqlalchemy import Column, Integer, Float
from sqlalchemy.orm import relationship
from fleetflow.core.db import Base
from fleetflow.models.enums import VehicleStatus, status_column_type

class Vehicle(Base):
    __tablename__ = "vehicles"
    id = Column(Integer, primary_key=True, index=True)
    status = Column(status_column_type(VehicleStatus), nullable=False, default=VehicleStatus.AVAILABLE, index=True)
    capacity_kg = Column(Float, nullable=False)  # max cargo
    acquisition_cost = Column(Float, nullable=False, default=0.0)
    odometer_km = Column(Float, nullable=False, default=0.0)

    trips = relationship("Trip", back_populates="vehicle")
    fuel_logs = relationship("FuelLog", back_populates="vehicle")
    maintenance_logs = relationship("MaintenanceLog", back_populates="vehicle")
