from sqlalchemy import Column, Integer, Float, Date, ForeignKey
from sqlalchemy.orm import relationship
from fleetflow.core.db import Base

class MaintenanceLog(Base):
    __tablename__ = "maintenance_logs"
    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    cost = Column(Float, nullable=False, default=0.0)
    performed_at = Column(Date, nullable=False)
    due_at = Column(Date, nullable=True, index=True)

    vehicle = relationship("Vehicle", back_populates="maintenance_logs")
