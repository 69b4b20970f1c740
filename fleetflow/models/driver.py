from sqlalchemy import Column, Integer, Date
from sqlalchemy.orm import relationship
from fleetflow.core.db import Base
from fleetflow.models.enums import DriverStatus, status_column_type

class Driver(Base):
    __tablename__ = "drivers"
    id = Column(Integer, primary_key=True, index=True)
    status = Column(status_column_type(DriverStatus), nullable=False, default=DriverStatus.AVAILABLE, index=True)
    license_expires_at = Column(Date, nullable=False)

    trips = relationship("Trip", back_populates="driver")
