# Alembic will detect models here
from .enums import VehicleStatus, DriverStatus, TripStatus, ALLOWED_TRIP_TRANSITIONS, ACTIVE_TRIP_STATUSES
from .vehicle import Vehicle
from .driver import Driver
from .trip import Trip
from .fuel_log import FuelLog
from .maintenance_log import MaintenanceLog
