import enum

from sqlalchemy import Enum as SAEnum


class VehicleStatus(str, enum.Enum):
    AVAILABLE = "available"
    IN_USE = "in_use"
    IN_SHOP = "in_shop"
    OUT_OF_SERVICE = "out_of_service"


class DriverStatus(str, enum.Enum):
    AVAILABLE = "available"
    ON_TRIP = "on_trip"
    OFF_DUTY = "off_duty"
    SUSPENDED = "suspended"


class TripStatus(str, enum.Enum):
    DRAFT = "draft"
    DISPATCHED = "dispatched"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRIP_TRANSITIONS[self]

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_TRIP_STATUSES

    def can_transition_to(self, target: "TripStatus") -> bool:
        return target in ALLOWED_TRIP_TRANSITIONS[self]


# Single source of truth for the trip lifecycle
ALLOWED_TRIP_TRANSITIONS = {
    TripStatus.DRAFT: frozenset({TripStatus.DISPATCHED, TripStatus.CANCELLED}),
    TripStatus.DISPATCHED: frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED}),
    TripStatus.COMPLETED: frozenset(),
    TripStatus.CANCELLED: frozenset(),
}

ACTIVE_TRIP_STATUSES = (TripStatus.DRAFT, TripStatus.DISPATCHED)


def status_column_type(enum_cls):
    """Non-native SQL enum storing the member values ('in_use', not 'IN_USE')."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
