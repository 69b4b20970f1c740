class RetryableException(Exception):
    """Exception for errors that can be retried (write conflicts, temporary database unavailability)."""

class FatalException(Exception):
    """Exception for non-recoverable errors (validation errors, business rule violations)."""

class FleetDomainError(Exception):
    """Base class for all dispatch and metrics domain errors."""

class NotFoundError(FleetDomainError, FatalException):
    """Raised when a referenced vehicle, driver or trip does not exist."""

class InvalidTransitionError(FleetDomainError, FatalException):
    """Raised when a trip status change is not in the allowed transition table."""

class AssignmentError(FleetDomainError, FatalException):
    """Raised when a vehicle or driver cannot be assigned to a trip."""

class CapacityExceededError(FleetDomainError, FatalException):
    """Raised when cargo weight exceeds the vehicle's capacity."""

class OdometerConsistencyError(FleetDomainError, FatalException):
    """Raised when odometer readings do not strictly increase."""

class DatabaseQueryError(FleetDomainError, RetryableException):
    """Raised when a database query or commit fails; the whole operation may be retried."""
