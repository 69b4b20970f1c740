from fastapi import Request
from fastapi.responses import JSONResponse

from fleetflow.services.exceptions import (
    AssignmentError,
    CapacityExceededError,
    DatabaseQueryError,
    FleetDomainError,
    InvalidTransitionError,
    NotFoundError,
    OdometerConsistencyError,
)

# Most specific first
DOMAIN_ERROR_STATUS = (
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
    (AssignmentError, 409),
    (CapacityExceededError, 422),
    (OdometerConsistencyError, 422),
    (DatabaseQueryError, 503),
)


def status_code_for(exc: FleetDomainError) -> int:
    for error_cls, status_code in DOMAIN_ERROR_STATUS:
        if isinstance(exc, error_cls):
            return status_code
    return 400


async def domain_exception_handler(request: Request, exc: FleetDomainError):
    return JSONResponse(
        status_code=status_code_for(exc),
        content={
            "success": False,
            "error_type": exc.__class__.__name__,
            "message": str(exc),
        },
    )
