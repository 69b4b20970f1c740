import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fleetflow.core.logging import setup_logging
from fleetflow.exceptions import domain_exception_handler
from fleetflow.routers import health, metrics, trips
from fleetflow.services.exceptions import FleetDomainError

setup_logging()

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="FleetFlow Dispatch API")

    # Register exception handler
    app.add_exception_handler(FleetDomainError, domain_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],   # Allows POST, GET, PATCH, DELETE, OPTIONS
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(trips.router)
    app.include_router(metrics.router)
    return app


app = create_app()
