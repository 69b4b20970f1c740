"""
Pytest configuration and shared fixtures for the FleetFlow dispatch test suite.

This module provides:
- Database fixtures (in-memory SQLite for fast tests)
- Entity factories for vehicles, drivers, trips and logs
- A fixed clock for deterministic license checks and timestamps
"""

import os

# Point the engine at SQLite before fleetflow.core.db is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import date, timedelta
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fleetflow.core.db import Base
from fleetflow.models import (
    Driver,
    DriverStatus,
    FuelLog,
    MaintenanceLog,
    Trip,
    TripStatus,
    Vehicle,
    VehicleStatus,
)
from fleetflow.tests.helpers import FIXED_NOW, TODAY


# Test Database Configuration
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def async_engine():
    """Create async engine for testing with in-memory SQLite."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for testing."""
    async_session = async_sessionmaker(async_engine, expire_on_commit=False)

    async with async_session() as session:
        yield session


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


# Test Data Factories
@pytest.fixture
def make_vehicle(async_db_session):
    async def _make(
        capacity_kg: float = 5000,
        status: VehicleStatus = VehicleStatus.AVAILABLE,
        acquisition_cost: float = 0.0,
        odometer_km: float = 0.0,
    ) -> Vehicle:
        vehicle = Vehicle(
            capacity_kg=capacity_kg,
            status=status,
            acquisition_cost=acquisition_cost,
            odometer_km=odometer_km,
        )
        async_db_session.add(vehicle)
        await async_db_session.commit()
        await async_db_session.refresh(vehicle)
        return vehicle
    return _make


@pytest.fixture
def make_driver(async_db_session):
    async def _make(
        license_expires_at: date = TODAY + timedelta(days=365),
        status: DriverStatus = DriverStatus.AVAILABLE,
    ) -> Driver:
        driver = Driver(license_expires_at=license_expires_at, status=status)
        async_db_session.add(driver)
        await async_db_session.commit()
        await async_db_session.refresh(driver)
        return driver
    return _make


@pytest.fixture
def make_trip(async_db_session):
    """Insert a trip row directly, bypassing the state machine."""
    async def _make(vehicle, driver, status=TripStatus.COMPLETED, **fields) -> Trip:
        trip = Trip(
            vehicle_id=vehicle.id,
            driver_id=driver.id,
            status=status,
            cargo_weight_kg=fields.pop("cargo_weight_kg", 1000),
            **fields,
        )
        async_db_session.add(trip)
        await async_db_session.commit()
        await async_db_session.refresh(trip)
        return trip
    return _make


@pytest.fixture
def make_fuel_log(async_db_session):
    async def _make(vehicle, liters, cost_per_liter=0.0, fueled_at=TODAY, trip=None, odometer_km=None) -> FuelLog:
        log = FuelLog(
            vehicle_id=vehicle.id,
            trip=trip,
            liters=liters,
            cost_per_liter=cost_per_liter,
            odometer_km=odometer_km,
            fueled_at=fueled_at,
        )
        async_db_session.add(log)
        await async_db_session.commit()
        return log
    return _make


@pytest.fixture
def make_maintenance_log(async_db_session):
    async def _make(vehicle, cost=0.0, performed_at=TODAY, due_at=None) -> MaintenanceLog:
        log = MaintenanceLog(
            vehicle_id=vehicle.id,
            cost=cost,
            performed_at=performed_at,
            due_at=due_at,
        )
        async_db_session.add(log)
        await async_db_session.commit()
        return log
    return _make


# Common Test Doubles
@pytest.fixture
def mock_async_session():
    """Provide a reusable AsyncSession-like test double.

    - `add` is a `MagicMock` (synchronous)
    - `flush`, `commit`, `rollback`, `refresh`, `execute`, `delete` are `AsyncMock`
    Tests can override `execute.side_effect` / `commit.side_effect` as needed.
    """
    session = AsyncMock()
    session.add = MagicMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.execute = AsyncMock()
    session.delete = AsyncMock()
    return session

