import logging

import pytest

from fleetflow.core import environment
from fleetflow.core.logging import setup_logging


def test_database_url_switches_in_production(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///dev.db")
    monkeypatch.setenv("DATABASE_URL_PROD", "postgresql+asyncpg://prod/fleetflow")

    monkeypatch.setenv("PRODUCTION", "false")
    assert environment.get_database_url() == "sqlite+aiosqlite:///dev.db"

    monkeypatch.setenv("PRODUCTION", "TRUE")
    assert environment.get_database_url() == "postgresql+asyncpg://prod/fleetflow"


def test_production_without_database_url_fails_clearly(monkeypatch):
    monkeypatch.setenv("PRODUCTION", "true")
    monkeypatch.delenv("DATABASE_URL_PROD", raising=False)

    with pytest.raises(RuntimeError, match="DATABASE_URL_PROD"):
        environment.get_database_url()


def test_maintenance_window_default(monkeypatch):
    monkeypatch.delenv("MAINTENANCE_DUE_SOON_DAYS", raising=False)
    assert environment.get_maintenance_due_soon_days() == 7

    monkeypatch.setenv("MAINTENANCE_DUE_SOON_DAYS", "14")
    assert environment.get_maintenance_due_soon_days() == 14


def test_setup_logging_installs_single_json_handler(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")

    setup_logging()
    setup_logging()

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert type(root.handlers[0].formatter).__name__ == "JsonFormatter"
    assert logging.getLogger("fleetflow").level == logging.DEBUG
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
