from datetime import datetime, timezone
from unittest.mock import MagicMock

FIXED_NOW = datetime(2025, 6, 15, 9, 30, tzinfo=timezone.utc)
TODAY = FIXED_NOW.date()


def scalar_result(value):
    """Mimic the Result returned by AsyncSession.execute for a single-row lookup."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def scalars_result(values):
    result = MagicMock()
    result.scalars.return_value.all.return_value = values
    return result
