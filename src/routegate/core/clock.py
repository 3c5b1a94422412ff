"""Wall-clock access, injectable for tests."""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Get the current time in UTC."""
    return datetime.now(UTC)
