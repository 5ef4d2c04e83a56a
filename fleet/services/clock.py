"""Injectable time source. Everything that needs "now" takes a Clock."""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) and normalize aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def fixed_clock(instant: datetime) -> Clock:
    """Clock frozen at `instant`, for tests and replayed runs."""
    frozen = ensure_utc(instant)
    return lambda: frozen


def get_clock() -> Clock:
    """FastAPI dependency returning the wall clock. Tests override it."""
    return utc_now
