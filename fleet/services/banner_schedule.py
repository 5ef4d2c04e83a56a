"""Banner scheduling rules: lifecycle status, display eligibility, date validation,
and the manual-override guard.

All functions are pure. They read a banner snapshot (an ORM row or a
BannerSnapshot) plus an explicit `now` and never touch storage. Every
date-driven decision goes through `_schedule_phase` so status, display and
reconciliation cannot disagree about a boundary instant.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol

from fleet.services.clock import ensure_utc

DEFAULT_OVERRIDE_WINDOW_HOURS = 24


class BannerStatus(str, Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    EXPIRED = "expired"
    PAUSED = "paused"
    NO_SCHEDULE = "no_schedule"


# Statuses in which an enabled banner is live for end users
LIVE_STATUSES = frozenset({BannerStatus.ACTIVE, BannerStatus.NO_SCHEDULE})

STATUS_LABELS = {
    BannerStatus.SCHEDULED: "Scheduled",
    BannerStatus.ACTIVE: "Active",
    BannerStatus.EXPIRED: "Expired",
    BannerStatus.PAUSED: "Paused",
    BannerStatus.NO_SCHEDULE: "Always Active",
}


class ScheduledBanner(Protocol):
    """Anything carrying the four temporal fields (SiteBanner, AdBanner, BannerSnapshot)."""

    active: bool
    start_date: datetime | None
    end_date: datetime | None
    manually_deactivated_at: datetime | None


@dataclass(frozen=True)
class BannerSnapshot:
    """Immutable copy of a banner's temporal state."""

    id: int
    active: bool
    start_date: datetime | None = None
    end_date: datetime | None = None
    manually_deactivated_at: datetime | None = None

    @classmethod
    def from_row(cls, row) -> "BannerSnapshot":
        return cls(
            id=row.id,
            active=bool(row.active),
            start_date=ensure_utc(row.start_date),
            end_date=ensure_utc(row.end_date),
            manually_deactivated_at=ensure_utc(row.manually_deactivated_at),
        )


def _schedule_phase(
    start_date: datetime | None, end_date: datetime | None, now: datetime
) -> BannerStatus:
    """Where `now` sits relative to the date bounds, ignoring the active flag.

    The start bound is inclusive, the end bound exclusive.
    """
    start = ensure_utc(start_date)
    end = ensure_utc(end_date)
    now = ensure_utc(now)

    if start is None and end is None:
        return BannerStatus.NO_SCHEDULE
    if start is not None and now < start:
        return BannerStatus.SCHEDULED
    if end is not None and now >= end:
        return BannerStatus.EXPIRED
    return BannerStatus.ACTIVE


def calculate_banner_status(banner: ScheduledBanner, now: datetime) -> BannerStatus:
    """Lifecycle status shown on the admin badge.

    A disabled banner is always `paused`, whether or not its schedule is
    currently live. Otherwise the schedule decides.
    """
    if not banner.active:
        return BannerStatus.PAUSED
    return _schedule_phase(banner.start_date, banner.end_date, now)


def is_banner_displayable(banner: ScheduledBanner, now: datetime) -> bool:
    """Whether end users should see the banner at `now`."""
    return calculate_banner_status(banner, now) in LIVE_STATUSES


def is_within_schedule(
    start_date: datetime | None, end_date: datetime | None, now: datetime
) -> bool:
    """Whether the schedule alone says the banner should be on."""
    return _schedule_phase(start_date, end_date, now) in LIVE_STATUSES


def is_override_active(
    deactivated_at: datetime | None,
    now: datetime,
    window_hours: float = DEFAULT_OVERRIDE_WINDOW_HOURS,
) -> bool:
    """True while a manual deactivation is younger than `window_hours`."""
    if deactivated_at is None:
        return False
    return ensure_utc(now) - ensure_utc(deactivated_at) < timedelta(hours=window_hours)


def apply_manual_active(banner: ScheduledBanner, active: bool, now: datetime) -> None:
    """Record an administrator's explicit on/off decision on an ORM row.

    Deactivating stamps `manually_deactivated_at` so reconciliation leaves the
    banner alone for the override window. Reactivating clears it. Re-sending
    the current value keeps the existing stamp.
    """
    if active:
        banner.manually_deactivated_at = None
    elif banner.active or banner.manually_deactivated_at is None:
        banner.manually_deactivated_at = ensure_utc(now)
    banner.active = active


def parse_banner_datetime(value: str | datetime | None) -> datetime | None:
    """Parse an ISO 8601 bound. Blank means "no bound". Raises ValueError when malformed."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def validate_banner_dates(
    start_date: str | datetime | None, end_date: str | datetime | None
) -> str | None:
    """Return an error message for an unusable date range, or None if it is fine."""
    if not start_date or not end_date:
        return None

    try:
        start = parse_banner_datetime(start_date)
    except ValueError:
        return "Invalid start date"
    try:
        end = parse_banner_datetime(end_date)
    except ValueError:
        return "Invalid end date"

    if start is None or end is None:
        return None
    if end <= start:
        return "End date must be after start date"
    return None


def _format_day(value: datetime) -> str:
    value = ensure_utc(value)
    return f"{value:%b} {value.day}, {value.year}"


def get_banner_schedule_text(start_date: datetime | None, end_date: datetime | None) -> str:
    if start_date is None and end_date is None:
        return "Always active (no schedule)"
    if start_date is not None and end_date is not None:
        return f"{_format_day(start_date)} - {_format_day(end_date)}"
    if start_date is not None:
        return f"Starts {_format_day(start_date)}"
    return f"Ends {_format_day(end_date)}"


def get_banner_status_label(status: BannerStatus) -> str:
    return STATUS_LABELS.get(status, "Unknown")
