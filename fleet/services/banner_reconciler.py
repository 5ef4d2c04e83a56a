"""Banner status reconciliation: brings stored `active` flags in line with schedules.

Runs daily from Celery beat and on demand from the admin API. Safe to re-run at
any time: banners already in the expected state are left alone, so a second
run with no elapsed time writes nothing.
"""

import logging
import time
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Protocol

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from fleet.config.settings import get_settings
from fleet.database.models import BANNER_MODELS
from fleet.services.banner_schedule import (
    BannerSnapshot,
    is_override_active,
    is_within_schedule,
)
from fleet.services.clock import Clock, ensure_utc, utc_now

logger = logging.getLogger(__name__)


class BannerLoadError(Exception):
    """Raised when the candidate banners for a run cannot be loaded."""
    pass


class BannerStore(Protocol):
    table: str

    def list_scheduled_banners(self) -> list[BannerSnapshot]:
        ...

    def update_active(self, banner: BannerSnapshot, active: bool) -> bool:
        ...


class SqlBannerStore:
    """BannerStore over one banner table."""

    def __init__(self, db: Session, table: str):
        if table not in BANNER_MODELS:
            raise ValueError(f"Unknown banner table: {table}")
        self.db = db
        self.table = table
        self.model = BANNER_MODELS[table]

    def list_scheduled_banners(self) -> list[BannerSnapshot]:
        """Banners with at least one date bound. Unscheduled banners never need correcting."""
        rows = (
            self.db.query(self.model)
            .filter(or_(self.model.start_date.isnot(None), self.model.end_date.isnot(None)))
            .order_by(self.model.id.asc())
            .all()
        )
        return [BannerSnapshot.from_row(row) for row in rows]

    def update_active(self, banner: BannerSnapshot, active: bool) -> bool:
        """Write only the flag, and only if the row still matches the loaded snapshot.

        `manually_deactivated_at` belongs to administrators and is never written
        here. Returns False when the row was paused, toggled or deleted since it
        was read.
        """
        stamp = self.model.manually_deactivated_at
        try:
            result = self.db.execute(
                update(self.model)
                .where(
                    self.model.id == banner.id,
                    self.model.active == banner.active,
                    stamp.is_(None) if banner.manually_deactivated_at is None
                    else stamp == banner.manually_deactivated_at,
                )
                .values(active=active)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return result.rowcount > 0


@dataclass
class ReconciliationSummary:
    table: str
    activated: int = 0
    deactivated: int = 0
    skipped: int = 0  # held back by a manual override
    unchanged: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def writes(self) -> int:
        return self.activated + self.deactivated

    def to_dict(self) -> dict:
        return asdict(self)


def reconcile_banners(
    store: BannerStore,
    now: datetime,
    window_hours: float | None = None,
) -> ReconciliationSummary:
    """Correct every drifted banner in one table.

    `now` is evaluated once by the caller and shared by every record, so a run
    that straddles an override-window boundary still treats all records alike.
    Raises BannerLoadError if the candidates cannot be loaded. Individual write
    failures are collected into the summary and do not stop the run.
    """
    if window_hours is None:
        window_hours = get_settings().banner_override_window_hours
    now = ensure_utc(now)
    summary = ReconciliationSummary(table=store.table)

    try:
        banners = store.list_scheduled_banners()
    except Exception as exc:
        raise BannerLoadError(f"Fetch error for {store.table}: {exc}") from exc

    if not banners:
        logger.info("No scheduled banners found in %s", store.table)
        return summary

    logger.info("Processing %d banners from %s", len(banners), store.table)

    for banner in banners:
        expected = is_within_schedule(banner.start_date, banner.end_date, now)

        if banner.active == expected:
            summary.unchanged += 1
            continue

        if is_override_active(banner.manually_deactivated_at, now, window_hours):
            summary.skipped += 1
            logger.info("Skipping %s ID %s - recently manually deactivated", store.table, banner.id)
            continue

        try:
            updated = store.update_active(banner, expected)
        except Exception as exc:
            summary.errors.append(f"Update error for {store.table} ID {banner.id}: {exc}")
            logger.warning("Failed to update %s ID %s: %s", store.table, banner.id, exc)
            continue

        if not updated:
            summary.errors.append(
                f"Update error for {store.table} ID {banner.id}: not updated (changed or deleted since read)"
            )
            logger.warning("%s ID %s changed or was deleted during the run, not updated", store.table, banner.id)
            continue

        if expected:
            summary.activated += 1
            logger.info("Activated %s ID %s", store.table, banner.id)
        else:
            summary.deactivated += 1
            logger.info("Deactivated %s ID %s", store.table, banner.id)

    return summary


def run_banner_reconciliation(db: Session, clock: Clock = utc_now) -> dict:
    """Reconcile site banners then ad banners and build the run report."""
    settings = get_settings()
    now = ensure_utc(clock())
    started = time.monotonic()

    results = {}
    for table in BANNER_MODELS:
        store = SqlBannerStore(db, table)
        results[table] = reconcile_banners(store, now, settings.banner_override_window_hours)

    duration_ms = int((time.monotonic() - started) * 1000)
    totals = {
        "activated": sum(r.activated for r in results.values()),
        "deactivated": sum(r.deactivated for r in results.values()),
        "skipped": sum(r.skipped for r in results.values()),
        "errors": [e for r in results.values() for e in r.errors],
    }

    logger.info(
        "Banner status update: %d activated, %d deactivated, %d skipped, %d errors (%d ms)",
        totals["activated"], totals["deactivated"], totals["skipped"], len(totals["errors"]), duration_ms,
    )
    return {
        "success": True,
        "timestamp": now.isoformat(),
        "duration_ms": duration_ms,
        "results": {table: r.to_dict() for table, r in results.items()},
        "total": totals,
    }
