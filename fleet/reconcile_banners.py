"""
CLI tool to run banner status reconciliation once, outside Celery.

Usage:
    python -m fleet.reconcile_banners
    python -m fleet.reconcile_banners --at 2026-03-01T00:00:00Z

Prints the run report as JSON. Exits non-zero if the banners cannot be loaded
or any banner failed to update.
"""

import argparse
import json
import logging
import sys

from fleet.config.settings import get_settings
from fleet.database.db import SessionLocal
from fleet.services.banner_reconciler import BannerLoadError, run_banner_reconciliation
from fleet.services.banner_schedule import parse_banner_datetime
from fleet.services.clock import fixed_clock, utc_now


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Reconcile banner active flags with their schedules")
    parser.add_argument("--at", help="Evaluate schedules at this ISO 8601 instant instead of now")
    args = parser.parse_args(argv)

    logging.basicConfig(level=get_settings().log_level.upper())

    clock = utc_now
    if args.at:
        try:
            at = parse_banner_datetime(args.at)
        except ValueError:
            parser.error(f"invalid --at value: {args.at}")
        if at is None:
            parser.error("--at must not be blank")
        clock = fixed_clock(at)

    db = SessionLocal()
    try:
        report = run_banner_reconciliation(db, clock)
    except BannerLoadError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    finally:
        db.close()

    print(json.dumps(report, indent=2))
    return 1 if report["total"]["errors"] else 0


if __name__ == "__main__":
    sys.exit(main())
