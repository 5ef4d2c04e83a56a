"""
Seed the database with demo banners covering every schedule status.

Dates are relative to the moment the script runs, so a fresh seed always shows
one scheduled, one live, one expired, one paused and one unscheduled banner.
Run: python -m fleet.seed_data
"""

from datetime import timedelta
from fleet.database.db import init_db, SessionLocal
from fleet.database.models import SiteBanner, AdBanner
from fleet.services.clock import utc_now


def _demo_banners(now):
    return [
        {"image_url": "https://cdn.fleetapp.me/banners/spring-sale.jpg", "redirect_to": "/cars?tag=spring",
         "start_date": now - timedelta(days=3), "end_date": now + timedelta(days=11)},
        {"image_url": "https://cdn.fleetapp.me/banners/ev-week.jpg", "redirect_to": "/cars?fuel=electric",
         "start_date": now + timedelta(days=7), "end_date": now + timedelta(days=14)},
        {"image_url": "https://cdn.fleetapp.me/banners/winter-tires.jpg", "redirect_to": "/dealerships",
         "start_date": now - timedelta(days=60), "end_date": now - timedelta(days=30)},
        {"image_url": "https://cdn.fleetapp.me/banners/financing.jpg", "redirect_to": "/features",
         "active": False, "manually_deactivated_at": now,
         "start_date": now - timedelta(days=1), "end_date": now + timedelta(days=29)},
        {"image_url": "https://cdn.fleetapp.me/banners/download-app.jpg", "redirect_to": None},
    ]


def seed_banners(db, model, label: str):
    """Insert the demo set unless the table already holds banners."""
    if db.query(model).first() is not None:
        print(f"{label}: already seeded, skipping")
        return

    now = utc_now()
    for data in _demo_banners(now):
        db.add(model(**data))
    db.commit()
    print(f"Seeded {len(_demo_banners(now))} {label}")


def main():
    init_db()
    db = SessionLocal()
    try:
        seed_banners(db, SiteBanner, "site banners")
        seed_banners(db, AdBanner, "ad banners")
        print("Seed data complete.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
