"""Celery application configuration.

Uses Redis as broker when configured, falls back to memory:// for local dev/tests.
"""

from celery import Celery
from celery.schedules import crontab

from fleet.config.settings import get_settings

settings = get_settings()

app = Celery("fleet", include=["fleet.tasks.banner_tasks"])

app.conf.update(
    broker_url=settings.effective_celery_broker,
    result_backend=settings.effective_celery_backend,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "update-banner-status": {
            "task": "fleet.tasks.banner_tasks.update_banner_status",
            "schedule": crontab(minute=0, hour=settings.banner_reconcile_hour),  # Daily, UTC
        },
    },
)
