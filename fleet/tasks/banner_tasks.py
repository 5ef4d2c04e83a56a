"""Celery tasks for scheduled banner status updates and operator reports."""

import logging

from fleet.celery_app import app
from fleet.config.settings import get_settings
from fleet.database.db import SessionLocal
from fleet.services.banner_reconciler import run_banner_reconciliation
from fleet.services.email_service import send_email, render_template, EmailSendError

logger = logging.getLogger(__name__)


@app.task(bind=True, max_retries=3, default_retry_delay=300)
def update_banner_status(self):
    """Reconcile banner `active` flags with their schedules.

    Runs daily on the beat schedule and on demand from the admin API. A failed
    load retries the whole run. Per-banner write errors are reported and left
    for the next run.
    """
    db = SessionLocal()
    try:
        report = run_banner_reconciliation(db)
    except Exception as exc:
        logger.exception("Banner status update task failed")
        raise self.retry(exc=exc)
    finally:
        db.close()

    errors = report["total"]["errors"]
    operator_email = get_settings().operator_email
    if errors and operator_email:
        send_reconciliation_report.delay(operator_email=operator_email, report=report)

    return report


@app.task(bind=True, max_retries=3, default_retry_delay=120)
def send_reconciliation_report(self, operator_email: str, report: dict):
    """Email the operator a summary of a run that had write errors."""
    errors = report["total"]["errors"]
    try:
        html_body = render_template(
            "reconciliation_report.html",
            timestamp=report.get("timestamp", ""),
            duration_ms=report.get("duration_ms", 0),
            results=report.get("results", {}),
            errors=errors,
        )
        subject = f"Fleet: banner status update had {len(errors)} error(s)"
        text_body = "Banner status update errors:\n\n" + "\n".join(errors)

        send_email(operator_email, subject, html_body, text_body)
        logger.info("Reconciliation report sent to %s (%d errors)", operator_email, len(errors))
        return {"status": "sent", "to": operator_email, "errors": len(errors)}
    except EmailSendError as exc:
        logger.exception("Reconciliation report failed to %s", operator_email)
        raise self.retry(exc=exc)
