"""Back-office endpoints: manual banner status run and banner analytics."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from fleet.api.admin_auth import require_admin
from fleet.config.settings import get_settings
from fleet.database.db import get_db
from fleet.services.banner_reconciler import BannerLoadError, run_banner_reconciliation
from fleet.services.banner_stats import get_banner_stats
from fleet.services.clock import Clock, get_clock

logger = logging.getLogger(__name__)

admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

STATS_KINDS = {
    "banners": ["banners"],
    "ad_banners": ["ad_banners"],
    "both": ["banners", "ad_banners"],
}


@admin_router.post("/banner-status/run")
def trigger_banner_status_update(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Run banner reconciliation now. Queued on Celery when Redis is available."""
    settings = get_settings()
    if settings.redis_url:
        from fleet.tasks.banner_tasks import update_banner_status

        result = update_banner_status.delay()
        logger.info("Banner status update queued (task_id=%s)", result.id)
        return {"status": "queued", "task_id": result.id}

    try:
        report = run_banner_reconciliation(db, clock)
    except BannerLoadError as exc:
        logger.exception("Manual banner status update failed")
        raise HTTPException(status_code=502, detail=str(exc))

    return {"status": "completed", "result": report}


@admin_router.get("/banner-stats")
def banner_stats(
    type: str = Query("both", pattern=r"^(banners|ad_banners|both)$"),
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Impressions, clicks, unique viewers and CTR over the last `days`."""
    return get_banner_stats(STATS_KINDS[type], days, clock(), db)
