"""Banner analytics: impression/click capture and aggregate stats for the admin dashboard."""

from datetime import datetime, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from fleet.database.models import BannerEvent
from fleet.services.clock import ensure_utc

EVENT_TYPES = ("impression", "click")


def record_banner_event(
    banner_kind: str,
    banner_id: int,
    event_type: str,
    viewer_id: str | None,
    db: Session,
) -> BannerEvent:
    if event_type not in EVENT_TYPES:
        raise ValueError(f"Unsupported event type: {event_type}")
    event = BannerEvent(
        banner_kind=banner_kind,
        banner_id=banner_id,
        event_type=event_type,
        viewer_id=viewer_id,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def get_kind_stats(banner_kind: str, since: datetime, db: Session) -> dict:
    """Impressions, clicks, unique viewers and click-through rate for one banner kind."""
    base = db.query(BannerEvent).filter(
        BannerEvent.banner_kind == banner_kind,
        BannerEvent.created_at >= since,
    )
    impressions = base.filter(BannerEvent.event_type == "impression").count()
    clicks = base.filter(BannerEvent.event_type == "click").count()
    unique_viewers = (
        db.query(func.count(func.distinct(BannerEvent.viewer_id)))
        .filter(
            BannerEvent.banner_kind == banner_kind,
            BannerEvent.created_at >= since,
            BannerEvent.viewer_id.isnot(None),
        )
        .scalar()
    ) or 0

    ctr = (clicks / impressions) * 100 if impressions > 0 else 0.0
    return {
        "total_impressions": impressions,
        "total_clicks": clicks,
        "unique_viewers": unique_viewers,
        "ctr": round(ctr, 2),
    }


def get_banner_stats(kinds: list[str], days: int, now: datetime, db: Session) -> dict:
    """Stats per kind over the last `days`, plus combined totals when more than one kind is asked for."""
    # created_at is stored as naive UTC
    since = ensure_utc(now).replace(tzinfo=None) - timedelta(days=days)
    per_kind = {kind: get_kind_stats(kind, since, db) for kind in kinds}

    combined = None
    if len(per_kind) > 1:
        combined = {
            "total_impressions": sum(s["total_impressions"] for s in per_kind.values()),
            "total_clicks": sum(s["total_clicks"] for s in per_kind.values()),
            "unique_viewers": sum(s["unique_viewers"] for s in per_kind.values()),
            "avg_ctr": round(sum(s["ctr"] for s in per_kind.values()) / len(per_kind), 2),
        }

    return {"days": days, "stats": per_kind, "combined": combined}
