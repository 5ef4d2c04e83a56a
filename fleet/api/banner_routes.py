"""Banner endpoints. Site banners and ad banners share one schema, so both routers
are built from the same factory.

Public reads filter on display eligibility at request time; admin writes go
through date validation and the manual-override write path.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from fleet.api.admin_auth import require_admin
from fleet.database.db import get_db
from fleet.database.models import BANNER_MODELS
from fleet.services.banner_schedule import (
    BannerStatus,
    apply_manual_active,
    calculate_banner_status,
    get_banner_schedule_text,
    get_banner_status_label,
    is_banner_displayable,
    parse_banner_datetime,
    validate_banner_dates,
)
from fleet.services.banner_stats import record_banner_event
from fleet.services.clock import Clock, ensure_utc, get_clock

logger = logging.getLogger(__name__)

STATUS_FILTERS = "^(all|scheduled|active|expired|paused|no_schedule)$"


# --- Request/Response Models ---

class CreateBannerRequest(BaseModel):
    image_url: str = Field(..., min_length=1, max_length=2048)
    redirect_to: str | None = Field(None, max_length=2048)
    active: bool = True
    start_date: str | None = Field(None, max_length=64)
    end_date: str | None = Field(None, max_length=64)


class UpdateBannerRequest(BaseModel):
    image_url: str | None = Field(None, min_length=1, max_length=2048)
    redirect_to: str | None = Field(None, max_length=2048)
    active: bool | None = None
    start_date: str | None = Field(None, max_length=64)
    end_date: str | None = Field(None, max_length=64)


class BannerEventRequest(BaseModel):
    event_type: str = Field(..., pattern=r"^(impression|click)$")
    viewer_id: str | None = Field(None, max_length=255)


class PublicBannerResponse(BaseModel):
    id: int
    image_url: str
    redirect_to: str | None


class BannerResponse(BaseModel):
    id: int
    image_url: str
    redirect_to: str | None
    active: bool
    start_date: str | None
    end_date: str | None
    manually_deactivated_at: str | None
    status: BannerStatus
    status_label: str
    schedule_text: str
    created_at: str


def build_banner_router(banner_kind: str, prefix: str) -> APIRouter:
    """Routes for one banner table, mounted at `prefix`."""
    model = BANNER_MODELS[banner_kind]
    router = APIRouter(prefix=prefix, tags=[prefix.strip("/")])

    def _get_banner(banner_id: int, db: Session):
        banner = db.query(model).filter(model.id == banner_id).first()
        if not banner:
            raise HTTPException(status_code=404, detail="Banner not found")
        return banner

    # --- Public endpoints ---

    @router.get("/", response_model=list[PublicBannerResponse])
    def list_displayable_banners(
        db: Session = Depends(get_db),
        clock: Clock = Depends(get_clock),
    ):
        """Banners end users should see right now."""
        now = clock()
        banners = (
            db.query(model)
            .filter(model.active == True)
            .order_by(model.created_at.desc(), model.id.desc())
            .all()
        )
        return [
            PublicBannerResponse(id=b.id, image_url=b.image_url, redirect_to=b.redirect_to)
            for b in banners
            if is_banner_displayable(b, now)
        ]

    @router.post("/{banner_id}/events", status_code=201)
    def record_event(
        banner_id: int,
        req: BannerEventRequest,
        db: Session = Depends(get_db),
    ):
        """Record an impression or click from the storefront."""
        _get_banner(banner_id, db)
        event = record_banner_event(banner_kind, banner_id, req.event_type, req.viewer_id, db)
        return {"id": event.id, "event_type": event.event_type}

    # --- Admin endpoints ---

    @router.get("/admin", dependencies=[Depends(require_admin)])
    def list_banners_admin(
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        search: str | None = Query(None, max_length=200),
        status: str = Query("all", pattern=STATUS_FILTERS),
        sort_by: str = Query("created_at", pattern=r"^(created_at|start_date|end_date|id)$"),
        sort_order: str = Query("desc", pattern=r"^(asc|desc)$"),
        db: Session = Depends(get_db),
        clock: Clock = Depends(get_clock),
    ):
        """All banners with computed status, filtered and paginated."""
        now = clock()
        column = getattr(model, sort_by)
        query = db.query(model).order_by(
            column.asc() if sort_order == "asc" else column.desc(), model.id.asc()
        )
        if search:
            query = query.filter(model.redirect_to.ilike(f"%{search}%"))

        banners = query.all()
        if status != "all":
            banners = [b for b in banners if calculate_banner_status(b, now).value == status]

        total = len(banners)
        start = (page - 1) * limit
        return {
            "data": [_to_response(b, now) for b in banners[start:start + limit]],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": (total + limit - 1) // limit,
            },
        }

    @router.get("/{banner_id}", response_model=BannerResponse, dependencies=[Depends(require_admin)])
    def get_banner(
        banner_id: int,
        db: Session = Depends(get_db),
        clock: Clock = Depends(get_clock),
    ):
        return _to_response(_get_banner(banner_id, db), clock())

    @router.post("/", response_model=BannerResponse, status_code=201, dependencies=[Depends(require_admin)])
    def create_banner(
        req: CreateBannerRequest,
        db: Session = Depends(get_db),
        clock: Clock = Depends(get_clock),
    ):
        """Create a banner. Creating it inactive counts as a manual pause."""
        error = validate_banner_dates(req.start_date, req.end_date)
        if error:
            raise HTTPException(status_code=400, detail=error)

        now = clock()
        banner = model(
            image_url=req.image_url,
            redirect_to=req.redirect_to,
            start_date=_parse_bound(req.start_date, "start"),
            end_date=_parse_bound(req.end_date, "end"),
        )
        apply_manual_active(banner, req.active, now)
        db.add(banner)
        db.commit()
        db.refresh(banner)
        logger.info("Created %s ID %s (active=%s)", banner_kind, banner.id, banner.active)
        return _to_response(banner, now)

    @router.patch("/{banner_id}", response_model=BannerResponse, dependencies=[Depends(require_admin)])
    def update_banner(
        banner_id: int,
        req: UpdateBannerRequest,
        db: Session = Depends(get_db),
        clock: Clock = Depends(get_clock),
    ):
        """Update payload, schedule or active flag. The merged date range is re-validated."""
        banner = _get_banner(banner_id, db)
        update_data = req.model_dump(exclude_unset=True)
        now = clock()

        if "image_url" in update_data and not update_data["image_url"]:
            raise HTTPException(status_code=422, detail="image_url cannot be empty")

        if "start_date" in update_data or "end_date" in update_data:
            start = update_data.pop("start_date", banner.start_date)
            end = update_data.pop("end_date", banner.end_date)
            error = validate_banner_dates(start, end)
            if error:
                raise HTTPException(status_code=400, detail=error)
            banner.start_date = _parse_bound(start, "start")
            banner.end_date = _parse_bound(end, "end")

        active = update_data.pop("active", None)
        if active is not None and active != banner.active:
            apply_manual_active(banner, active, now)

        for key, value in update_data.items():
            setattr(banner, key, value)
        db.commit()
        db.refresh(banner)
        return _to_response(banner, now)

    @router.post("/{banner_id}/toggle", response_model=BannerResponse, dependencies=[Depends(require_admin)])
    def toggle_banner(
        banner_id: int,
        db: Session = Depends(get_db),
        clock: Clock = Depends(get_clock),
    ):
        """Flip the active flag as an explicit administrator action."""
        banner = _get_banner(banner_id, db)
        now = clock()
        apply_manual_active(banner, not banner.active, now)
        db.commit()
        db.refresh(banner)
        logger.info("Toggled %s ID %s to active=%s", banner_kind, banner.id, banner.active)
        return _to_response(banner, now)

    @router.delete("/{banner_id}", dependencies=[Depends(require_admin)])
    def delete_banner(banner_id: int, db: Session = Depends(get_db)):
        banner = _get_banner(banner_id, db)
        db.delete(banner)
        db.commit()
        return {"deleted": True}

    return router


# --- Helpers ---

def _parse_bound(value: str | datetime | None, which: str) -> datetime | None:
    try:
        return parse_banner_datetime(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {which} date")


def _iso(value: datetime | None) -> str | None:
    return ensure_utc(value).isoformat() if value is not None else None


def _to_response(b, now: datetime) -> BannerResponse:
    status = calculate_banner_status(b, now)
    return BannerResponse(
        id=b.id,
        image_url=b.image_url,
        redirect_to=b.redirect_to,
        active=b.active,
        start_date=_iso(b.start_date),
        end_date=_iso(b.end_date),
        manually_deactivated_at=_iso(b.manually_deactivated_at),
        status=status,
        status_label=get_banner_status_label(status),
        schedule_text=get_banner_schedule_text(b.start_date, b.end_date),
        created_at=str(b.created_at),
    )


banner_router = build_banner_router("banners", "/banners")
ad_banner_router = build_banner_router("ad_banners", "/ad-banners")
