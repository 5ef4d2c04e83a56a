from datetime import datetime
from sqlalchemy import String, Integer, Boolean, DateTime, Text, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class BannerScheduleMixin:
    """Columns shared by every banner table: display payload plus schedule."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    redirect_to: Mapped[str | None] = mapped_column(Text)

    # Visibility control
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    # Set only by an administrator's direct deactivation; gates reconciliation, never display
    manually_deactivated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class SiteBanner(BannerScheduleMixin, Base):
    """Storefront hero banner."""
    __tablename__ = "banners"

    __table_args__ = (
        Index("ix_banners_schedule", "start_date", "end_date"),
    )


class AdBanner(BannerScheduleMixin, Base):
    """Sponsored ad banner shown between listings."""
    __tablename__ = "ad_banners"

    __table_args__ = (
        Index("ix_ad_banners_schedule", "start_date", "end_date"),
    )


class BannerEvent(Base):
    """Impression or click recorded against a banner."""
    __tablename__ = "banner_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    banner_kind: Mapped[str] = mapped_column(String(20), nullable=False)  # "banners" or "ad_banners"
    banner_id: Mapped[int] = mapped_column(Integer, nullable=False)
    event_type: Mapped[str] = mapped_column(String(20), nullable=False)  # "impression" or "click"
    viewer_id: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_banner_events_kind_type_created", "banner_kind", "event_type", "created_at"),
    )


BANNER_MODELS: dict[str, type[SiteBanner] | type[AdBanner]] = {
    "banners": SiteBanner,
    "ad_banners": AdBanner,
}
