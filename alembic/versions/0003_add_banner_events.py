"""Add banner_events table for impression/click analytics.

Revision ID: 0003
Revises: 0002
Create Date: 2026-05-20

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0003"
down_revision: Union[str, None] = "0002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "banner_events",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("banner_kind", sa.String(20), nullable=False),
        sa.Column("banner_id", sa.Integer(), nullable=False),
        sa.Column("event_type", sa.String(20), nullable=False),
        sa.Column("viewer_id", sa.String(255)),
        sa.Column("created_at", sa.DateTime()),
    )
    op.create_index(
        "ix_banner_events_kind_type_created",
        "banner_events",
        ["banner_kind", "event_type", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_banner_events_kind_type_created", table_name="banner_events")
    op.drop_table("banner_events")
