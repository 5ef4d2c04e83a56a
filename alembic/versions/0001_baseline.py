"""Baseline: site and ad banner tables.

Revision ID: 0001
Revises: None
Create Date: 2026-03-02

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    for table in ("banners", "ad_banners"):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
            sa.Column("image_url", sa.Text(), nullable=False),
            sa.Column("redirect_to", sa.Text()),
            sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime()),
            sa.Column("updated_at", sa.DateTime()),
        )


def downgrade() -> None:
    op.drop_table("ad_banners")
    op.drop_table("banners")
