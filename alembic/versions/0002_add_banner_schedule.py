"""Add start/end scheduling and manual-deactivation stamp to banner tables.

Revision ID: 0002
Revises: 0001
Create Date: 2026-04-14

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TABLES = ("banners", "ad_banners")


def upgrade() -> None:
    for table in TABLES:
        with op.batch_alter_table(table) as batch_op:
            batch_op.add_column(sa.Column("start_date", sa.DateTime(timezone=True), nullable=True))
            batch_op.add_column(sa.Column("end_date", sa.DateTime(timezone=True), nullable=True))
            batch_op.add_column(sa.Column("manually_deactivated_at", sa.DateTime(timezone=True), nullable=True))
        op.create_index(f"ix_{table}_schedule", table, ["start_date", "end_date"])


def downgrade() -> None:
    for table in TABLES:
        op.drop_index(f"ix_{table}_schedule", table_name=table)
        with op.batch_alter_table(table) as batch_op:
            batch_op.drop_column("manually_deactivated_at")
            batch_op.drop_column("end_date")
            batch_op.drop_column("start_date")
