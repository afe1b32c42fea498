"""add cache_version to fabric_calculation_cache

Revision ID: 9c4f1a6e2b83
Revises: 5b2e8c1d9a47
Create Date: 2026-09-16 14:41:27.068115

Cached results written before versioning existed get version 0, so they
read as stale under CALCULATION_CACHE_VERSION >= 1 and are recomputed.
Idempotent: skips the column if create_all() already added it.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '9c4f1a6e2b83'
down_revision: Union[str, None] = '5b2e8c1d9a47'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _column_exists(table_name, column_name):
    """Check if a column already exists in the table."""
    bind = op.get_bind()
    insp = inspect(bind)
    columns = [c["name"] for c in insp.get_columns(table_name)]
    return column_name in columns


def upgrade() -> None:
    if not _column_exists("fabric_calculation_cache", "cache_version"):
        op.add_column(
            "fabric_calculation_cache",
            sa.Column("cache_version", sa.Integer(), nullable=True, server_default="0"),
        )


def downgrade() -> None:
    if _column_exists("fabric_calculation_cache", "cache_version"):
        with op.batch_alter_table("fabric_calculation_cache") as batch_op:
            batch_op.drop_column("cache_version")
