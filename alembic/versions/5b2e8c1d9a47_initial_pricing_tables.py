"""initial pricing tables

Revision ID: 5b2e8c1d9a47
Revises:
Create Date: 2026-09-02 10:14:03.512207

Window coverings, making costs, options, pricing grids, and the calculation
cache. Each table is created only if missing, so databases that were built
by Base.metadata.create_all() upgrade cleanly.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b2e8c1d9a47'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(table_name):
    """Check if a table exists."""
    bind = op.get_bind()
    insp = sa.inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    if not _table_exists("window_coverings"):
        op.create_table(
            "window_coverings",
            sa.Column("id", sa.String(), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("labor_rate", sa.Float(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists("making_costs"):
        op.create_table(
            "making_costs",
            sa.Column("id", sa.String(), nullable=False),
            sa.Column("window_covering_id", sa.String(), nullable=True),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("drop_ranges", sa.JSON(), nullable=True),
            sa.Column("bundled_options", sa.JSON(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["window_covering_id"], ["window_coverings.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists("window_covering_options"):
        op.create_table(
            "window_covering_options",
            sa.Column("id", sa.String(), nullable=False),
            sa.Column("window_covering_id", sa.String(), nullable=True),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("option_type", sa.String(), nullable=True),
            sa.Column("cost_type", sa.String(), nullable=True),
            sa.Column("base_cost", sa.Float(), nullable=True),
            sa.Column("quantity", sa.Float(), nullable=True),
            sa.Column("affects_fabric_calculation", sa.Boolean(), nullable=True),
            sa.Column("fabric_waste_factor", sa.Float(), nullable=True),
            sa.Column("pattern_repeat_factor", sa.Float(), nullable=True),
            sa.Column("seam_complexity_factor", sa.Float(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["window_covering_id"], ["window_coverings.id"]),
            sa.PrimaryKeyConstraint("id"),
        )

    if not _table_exists("pricing_grids"):
        op.create_table(
            "pricing_grids",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("grid_data", sa.JSON(), nullable=False),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_pricing_grids_id", "pricing_grids", ["id"])

    if not _table_exists("fabric_calculation_cache"):
        op.create_table(
            "fabric_calculation_cache",
            sa.Column("calculation_hash", sa.String(), nullable=False),
            sa.Column("params_json", sa.JSON(), nullable=False),
            sa.Column("result_json", sa.JSON(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("calculation_hash"),
        )


def downgrade() -> None:
    for table_name in ["fabric_calculation_cache", "pricing_grids", "window_covering_options",
                       "making_costs", "window_coverings"]:
        if _table_exists(table_name):
            op.drop_table(table_name)
