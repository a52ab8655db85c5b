"""Create buildings table.

Revision ID: 001_create_buildings
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSON

# revision identifiers, used by Alembic.
revision: str = "001_create_buildings"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "buildings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("external_building_id", sa.String(140), nullable=False),
        # ERP-owned
        sa.Column("iris_code", sa.String(140), nullable=True),
        sa.Column("name", sa.String(300), nullable=True),
        sa.Column("project_name", sa.String(300), nullable=True),
        sa.Column("audience", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("impression", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("cbd_area", sa.String(140), nullable=True),
        sa.Column("building_status", sa.String(140), nullable=True),
        sa.Column("competitor_location", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("competitor_exclusive", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("competitor_presence", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("subdistrict", sa.String(140), nullable=True),
        sa.Column("citytown", sa.String(140), nullable=True),
        sa.Column("province", sa.String(140), nullable=True),
        sa.Column("grade_resource", sa.String(50), nullable=True),
        sa.Column("building_type", sa.String(140), nullable=True),
        sa.Column("completion_year", sa.Integer(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("images", JSON(), server_default=sa.text("'[]'::json"), nullable=False),
        sa.Column("lcd_presence_status", sa.String(50), nullable=True),
        sa.Column("synced_at", sa.DateTime(timezone=True), nullable=True),
        # User-owned
        sa.Column("sellable", sa.String(50), server_default=sa.text("''"), nullable=False),
        sa.Column("connectivity", sa.String(50), server_default=sa.text("''"), nullable=False),
        sa.Column("resource_type", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_buildings_external_building_id",
        "buildings",
        ["external_building_id"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("ix_buildings_external_building_id", table_name="buildings")
    op.drop_table("buildings")
