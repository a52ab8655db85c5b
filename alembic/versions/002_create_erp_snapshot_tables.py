"""Create ERP snapshot tables: acquisitions, building_proposals, letters_of_intent.

Revision ID: 002_create_erp_snapshot_tables
Revises: 001_create_buildings
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSON

# revision identifiers, used by Alembic.
revision: str = "002_create_erp_snapshot_tables"
down_revision: Union[str, None] = "001_create_buildings"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SNAPSHOT_TABLES = {
    "acquisitions": False,
    "building_proposals": True,
    "letters_of_intent": True,
}


def _snapshot_columns(with_screen_count: bool) -> list[sa.Column]:
    columns = [
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("external_id", sa.String(140), nullable=False),
        sa.Column("workflow_state", sa.String(140), nullable=True),
        sa.Column("acquisition_person", sa.String(140), nullable=True),
        sa.Column("building_project", sa.String(300), nullable=True),
        sa.Column("status", sa.String(140), nullable=True),
    ]
    if with_screen_count:
        columns.append(sa.Column("number_of_screen", sa.Integer(), nullable=True))
    columns.extend(
        [
            sa.Column("modified", sa.DateTime(), nullable=True),
            sa.Column("created_at_erp", sa.DateTime(), nullable=True),
            sa.Column("synced_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("raw_data", JSON(), server_default=sa.text("'{}'::json"), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        ]
    )
    return columns


def upgrade() -> None:
    for table, with_screen_count in SNAPSHOT_TABLES.items():
        op.create_table(table, *_snapshot_columns(with_screen_count))
        op.create_index(f"ix_{table}_external_id", table, ["external_id"])
        op.create_index(f"ix_{table}_building_project", table, ["building_project"])


def downgrade() -> None:
    for table in reversed(list(SNAPSHOT_TABLES)):
        op.drop_index(f"ix_{table}_building_project", table_name=table)
        op.drop_index(f"ix_{table}_external_id", table_name=table)
        op.drop_table(table)
