"""ERP snapshot persistence models.

Three tables that mirror ERP doctypes row for row:
- AcquisitionModel: acquisitions
- BuildingProposalModel: building_proposals (with number_of_screen)
- LetterOfIntentModel: letters_of_intent (with number_of_screen)

Each row keeps the untouched ERP JSON in raw_data. Tables are truncated and
refilled on every sync pass, so no column here is ever edited locally.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func, text
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.orm import Mapped, mapped_column

from src.app.core.database import Base


class SnapshotMixin:
    """Columns shared by every ERP snapshot table."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_id: Mapped[str] = mapped_column(String(140), nullable=False, index=True)
    workflow_state: Mapped[str | None] = mapped_column(String(140), nullable=True)
    acquisition_person: Mapped[str | None] = mapped_column(String(140), nullable=True)
    building_project: Mapped[str | None] = mapped_column(String(300), nullable=True, index=True)
    status: Mapped[str | None] = mapped_column(String(140), nullable=True)
    modified: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at_erp: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    raw_data: Mapped[dict] = mapped_column(
        JSON, default=dict, server_default=text("'{}'::json")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True,
    )


class AcquisitionModel(SnapshotMixin, Base):
    """ERP Acquisition doctype snapshot."""

    __tablename__ = "acquisitions"


class BuildingProposalModel(SnapshotMixin, Base):
    """ERP Building Proposal doctype snapshot."""

    __tablename__ = "building_proposals"

    number_of_screen: Mapped[int | None] = mapped_column(Integer, nullable=True)


class LetterOfIntentModel(SnapshotMixin, Base):
    """ERP Letter of Intent doctype snapshot."""

    __tablename__ = "letters_of_intent"

    number_of_screen: Mapped[int | None] = mapped_column(Integer, nullable=True)
