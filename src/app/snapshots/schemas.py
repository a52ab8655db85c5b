"""Pydantic schema for one row of an ERP snapshot table."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SnapshotRow(BaseModel):
    """One fresh row for acquisitions, building_proposals or letters_of_intent.

    ``number_of_screen`` is None for tables without that column.
    """

    model_config = ConfigDict(frozen=True)

    external_id: str
    workflow_state: str | None = None
    acquisition_person: str | None = None
    building_project: str | None = None
    status: str | None = None
    number_of_screen: int | None = None
    modified: datetime | None = None
    created_at_erp: datetime | None = None
    synced_at: datetime | None = None
    raw_data: dict[str, Any] = Field(default_factory=dict)
