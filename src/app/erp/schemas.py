"""Pydantic schemas for records fetched from the Frappe ERP.

Defines:
- EntityKind: The four ERP doctypes the sync subsystem pulls
- ERPRecord: Base for one fetched record, carrying its original JSON payload
- ERPBuilding, ERPAcquisition, ERPBuildingProposal, ERPLetterOfIntent
- parse_erp_time(): Frappe timestamp parsing (unparseable values become None)

Records are ephemeral: they live for one fetch + reconcile cycle.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ── Enums ───────────────────────────────────────────────────────────────────


class EntityKind(str, Enum):
    """ERP entity kinds that are synchronized into the local store."""

    BUILDING = "buildings"
    ACQUISITION = "acquisitions"
    BUILDING_PROPOSAL = "building_proposals"
    LETTER_OF_INTENT = "letters_of_intent"

    @property
    def resource(self) -> str:
        """Frappe doctype name used in /api/resource/<doctype>."""
        return ERP_RESOURCES[self]


ERP_RESOURCES: dict[EntityKind, str] = {
    EntityKind.BUILDING: "Building",
    EntityKind.ACQUISITION: "Acquisition",
    EntityKind.BUILDING_PROPOSAL: "Building Proposal",
    EntityKind.LETTER_OF_INTENT: "Letter of Intent",
}


# ── Timestamp Parsing ───────────────────────────────────────────────────────

ERP_TIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
)


def parse_erp_time(value: str | None) -> datetime | None:
    """Parse a Frappe timestamp string, returning None when empty or unparseable."""
    if not value:
        return None
    for fmt in ERP_TIME_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


# ── Records ─────────────────────────────────────────────────────────────────


class ERPRecord(BaseModel):
    """One record from an ERP list response.

    Frappe sends ``null`` for unset fields; those are dropped before
    validation so every field falls back to its declared default.
    Unknown fields are ignored but preserved in ``raw_payload``.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    raw_payload: dict[str, Any] = Field(default_factory=dict, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ERPRecord:
        """Validate one ``data`` item and attach the untouched payload."""
        record = cls.model_validate(payload)
        record.raw_payload = dict(payload)
        return record

    @property
    def external_id(self) -> str:
        """Identifier used to match this record to a local row."""
        return self.name


class ERPBuilding(ERPRecord):
    """Building doctype. Matched locally by ``building_id``."""

    building_name: str = ""
    building_id: str = ""
    iris_code: str = ""
    building_project: str = ""
    audience_actual: int = 0
    audience_projection: int = 0
    cbd_area: str = ""
    subdistrict: str = ""
    citytown: str = ""
    province: str = ""
    grade_resource: str = ""
    building_type: str = ""
    completion_year: int = 0
    latitude: float = 0.0
    longitude: float = 0.0
    eligible: int = 0
    competitor_presence: int = 0
    competitor_exclusive: int = 0
    front_side_photo: str = ""
    back_side_photo: str = ""
    left_side_photo: str = ""
    right_side_photo: str = ""

    @property
    def external_id(self) -> str:
        return self.building_id


class ERPWorkflowRecord(ERPRecord):
    """Fields shared by the acquisition-pipeline doctypes."""

    building_project: str = ""
    status: str = ""
    workflow_state: str = ""
    acquisition_person: str = ""
    creation: str = ""
    modified: str = ""

    @property
    def modified_at(self) -> datetime | None:
        return parse_erp_time(self.modified)

    @property
    def created_at_erp(self) -> datetime | None:
        return parse_erp_time(self.creation)


class ERPAcquisition(ERPWorkflowRecord):
    """Acquisition doctype."""


class ERPBuildingProposal(ERPWorkflowRecord):
    """Building Proposal doctype."""

    number_of_screen: int = 0


class ERPLetterOfIntent(ERPWorkflowRecord):
    """Letter of Intent doctype."""

    number_of_screen: int = 0


ERP_RECORD_TYPES: dict[EntityKind, type[ERPRecord]] = {
    EntityKind.BUILDING: ERPBuilding,
    EntityKind.ACQUISITION: ERPAcquisition,
    EntityKind.BUILDING_PROPOSAL: ERPBuildingProposal,
    EntityKind.LETTER_OF_INTENT: ERPLetterOfIntent,
}
