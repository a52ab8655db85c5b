"""Building enrichment derived from the acquisition pipeline.

Provides:
- latest_by_project(): Most recently modified record per building project
- BuildingEnrichment: Workflow state and screen count lookups for one pass
- calculate_lcd_presence_status(): TMN / Competitor / CoExist / Opportunity
- build_images(): Photo fields folded into named image references
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from src.app.buildings.schemas import BuildingImage
from src.app.erp.schemas import ERPBuilding, ERPWorkflowRecord

LCD_TMN = "TMN"
LCD_COMPETITOR = "Competitor"
LCD_COEXIST = "CoExist"
LCD_OPPORTUNITY = "Opportunity"

BAST_SIGNED = "bast signed"

IMAGE_FIELDS: tuple[tuple[str, str], ...] = (
    ("front_side", "front_side_photo"),
    ("back_side", "back_side_photo"),
    ("left_side", "left_side_photo"),
    ("right_side", "right_side_photo"),
)


# ── Latest Record Per Project ──────────────────────────────────────────────


def _modified_sort_key(record: ERPWorkflowRecord) -> tuple[int, float]:
    # Unparseable timestamps sort after every parseable one
    modified = record.modified_at
    if modified is None:
        return (1, 0.0)
    return (0, -(modified - datetime.min).total_seconds())


def latest_by_project(records: Iterable[ERPWorkflowRecord]) -> dict[str, ERPWorkflowRecord]:
    """Map building_project -> its most recently modified record.

    Records without a building project are ignored. Ties keep fetch order.
    """
    latest: dict[str, ERPWorkflowRecord] = {}
    for record in sorted(records, key=_modified_sort_key):
        if record.building_project and record.building_project not in latest:
            latest[record.building_project] = record
    return latest


@dataclass
class BuildingEnrichment:
    """Per-project lookups computed once per building pass."""

    workflow_states: dict[str, str] = field(default_factory=dict)
    screen_counts: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_records(
        cls,
        acquisitions: Sequence[ERPWorkflowRecord],
        proposals: Sequence[ERPWorkflowRecord],
    ) -> BuildingEnrichment:
        workflow_states = {
            project: record.workflow_state
            for project, record in latest_by_project(acquisitions).items()
        }
        screen_counts = {
            project: getattr(record, "number_of_screen", 0)
            for project, record in latest_by_project(proposals).items()
        }
        return cls(workflow_states=workflow_states, screen_counts=screen_counts)

    def workflow_state_for(self, project: str) -> str:
        if not project:
            return ""
        return self.workflow_states.get(project, "")

    def screen_count_for(self, project: str) -> int:
        if not project:
            return 0
        return self.screen_counts.get(project, 0)


# ── LCD Presence ───────────────────────────────────────────────────────────


def calculate_lcd_presence_status(
    competitor_presence: bool,
    competitor_exclusive: bool,
    workflow_state: str,
    screen_count: int,
) -> str:
    """Classify a building's LCD presence.

    Rules are checked in order; the first match wins:

    1. BAST signed, no competitor presence, not exclusive -> ``TMN``
    2. Not BAST signed (or no workflow state), competitor present or
       exclusive -> ``Competitor``
    3. BAST signed with screens, competitor present, not exclusive -> ``CoExist``
    4. Not BAST signed (or no workflow state), no competitor -> ``Opportunity``

    Returns an empty string when no rule applies.
    """
    is_bast_signed = workflow_state.strip().lower() == BAST_SIGNED
    has_state = workflow_state != ""
    competitor = competitor_presence or competitor_exclusive

    if has_state and is_bast_signed and not competitor:
        return LCD_TMN
    if (not has_state or not is_bast_signed) and competitor:
        return LCD_COMPETITOR
    if (
        has_state
        and screen_count > 0
        and is_bast_signed
        and not competitor_exclusive
        and competitor_presence
    ):
        return LCD_COEXIST
    if (not has_state or not is_bast_signed) and not competitor:
        return LCD_OPPORTUNITY
    return ""


# ── Images ─────────────────────────────────────────────────────────────────


def build_images(building: ERPBuilding) -> list[BuildingImage]:
    """Named image references for every non-empty photo field, in fixed order."""
    return [
        BuildingImage(name=name, path=getattr(building, attr))
        for name, attr in IMAGE_FIELDS
        if getattr(building, attr)
    ]
