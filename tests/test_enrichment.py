"""Unit tests for building enrichment: latest-per-project, LCD presence, images."""

from __future__ import annotations

import pytest

from src.app.erp.schemas import ERPAcquisition, ERPBuilding, ERPBuildingProposal
from src.app.sync.enrichment import (
    BuildingEnrichment,
    build_images,
    calculate_lcd_presence_status,
    latest_by_project,
)


def _acq(name: str, project: str, modified: str, state: str = "") -> ERPAcquisition:
    return ERPAcquisition(name=name, building_project=project, modified=modified, workflow_state=state)


# ── Latest Per Project ─────────────────────────────────────────────────────


class TestLatestByProject:
    def test_most_recent_modified_wins(self):
        records = [
            _acq("A1", "P1", "2026-01-01 09:00:00"),
            _acq("A2", "P1", "2026-03-01 09:00:00"),
            _acq("A3", "P1", "2026-02-01 09:00:00"),
        ]
        assert latest_by_project(records)["P1"].name == "A2"

    def test_unparseable_timestamps_sort_last(self):
        records = [
            _acq("A1", "P1", "not a date"),
            _acq("A2", "P1", "2020-01-01"),
            _acq("A3", "P2", ""),
        ]
        latest = latest_by_project(records)
        assert latest["P1"].name == "A2"
        assert latest["P2"].name == "A3"

    def test_records_without_project_are_ignored(self):
        records = [_acq("A1", "", "2026-01-01"), _acq("A2", "P1", "2025-01-01")]
        assert set(latest_by_project(records)) == {"P1"}

    def test_fractional_seconds_compare(self):
        records = [
            _acq("A1", "P1", "2026-01-01 09:00:00.100000"),
            _acq("A2", "P1", "2026-01-01 09:00:00.900000"),
        ]
        assert latest_by_project(records)["P1"].name == "A2"


class TestBuildingEnrichment:
    def test_from_records(self):
        enrichment = BuildingEnrichment.from_records(
            acquisitions=[
                _acq("A1", "P1", "2026-01-01", state="Draft"),
                _acq("A2", "P1", "2026-02-01", state="BAST Signed"),
            ],
            proposals=[
                ERPBuildingProposal(name="BP1", building_project="P1", modified="2026-01-01", number_of_screen=2),
                ERPBuildingProposal(name="BP2", building_project="P1", modified="2026-05-01", number_of_screen=6),
            ],
        )
        assert enrichment.workflow_state_for("P1") == "BAST Signed"
        assert enrichment.screen_count_for("P1") == 6

    def test_unknown_or_empty_project(self):
        enrichment = BuildingEnrichment(workflow_states={"P1": "Draft"}, screen_counts={"P1": 3})
        assert enrichment.workflow_state_for("P2") == ""
        assert enrichment.workflow_state_for("") == ""
        assert enrichment.screen_count_for("") == 0


# ── LCD Presence ───────────────────────────────────────────────────────────


class TestLcdPresenceStatus:
    @pytest.mark.parametrize(
        ("presence", "exclusive", "state", "screens", "expected"),
        [
            # TMN: BAST signed, no competitor
            (False, False, "BAST Signed", 0, "TMN"),
            (False, False, "  bast signed ", 3, "TMN"),
            # Competitor: not BAST signed (or empty) with competitor
            (True, False, "", 0, "Competitor"),
            (False, True, "Negotiation", 5, "Competitor"),
            (True, True, "Draft", 0, "Competitor"),
            # CoExist: BAST signed, screens, presence, not exclusive
            (True, False, "BAST Signed", 2, "CoExist"),
            # Opportunity: not BAST signed (or empty), no competitor
            (False, False, "", 0, "Opportunity"),
            (False, False, "Survey", 4, "Opportunity"),
            # No rule applies
            (True, False, "BAST Signed", 0, ""),
            (True, True, "BAST Signed", 3, ""),
            (False, True, "BAST Signed", 0, ""),
        ],
    )
    def test_rule_table(self, presence, exclusive, state, screens, expected):
        assert calculate_lcd_presence_status(presence, exclusive, state, screens) == expected


# ── Images ─────────────────────────────────────────────────────────────────


class TestBuildImages:
    def test_non_empty_photos_in_fixed_order(self):
        building = ERPBuilding(
            building_id="B1",
            right_side_photo="/files/r.jpg",
            front_side_photo="/files/f.jpg",
        )
        images = build_images(building)
        assert [(i.name, i.path) for i in images] == [
            ("front_side", "/files/f.jpg"),
            ("right_side", "/files/r.jpg"),
        ]

    def test_no_photos(self):
        assert build_images(ERPBuilding(building_id="B1")) == []
