"""Unit tests for the ERP client and ERP record schemas.

Uses httpx.MockTransport -- no real network calls. max_attempts=1 keeps
transport-failure tests free of retry backoff.
"""

from __future__ import annotations

import json
from datetime import datetime

import httpx
import pytest

from src.app.erp.client import ERPClient, ERPFetchError
from src.app.erp.schemas import (
    EntityKind,
    ERPAcquisition,
    ERPBuilding,
    ERPBuildingProposal,
    parse_erp_time,
)


# ── Helpers ────────────────────────────────────────────────────────────────


def _make_client(handler, **overrides) -> ERPClient:
    defaults = {
        "base_url": "https://erp.test/",
        "api_key": "key",
        "api_secret": "secret",
        "max_attempts": 1,
        "transport": httpx.MockTransport(handler),
    }
    defaults.update(overrides)
    return ERPClient(**defaults)


def _json_handler(body, status_code: int = 200, seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=body)

    return handler


# ── Request Shape ──────────────────────────────────────────────────────────


class TestRequest:
    async def test_url_and_query_params(self):
        seen: list[httpx.Request] = []
        client = _make_client(_json_handler({"data": []}, seen=seen), page_length=500)

        await client.fetch_all(EntityKind.BUILDING_PROPOSAL)

        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/api/resource/Building Proposal"
        assert request.url.params["fields"] == '["*"]'
        assert request.url.params["limit_page_length"] == "500"
        assert request.headers["Accept"] == "application/json"

    async def test_auth_header_sent_when_key_and_secret_set(self):
        seen: list[httpx.Request] = []
        client = _make_client(_json_handler({"data": []}, seen=seen))

        await client.fetch_all(EntityKind.BUILDING)

        assert seen[0].headers["Authorization"] == "Token key:secret"

    @pytest.mark.parametrize(
        ("api_key", "api_secret"),
        [("", "secret"), ("key", ""), ("", "")],
    )
    async def test_auth_header_omitted_without_both_credentials(self, api_key, api_secret):
        seen: list[httpx.Request] = []
        client = _make_client(
            _json_handler({"data": []}, seen=seen),
            api_key=api_key,
            api_secret=api_secret,
        )

        await client.fetch_all(EntityKind.BUILDING)

        assert "Authorization" not in seen[0].headers

    def test_resource_urls(self):
        client = _make_client(_json_handler({"data": []}))
        assert client.resource_url(EntityKind.BUILDING) == "https://erp.test/api/resource/Building"
        assert client.resource_url(EntityKind.ACQUISITION).endswith("/Acquisition")
        assert client.resource_url(EntityKind.LETTER_OF_INTENT).endswith("/Letter of Intent")


# ── Response Handling ──────────────────────────────────────────────────────


class TestResponse:
    async def test_parses_buildings(self):
        body = {
            "data": [
                {
                    "name": "BLD-0001",
                    "building_id": "B1",
                    "building_name": "Tower",
                    "latitude": -6.2,
                    "longitude": 106.8,
                    "competitor_presence": 1,
                    "iris_code": None,
                    "custom_field": "kept in raw payload",
                }
            ]
        }
        client = _make_client(_json_handler(body))

        records = await client.fetch_all(EntityKind.BUILDING)

        assert len(records) == 1
        building = records[0]
        assert isinstance(building, ERPBuilding)
        assert building.external_id == "B1"
        assert building.building_name == "Tower"
        assert building.iris_code == ""
        assert building.competitor_presence == 1
        assert building.raw_payload["custom_field"] == "kept in raw payload"

    async def test_non_200_raises_fetch_error(self):
        client = _make_client(_json_handler({"exc": "boom"}, status_code=500))

        with pytest.raises(ERPFetchError) as exc_info:
            await client.fetch_all(EntityKind.BUILDING)

        assert exc_info.value.kind is EntityKind.BUILDING
        assert "500" in exc_info.value.reason

    async def test_malformed_json_raises_fetch_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>not json</html>")

        client = _make_client(handler)

        with pytest.raises(ERPFetchError):
            await client.fetch_all(EntityKind.ACQUISITION)

    @pytest.mark.parametrize("body", [{"message": []}, {"data": {"name": "x"}}, ["a", "b"]])
    async def test_missing_data_array_raises_fetch_error(self, body):
        client = _make_client(_json_handler(body))

        with pytest.raises(ERPFetchError):
            await client.fetch_all(EntityKind.ACQUISITION)

    async def test_transport_error_raises_fetch_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _make_client(handler)

        with pytest.raises(ERPFetchError) as exc_info:
            await client.fetch_all(EntityKind.BUILDING)

        assert "connection refused" in exc_info.value.reason

    async def test_malformed_items_are_skipped(self):
        body = {
            "data": [
                {"name": "ACQ-1", "building_project": "P1"},
                "not an object",
                {"name": "ACQ-2", "building_project": {"nested": "wrong type"}},
                {"name": "ACQ-3", "building_project": "P3"},
            ]
        }
        client = _make_client(_json_handler(body))

        records = await client.fetch_all(EntityKind.ACQUISITION)

        assert [r.external_id for r in records] == ["ACQ-1", "ACQ-3"]
        assert all(isinstance(r, ERPAcquisition) for r in records)

    async def test_empty_snapshot(self):
        client = _make_client(_json_handler({"data": []}))
        assert await client.fetch_all(EntityKind.LETTER_OF_INTENT) == []


# ── Schemas ────────────────────────────────────────────────────────────────


class TestERPSchemas:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2026-01-15 10:30:00.123456", datetime(2026, 1, 15, 10, 30, 0, 123456)),
            ("2026-01-15 10:30:00", datetime(2026, 1, 15, 10, 30, 0)),
            ("2026-01-15", datetime(2026, 1, 15)),
            ("15/01/2026", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parse_erp_time(self, value, expected):
        assert parse_erp_time(value) == expected

    def test_workflow_record_timestamps(self):
        proposal = ERPBuildingProposal.from_payload(
            {
                "name": "BP-1",
                "modified": "2026-02-01 08:00:00.5",
                "creation": "garbage",
                "number_of_screen": 4,
            }
        )
        assert proposal.modified_at == datetime(2026, 2, 1, 8, 0, 0, 500000)
        assert proposal.created_at_erp is None
        assert proposal.number_of_screen == 4

    def test_raw_payload_is_a_copy_and_not_serialized(self):
        payload = {"name": "ACQ-1", "workflow_state": "Draft"}
        record = ERPAcquisition.from_payload(payload)
        payload["workflow_state"] = "changed"

        assert record.raw_payload["workflow_state"] == "Draft"
        assert "raw_payload" not in json.loads(record.model_dump_json())
