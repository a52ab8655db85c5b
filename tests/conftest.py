"""Shared test doubles for the ERP sync tests.

Provides:
- InMemoryBuildingStore: BuildingStore that keeps rows in a dict and records calls
- InMemorySnapshotStore: SnapshotStore with injectable row and transaction failures
- FakeERPClient: Returns canned records (or raises) per entity kind

No database or network is used anywhere in the test suite.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import pytest

from src.app.buildings.schemas import (
    BuildingERPPatch,
    BuildingRead,
    BuildingUserFields,
    BuildingUserUpdate,
)
from src.app.erp.client import ERPFetchError
from src.app.erp.schemas import EntityKind, ERPRecord
from src.app.snapshots.schemas import SnapshotRow
from src.app.sync.field_ownership import (
    erp_create_values,
    erp_update_values,
    user_update_values,
)
from src.app.sync.store import (
    BuildingNotFoundError,
    BuildingStore,
    SnapshotReplaceError,
    SnapshotStore,
)


# ── In-Memory Test Doubles ───────────────────────────────────────────────────


class InMemoryBuildingStore(BuildingStore):
    """In-memory BuildingStore for testing without database.

    ``fail_on`` holds external ids whose create/update raise, and
    ``fail_lookup_on`` external ids whose lookup raises. transaction()
    restores the rows it started with when its block raises.
    """

    def __init__(self) -> None:
        self.rows: dict[int, BuildingRead] = {}
        self.calls: list[tuple[str, object]] = []
        self.fail_on: set[str] = set()
        self.fail_lookup_on: set[str] = set()
        self.transactions = 0
        self.rollbacks = 0
        self._next_id = 1

    def seed(self, external_id: str, **fields) -> BuildingRead:
        """Insert a row directly, as if created by an earlier pass."""
        row = BuildingRead(id=self._next_id, external_building_id=external_id, **fields)
        self.rows[row.id] = row
        self._next_id += 1
        return row

    def by_external_id(self, external_id: str) -> BuildingRead | None:
        for row in self.rows.values():
            if row.external_building_id == external_id:
                return row
        return None

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[InMemoryBuildingStore]:
        self.transactions += 1
        saved_rows, saved_next_id = dict(self.rows), self._next_id
        try:
            yield self
        except Exception:
            self.rows, self._next_id = saved_rows, saved_next_id
            self.rollbacks += 1
            raise

    async def find_by_external_id(self, external_id: str) -> BuildingRead | None:
        self.calls.append(("find_by_external_id", external_id))
        if external_id in self.fail_lookup_on:
            raise RuntimeError(f"lookup failed for {external_id}")
        return self.by_external_id(external_id)

    async def create(
        self, patch: BuildingERPPatch, user_fields: BuildingUserFields
    ) -> BuildingRead:
        self.calls.append(("create", patch))
        if patch.external_building_id in self.fail_on:
            raise RuntimeError(f"insert failed for {patch.external_building_id}")
        if self.by_external_id(patch.external_building_id) is not None:
            raise RuntimeError("duplicate key value violates unique constraint")
        now = datetime.now(timezone.utc)
        row = BuildingRead(
            id=self._next_id,
            created_at=now,
            **erp_create_values(patch, user_fields),
        )
        self.rows[row.id] = row
        self._next_id += 1
        return row

    async def update_erp_fields(self, building_id: int, patch: BuildingERPPatch) -> BuildingRead:
        self.calls.append(("update_erp_fields", patch))
        if patch.external_building_id in self.fail_on:
            raise RuntimeError(f"update failed for {patch.external_building_id}")
        existing = self.rows.get(building_id)
        if existing is None:
            raise BuildingNotFoundError(building_id)
        row = BuildingRead.model_validate(
            {
                **existing.model_dump(),
                **erp_update_values(patch),
                "updated_at": datetime.now(timezone.utc),
            }
        )
        self.rows[building_id] = row
        return row

    async def get(self, building_id: int) -> BuildingRead | None:
        self.calls.append(("get", building_id))
        return self.rows.get(building_id)

    async def update_user_fields(
        self, building_id: int, update_data: BuildingUserUpdate
    ) -> BuildingRead | None:
        self.calls.append(("update_user_fields", update_data))
        existing = self.rows.get(building_id)
        if existing is None:
            return None
        row = existing.model_copy(update=user_update_values(update_data))
        self.rows[building_id] = row
        return row


class InMemorySnapshotStore(SnapshotStore):
    """In-memory SnapshotStore.

    Rows whose external id is in ``fail_rows`` are skipped like a failed
    savepoint; ``fail_replace`` makes the whole transaction fail.
    """

    def __init__(self, table_name: str = "acquisitions", rows: list[SnapshotRow] | None = None) -> None:
        self.table_name = table_name
        self.rows: list[SnapshotRow] = list(rows or [])
        self.fail_rows: set[str] = set()
        self.fail_replace = False
        self.replace_calls = 0

    async def replace_all(self, rows: list[SnapshotRow]) -> int:
        self.replace_calls += 1
        if self.fail_replace:
            raise SnapshotReplaceError(self.table_name, "truncate failed")
        self.rows = [row for row in rows if row.external_id not in self.fail_rows]
        return len(self.rows)


class FakeERPClient:
    """Stands in for ERPClient.fetch_all with canned responses per kind."""

    def __init__(self, responses: dict[EntityKind, list[ERPRecord] | Exception] | None = None) -> None:
        self.responses = dict(responses or {})
        self.fetched: list[EntityKind] = []

    async def fetch_all(self, kind: EntityKind) -> list[ERPRecord]:
        self.fetched.append(kind)
        response = self.responses.get(kind, [])
        if isinstance(response, Exception):
            raise response
        return list(response)


def fetch_error(kind: EntityKind, reason: str = "ERP API returned status 500") -> ERPFetchError:
    return ERPFetchError(kind, reason)


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def building_store() -> InMemoryBuildingStore:
    return InMemoryBuildingStore()


@pytest.fixture
def snapshot_store() -> InMemorySnapshotStore:
    return InMemorySnapshotStore()


@pytest.fixture
def fake_erp_client() -> FakeERPClient:
    return FakeERPClient()


@pytest.fixture
def make_fetch_error():
    return fetch_error
