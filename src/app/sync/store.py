"""Record store interfaces the reconcilers write through.

BuildingStore and SnapshotStore are implemented by the PostgreSQL
repositories (BuildingRepository, SnapshotRepository) and by in-memory
doubles in tests. Errors raised by an implementation propagate to the
reconciler, which isolates them per record.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager

from src.app.buildings.schemas import (
    BuildingERPPatch,
    BuildingRead,
    BuildingUserFields,
    BuildingUserUpdate,
)
from src.app.snapshots.schemas import SnapshotRow


class BuildingNotFoundError(LookupError):
    """No building row with the given id."""

    def __init__(self, building_id: int) -> None:
        super().__init__(f"building {building_id} not found")
        self.building_id = building_id


class SnapshotReplaceError(Exception):
    """A snapshot table could not be replaced; the transaction was rolled back."""

    def __init__(self, table: str, reason: str) -> None:
        super().__init__(f"failed to replace {table}: {reason}")
        self.table = table
        self.reason = reason


class BuildingStore(ABC):
    """Building rows keyed by internal id and by ERP external id.

    Methods:
        transaction: Unit of work; calls on the yielded store share one transaction.
        find_by_external_id: Look up the row mapped to an ERP building.
        create: Insert a row from an ERP patch plus initial user fields.
        update_erp_fields: Overwrite only ERP-owned columns of a row.
        get: Fetch a row by internal id.
        update_user_fields: Overwrite only user-owned columns of a row.
    """

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[BuildingStore]:
        """Yield a store whose calls commit together when the block exits.

        An exception inside the block rolls the whole transaction back.
        """
        ...

    @abstractmethod
    async def find_by_external_id(self, external_id: str) -> BuildingRead | None:
        """Return the building mapped to ``external_id``, or None."""
        ...

    @abstractmethod
    async def create(
        self, patch: BuildingERPPatch, user_fields: BuildingUserFields
    ) -> BuildingRead:
        """Insert a building; the id is assigned by the store."""
        ...

    @abstractmethod
    async def update_erp_fields(self, building_id: int, patch: BuildingERPPatch) -> BuildingRead:
        """Overwrite ERP-owned columns. Raises BuildingNotFoundError."""
        ...

    @abstractmethod
    async def get(self, building_id: int) -> BuildingRead | None:
        """Return the building with ``building_id``, or None."""
        ...

    @abstractmethod
    async def update_user_fields(
        self, building_id: int, update_data: BuildingUserUpdate
    ) -> BuildingRead | None:
        """Overwrite user-owned columns; None when the building does not exist."""
        ...


class SnapshotStore(ABC):
    """A table that is replaced wholesale from an ERP snapshot."""

    table_name: str

    @abstractmethod
    async def replace_all(self, rows: list[SnapshotRow]) -> int:
        """Truncate and insert ``rows`` in one transaction.

        Rows that fail to insert are skipped. Returns the inserted count.
        Raises SnapshotReplaceError when the transaction itself fails.
        """
        ...
