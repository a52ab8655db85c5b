"""Pydantic schemas for sync passes.

Defines:
- SyncStatus: Orchestrator state for one pass
- SyncStrategy: Upsert-by-external-id or full refresh
- SyncOutcome: Result of reconciling one upsert record
- SyncPassResult: Aggregate outcome of one pass, logged and served by the API
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from src.app.erp.schemas import EntityKind

MAX_REPORTED_ERRORS = 50


class SyncStatus(str, Enum):
    """Orchestrator state. FETCH_FAILED and FAILED are terminal for a pass."""

    IDLE = "idle"
    FETCHING = "fetching"
    RECONCILING = "reconciling"
    COMPLETED = "completed"
    FETCH_FAILED = "fetch_failed"
    FAILED = "failed"


class SyncStrategy(str, Enum):
    UPSERT = "upsert"
    FULL_REFRESH = "full_refresh"


class SyncOutcome(str, Enum):
    """Per-record outcome of the upsert strategy."""

    CREATED = "created"
    UPDATED = "updated"


class SyncPassResult(BaseModel):
    """Summary of one sync pass for one entity kind.

    Upsert passes fill created/updated; full-refresh passes fill inserted.
    ``skipped`` counts records that failed individually. ``error`` holds the
    pass-terminating error, if any.
    """

    kind: EntityKind
    strategy: SyncStrategy
    status: SyncStatus = SyncStatus.IDLE
    fetched: int = 0
    created: int = 0
    updated: int = 0
    inserted: int = 0
    skipped: int = 0
    cancelled: bool = False
    errors: list[str] = Field(default_factory=list)
    error: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    duration_ms: int | None = None

    def record_error(self, message: str) -> None:
        """Count a skipped record, keeping at most MAX_REPORTED_ERRORS messages."""
        self.skipped += 1
        if len(self.errors) < MAX_REPORTED_ERRORS:
            self.errors.append(message)

    @property
    def succeeded(self) -> bool:
        return self.status == SyncStatus.COMPLETED
