"""ERP sync API endpoints.

Provides:
- POST /api/v1/sync/{kind}: Run one sync pass now (admin)
- GET /api/v1/sync/status: Last pass result and current state per kind

The trigger reports only whether the pass's fetch step succeeded; per-record
failures are logged and counted in the summary, never raised. Responses carry
counts only: per-record error messages stay in the logs.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.app.api.deps import get_sync_orchestrators, require_admin_key
from src.app.erp.schemas import EntityKind
from src.app.sync.schemas import SyncPassResult, SyncStatus, SyncStrategy

router = APIRouter(prefix="/api/v1/sync", tags=["sync"])


class SyncPassSummary(BaseModel):
    """Counts and timing of one pass, as served to API callers.

    ``error`` is set only when the ERP fetch failed.
    """

    kind: EntityKind
    strategy: SyncStrategy
    status: SyncStatus
    fetched: int = 0
    created: int = 0
    updated: int = 0
    inserted: int = 0
    skipped: int = 0
    cancelled: bool = False
    error: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    duration_ms: int | None = None

    @classmethod
    def from_result(cls, result: SyncPassResult) -> SyncPassSummary:
        data = result.model_dump(exclude={"errors", "error"})
        if result.status == SyncStatus.FETCH_FAILED:
            data["error"] = result.error
        return cls(**data)


class SyncKindStatus(BaseModel):
    kind: EntityKind
    status: SyncStatus
    running: bool
    last_result: SyncPassSummary | None = None


@router.get("/status", response_model=list[SyncKindStatus])
async def get_sync_status(request: Request) -> list[SyncKindStatus]:
    """Current state and last finished pass for every synced kind."""
    orchestrators = get_sync_orchestrators(request)
    return [
        SyncKindStatus(
            kind=kind,
            status=orchestrator.status,
            running=orchestrator.is_running(),
            last_result=(
                SyncPassSummary.from_result(orchestrator.last_result)
                if orchestrator.last_result is not None
                else None
            ),
        )
        for kind, orchestrator in orchestrators.items()
    ]


@router.post(
    "/{kind}",
    response_model=SyncPassSummary,
    dependencies=[Depends(require_admin_key)],
)
async def trigger_sync(kind: EntityKind, request: Request):
    """Run one pass for ``kind`` and return its summary.

    Returns 502 with the summary body when the ERP fetch failed.
    """
    orchestrators = get_sync_orchestrators(request)
    orchestrator = orchestrators.get(kind)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Sync not configured for {kind.value}",
        )

    result = await orchestrator.run_once()
    summary = SyncPassSummary.from_result(result)
    if result.status == SyncStatus.FETCH_FAILED:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=summary.model_dump(mode="json"),
        )
    return summary
