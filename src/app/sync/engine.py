"""Sync orchestrator -- runs one ERP sync pass for one entity kind.

A pass moves through IDLE -> FETCHING -> RECONCILING -> COMPLETED. A fetch
failure ends it in FETCH_FAILED before anything is written; a
transaction-fatal store error ends it in FAILED. Per-record failures never
end a pass, they are counted on the SyncPassResult.

Passes of the same kind are serialized by an asyncio.Lock, so the manual
trigger and the scheduled job never overlap.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from datetime import datetime, timezone

import structlog

from src.app.core.monitoring import record_sync_pass
from src.app.erp.client import ERPClient, ERPFetchError
from src.app.erp.schemas import EntityKind, ERPRecord
from src.app.sync.reconciler import Reconciler
from src.app.sync.schemas import SyncPassResult, SyncStatus, SyncStrategy

logger = structlog.get_logger(__name__)


class SyncOrchestrator:
    """Fetch-then-reconcile driver for one entity kind.

    Args:
        client: ERP client used to fetch the snapshot and related kinds.
        reconciler: Reconciler for this kind.
    """

    def __init__(self, client: ERPClient, reconciler: Reconciler) -> None:
        self._client = client
        self._reconciler = reconciler
        self._lock = asyncio.Lock()
        self._status = SyncStatus.IDLE
        self._last_result: SyncPassResult | None = None

    @property
    def kind(self) -> EntityKind:
        return self._reconciler.kind

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def last_result(self) -> SyncPassResult | None:
        """Result of the most recently finished pass, if any."""
        return self._last_result

    def is_running(self) -> bool:
        return self._lock.locked()

    async def wait_until_idle(self) -> None:
        """Return once no pass of this kind is running."""
        async with self._lock:
            pass

    async def run_once(self, stop_event: asyncio.Event | None = None) -> SyncPassResult:
        """Run one pass, waiting for any pass of the same kind to finish first.

        Args:
            stop_event: When set, reconciliation stops before the next record.

        Returns:
            SyncPassResult for this pass. Never raises for sync errors.
        """
        async with self._lock:
            result = await self._run(stop_event)
        self._last_result = result
        record_sync_pass(result)
        return result

    async def _run(self, stop_event: asyncio.Event | None) -> SyncPassResult:
        kind = self.kind
        result = SyncPassResult(
            kind=kind,
            strategy=self._reconciler.strategy,
            started_at=datetime.now(timezone.utc),
        )
        started = time.monotonic()
        logger.info("sync.pass_started", kind=kind.value, strategy=result.strategy.value)

        self._set_status(result, SyncStatus.FETCHING)
        try:
            records = await self._client.fetch_all(kind)
            related: dict[EntityKind, list[ERPRecord]] = {}
            for related_kind in self._reconciler.related_kinds:
                related[related_kind] = await self._client.fetch_all(related_kind)
        except ERPFetchError as exc:
            result.error = str(exc)
            self._set_status(result, SyncStatus.FETCH_FAILED)
            self._finish(result, started)
            logger.error(
                "sync.pass_fetch_failed",
                kind=kind.value,
                failed_kind=exc.kind.value,
                error=exc.reason,
                duration_ms=result.duration_ms,
            )
            return result

        result.fetched = len(records)
        self._set_status(result, SyncStatus.RECONCILING)

        should_stop = stop_event.is_set if stop_event is not None else (lambda: False)
        try:
            await self._reconciler.apply(records, related, result, should_stop)
        except Exception as exc:
            result.error = str(exc)
            self._set_status(result, SyncStatus.FAILED)
            self._finish(result, started)
            logger.error(
                "sync.pass_failed",
                kind=kind.value,
                error=str(exc),
                fetched=result.fetched,
                duration_ms=result.duration_ms,
            )
            return result

        self._set_status(result, SyncStatus.COMPLETED)
        self._finish(result, started)
        self._log_summary(result)
        return result

    def _set_status(self, result: SyncPassResult, status: SyncStatus) -> None:
        result.status = status
        self._status = status

    @staticmethod
    def _finish(result: SyncPassResult, started: float) -> None:
        result.finished_at = datetime.now(timezone.utc)
        result.duration_ms = int((time.monotonic() - started) * 1000)

    @staticmethod
    def _log_summary(result: SyncPassResult) -> None:
        if result.strategy is SyncStrategy.UPSERT:
            counts = {"created": result.created, "updated": result.updated}
        else:
            counts = {"inserted": result.inserted}

        logger.info(
            "sync.pass_completed",
            kind=result.kind.value,
            fetched=result.fetched,
            skipped=result.skipped,
            cancelled=result.cancelled,
            duration_ms=result.duration_ms,
            **counts,
        )
        if result.skipped:
            logger.warning(
                "sync.pass_partial_failure",
                kind=result.kind.value,
                skipped=result.skipped,
                errors=result.errors,
            )


async def wait_for_idle(orchestrators: Iterable[SyncOrchestrator], timeout: float) -> bool:
    """Wait up to ``timeout`` seconds for running passes to finish.

    Returns False if a pass was still running when the timeout expired.
    """
    running = [o for o in orchestrators if o.is_running()]
    if not running:
        return True

    kinds = [o.kind.value for o in running]
    logger.info("sync.waiting_for_running_passes", kinds=kinds, timeout=timeout)
    try:
        await asyncio.wait_for(
            asyncio.gather(*(o.wait_until_idle() for o in running)),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning("sync.running_passes_timed_out", kinds=kinds, timeout=timeout)
        return False
    return True
