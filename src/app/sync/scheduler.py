"""Background scheduler for periodic ERP sync passes.

Provides ERPSyncScheduler, an APScheduler wrapper with one interval job per
entity kind. Each job runs immediately at start and then every
ERP_SYNC_INTERVAL_MINUTES. Jobs use max_instances=1 and coalesce=True, so a
pass that overruns its interval delays the next tick instead of stacking.

Exports:
    ERPSyncScheduler: Async scheduler driving one SyncOrchestrator per kind.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import datetime, timezone

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.app.config import DEFAULT_SYNC_INTERVAL_MINUTES
from src.app.sync.engine import SyncOrchestrator

logger = structlog.get_logger(__name__)


def job_id_for(orchestrator: SyncOrchestrator) -> str:
    return f"erp_sync_{orchestrator.kind.value}"


class ERPSyncScheduler:
    """Interval scheduler for ERP sync, one independent job per kind.

    A failing pass is logged and the schedule continues. shutdown() sets a
    shared stop event so running passes end between records.

    Args:
        orchestrators: One orchestrator per synced entity kind.
        interval_minutes: Minutes between passes; non-positive falls back to 30.
    """

    def __init__(
        self,
        orchestrators: Sequence[SyncOrchestrator],
        interval_minutes: int = DEFAULT_SYNC_INTERVAL_MINUTES,
    ) -> None:
        self._orchestrators = list(orchestrators)
        self._interval_minutes = (
            interval_minutes if interval_minutes > 0 else DEFAULT_SYNC_INTERVAL_MINUTES
        )
        self._scheduler: AsyncIOScheduler | None = None
        self._stop_event = asyncio.Event()
        self._started = False

    @property
    def interval_minutes(self) -> int:
        return self._interval_minutes

    @property
    def running(self) -> bool:
        return self._started

    def start(self) -> bool:
        """Start the scheduler. Returns False if it could not be started."""
        if self._started:
            return True

        try:
            self._scheduler = AsyncIOScheduler(timezone=timezone.utc)
            self._stop_event.clear()
            now = datetime.now(timezone.utc)

            for orchestrator in self._orchestrators:
                self._scheduler.add_job(
                    self._run_pass,
                    trigger=IntervalTrigger(minutes=self._interval_minutes),
                    args=[orchestrator],
                    id=job_id_for(orchestrator),
                    name=f"ERP sync for {orchestrator.kind.value}",
                    max_instances=1,
                    coalesce=True,
                    next_run_time=now,
                    replace_existing=True,
                )

            self._scheduler.start()
            self._started = True
            logger.info(
                "erp_sync_scheduler.started",
                jobs=[job_id_for(o) for o in self._orchestrators],
                interval_minutes=self._interval_minutes,
            )
            return True

        except Exception as exc:
            logger.warning("erp_sync_scheduler.start_failed", error=str(exc))
            return False

    def shutdown(self) -> None:
        """Stop scheduling and ask running passes to stop between records."""
        self._stop_event.set()
        if self._scheduler is not None and self._started:
            self._scheduler.shutdown(wait=False)
            self._started = False
            logger.info("erp_sync_scheduler.stopped")

    async def _run_pass(self, orchestrator: SyncOrchestrator) -> None:
        """Scheduled job body. Never raises, so the job keeps its schedule."""
        try:
            result = await orchestrator.run_once(self._stop_event)
        except Exception as exc:
            logger.error(
                "erp_sync_scheduler.pass_crashed",
                kind=orchestrator.kind.value,
                error=str(exc),
            )
            return

        logger.debug(
            "erp_sync_scheduler.pass_finished",
            kind=orchestrator.kind.value,
            status=result.status.value,
        )
