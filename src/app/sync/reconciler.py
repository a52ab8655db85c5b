"""Per-kind reconcilers that apply an ERP snapshot to the local store.

Provides:
- Reconciler: Interface the orchestrator drives for one pass
- BuildingReconciler: Upsert by external id, preserving user-owned fields
- FullRefreshReconciler: Truncate-and-reload for the acquisition pipeline doctypes

Upsert records are processed one at a time, in fetch order. Each record's
lookup and write share one short transaction; a failure rolls back only that
record, is logged and counted, and the next record proceeds.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

import structlog

from src.app.buildings.schemas import BuildingERPPatch, BuildingUserFields
from src.app.erp.schemas import EntityKind, ERPBuilding, ERPRecord, ERPWorkflowRecord
from src.app.snapshots.schemas import SnapshotRow
from src.app.sync.enrichment import BuildingEnrichment, build_images, calculate_lcd_presence_status
from src.app.sync.schemas import SyncOutcome, SyncPassResult, SyncStrategy
from src.app.sync.store import BuildingStore, SnapshotStore

logger = structlog.get_logger(__name__)

StopCheck = Callable[[], bool]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _none_if_empty(value: str) -> str | None:
    return value or None


class Reconciler(ABC):
    """Applies one fetched snapshot of ``kind`` to the local store.

    Attributes:
        kind: Entity kind whose snapshot this reconciler consumes.
        strategy: Upsert or full refresh.
        related_kinds: Other kinds that must be fetched in the same pass.
    """

    kind: EntityKind
    strategy: SyncStrategy
    related_kinds: tuple[EntityKind, ...] = ()

    @abstractmethod
    async def apply(
        self,
        records: Sequence[ERPRecord],
        related: dict[EntityKind, list[ERPRecord]],
        result: SyncPassResult,
        should_stop: StopCheck,
    ) -> None:
        """Reconcile ``records`` and update counters on ``result`` in place."""
        ...


# ── Upsert: Buildings ──────────────────────────────────────────────────────


class BuildingReconciler(Reconciler):
    """Create-or-update buildings by ERP building id.

    Args:
        store: Building store the reconciler reads and writes through.
    """

    kind = EntityKind.BUILDING
    strategy = SyncStrategy.UPSERT
    related_kinds = (EntityKind.ACQUISITION, EntityKind.BUILDING_PROPOSAL)

    def __init__(self, store: BuildingStore) -> None:
        self._store = store

    def build_patch(
        self,
        record: ERPBuilding,
        enrichment: BuildingEnrichment,
        synced_at: datetime,
    ) -> BuildingERPPatch:
        """Derive every ERP-owned column from one ERP building."""
        workflow_state = enrichment.workflow_state_for(record.building_project)
        screen_count = enrichment.screen_count_for(record.building_project)
        presence = record.competitor_presence != 0
        exclusive = record.competitor_exclusive != 0

        lcd_status = calculate_lcd_presence_status(
            presence, exclusive, workflow_state, screen_count
        )
        logger.debug(
            "sync.building_enriched",
            external_id=record.external_id,
            building_project=record.building_project,
            workflow_state=workflow_state,
            screen_count=screen_count,
            lcd_presence_status=lcd_status,
        )

        return BuildingERPPatch(
            external_building_id=record.external_id,
            iris_code=_none_if_empty(record.iris_code),
            name=_none_if_empty(record.building_name),
            project_name=_none_if_empty(record.building_project),
            audience=record.audience_actual,
            impression=record.audience_projection,
            cbd_area=_none_if_empty(record.cbd_area),
            building_status=_none_if_empty(workflow_state),
            competitor_location=presence,
            competitor_exclusive=exclusive,
            competitor_presence=presence,
            subdistrict=_none_if_empty(record.subdistrict),
            citytown=_none_if_empty(record.citytown),
            province=_none_if_empty(record.province),
            grade_resource=_none_if_empty(record.grade_resource),
            building_type=_none_if_empty(record.building_type),
            completion_year=record.completion_year or None,
            latitude=record.latitude or None,
            longitude=record.longitude or None,
            images=build_images(record),
            lcd_presence_status=_none_if_empty(lcd_status),
            synced_at=synced_at,
        )

    async def reconcile(self, record: ERPBuilding, enrichment: BuildingEnrichment) -> SyncOutcome:
        """Create or update the local row for one ERP building.

        The lookup and the write run in one transaction. The existing row's
        user-owned fields are never read or written here: create starts them
        at defaults, update writes ERP-owned columns only.

        Raises:
            Any store error; the caller isolates it to this record.
        """
        async with self._store.transaction() as store:
            existing = await store.find_by_external_id(record.external_id)
            patch = self.build_patch(record, enrichment, _utcnow())

            if existing is None:
                await store.create(patch, BuildingUserFields())
                return SyncOutcome.CREATED

            await store.update_erp_fields(existing.id, patch)
            return SyncOutcome.UPDATED

    async def apply(
        self,
        records: Sequence[ERPRecord],
        related: dict[EntityKind, list[ERPRecord]],
        result: SyncPassResult,
        should_stop: StopCheck,
    ) -> None:
        enrichment = BuildingEnrichment.from_records(
            related.get(EntityKind.ACQUISITION, []),  # type: ignore[arg-type]
            related.get(EntityKind.BUILDING_PROPOSAL, []),  # type: ignore[arg-type]
        )
        seen: set[str] = set()

        for index, record in enumerate(records):
            if should_stop():
                result.cancelled = True
                logger.warning(
                    "sync.pass_cancelled",
                    kind=self.kind.value,
                    processed=index,
                    remaining=len(records) - index,
                )
                return

            external_id = record.external_id
            if not external_id:
                logger.warning("sync.empty_external_id", kind=self.kind.value, name=record.name)
            if external_id in seen:
                logger.warning("sync.duplicate_external_id", kind=self.kind.value, external_id=external_id)
            seen.add(external_id)

            try:
                # An in-flight write finishes even if the pass task is cancelled
                outcome = await asyncio.shield(self.reconcile(record, enrichment))  # type: ignore[arg-type]
            except Exception as exc:
                logger.error(
                    "sync.record_failed",
                    kind=self.kind.value,
                    external_id=external_id,
                    error=str(exc),
                )
                result.record_error(f"{external_id}: {exc}")
                continue

            if outcome is SyncOutcome.CREATED:
                result.created += 1
            else:
                result.updated += 1


# ── Full Refresh: Acquisition Pipeline ─────────────────────────────────────


class FullRefreshReconciler(Reconciler):
    """Replace a snapshot table with the fetched records, one row each.

    Args:
        kind: Acquisitions, building proposals, or letters of intent.
        store: Snapshot store for that kind's table.
    """

    strategy = SyncStrategy.FULL_REFRESH

    def __init__(self, kind: EntityKind, store: SnapshotStore) -> None:
        self.kind = kind
        self._store = store

    @staticmethod
    def build_row(record: ERPWorkflowRecord, synced_at: datetime) -> SnapshotRow:
        return SnapshotRow(
            external_id=record.external_id,
            workflow_state=_none_if_empty(record.workflow_state),
            acquisition_person=_none_if_empty(record.acquisition_person),
            building_project=_none_if_empty(record.building_project),
            status=_none_if_empty(record.status),
            number_of_screen=getattr(record, "number_of_screen", None),
            modified=record.modified_at,
            created_at_erp=record.created_at_erp,
            synced_at=synced_at,
            raw_data=record.raw_payload,
        )

    async def apply(
        self,
        records: Sequence[ERPRecord],
        related: dict[EntityKind, list[ERPRecord]],
        result: SyncPassResult,
        should_stop: StopCheck,
    ) -> None:
        """Replace the table in one transaction.

        Stop requests are honoured only before the transaction starts.
        SnapshotReplaceError propagates to the orchestrator.
        """
        if should_stop():
            result.cancelled = True
            logger.warning("sync.pass_cancelled", kind=self.kind.value, processed=0, remaining=len(records))
            return

        synced_at = _utcnow()
        rows = [self.build_row(record, synced_at) for record in records]  # type: ignore[arg-type]
        inserted = await asyncio.shield(self._store.replace_all(rows))
        result.inserted = inserted
        result.skipped += len(rows) - inserted
