"""Snapshot repository -- replaces one ERP snapshot table per sync pass.

Provides SnapshotRepository (a SnapshotStore) bound to one snapshot model.
replace_all() runs a single transaction: TRUNCATE, then one SAVEPOINT per
inserted row. A row that fails is rolled back to its savepoint and skipped,
and the outer transaction still commits. Failure of the truncate or the
final commit rolls everything back and raises SnapshotReplaceError.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from typing import Any

import structlog
from sqlalchemy import Insert, insert, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.app.snapshots.models import SnapshotMixin
from src.app.snapshots.schemas import SnapshotRow
from src.app.sync.store import SnapshotReplaceError, SnapshotStore

logger = structlog.get_logger(__name__)

class SnapshotRepository(SnapshotStore):
    """Full-refresh persistence for one snapshot table.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
        model: Snapshot model whose table is replaced.
    """

    def __init__(
        self,
        session_factory: Callable[..., AsyncGenerator[AsyncSession, None]],
        model: type[SnapshotMixin],
    ) -> None:
        self._session_factory = session_factory
        self._model = model
        self.table_name: str = model.__tablename__  # type: ignore[attr-defined]
        self._has_screen_count = hasattr(model, "number_of_screen")

    def _row_values(self, row: SnapshotRow) -> dict[str, Any]:
        values = row.model_dump()
        if not self._has_screen_count:
            values.pop("number_of_screen", None)
        return values

    def build_insert(self, row: SnapshotRow) -> Insert:
        return insert(self._model).values(**self._row_values(row))

    def build_truncate(self):
        return text(f"TRUNCATE TABLE {self.table_name} RESTART IDENTITY")

    async def replace_all(self, rows: list[SnapshotRow]) -> int:
        """Replace the table contents with ``rows``.

        Args:
            rows: Fresh rows built from the ERP snapshot.

        Returns:
            Number of rows inserted (rows that failed are excluded).

        Raises:
            SnapshotReplaceError: Truncate or commit failed; nothing changed.
        """
        async for session in self._session_factory():
            try:
                await session.execute(self.build_truncate())
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error("snapshots.truncate_failed", table=self.table_name, error=str(exc))
                raise SnapshotReplaceError(self.table_name, str(exc)) from exc

            inserted = 0
            for row in rows:
                try:
                    async with session.begin_nested():
                        await session.execute(self.build_insert(row))
                except SQLAlchemyError as exc:
                    logger.warning(
                        "snapshots.row_skipped",
                        table=self.table_name,
                        external_id=row.external_id,
                        error=str(exc),
                    )
                    continue
                inserted += 1

            try:
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error("snapshots.commit_failed", table=self.table_name, error=str(exc))
                raise SnapshotReplaceError(self.table_name, str(exc)) from exc

            logger.info(
                "snapshots.replaced",
                table=self.table_name,
                inserted=inserted,
                skipped=len(rows) - inserted,
            )
            return inserted
