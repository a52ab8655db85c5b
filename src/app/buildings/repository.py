"""Building repository -- async PostgreSQL implementation of BuildingStore.

Provides BuildingRepository with the session_factory callable pattern. A
method called on the repository opens its own short session and commits
before returning. The reconciler instead works inside transaction(), so the
lookup and the write for one ERP record share one transaction.

UPDATE statements are assembled by build_erp_update() and
build_user_update() from the field ownership value builders; the SET
clause of a sync update therefore never names a user-owned column.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import Update, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.app.buildings.models import BuildingModel
from src.app.buildings.schemas import (
    BuildingERPPatch,
    BuildingImage,
    BuildingRead,
    BuildingUserFields,
    BuildingUserUpdate,
)
from src.app.sync.field_ownership import (
    erp_create_values,
    erp_update_values,
    user_update_values,
)
from src.app.sync.store import BuildingNotFoundError, BuildingStore

logger = structlog.get_logger(__name__)


# ── Serialization Helpers ───────────────────────────────────────────────────


def _model_to_building(model: BuildingModel) -> BuildingRead:
    """Convert BuildingModel to BuildingRead schema."""
    images = []
    for item in model.images or []:
        try:
            images.append(BuildingImage.model_validate(item))
        except ValueError:
            logger.warning("buildings.invalid_image", building_id=model.id, image=item)

    return BuildingRead(
        id=model.id,
        external_building_id=model.external_building_id,
        iris_code=model.iris_code,
        name=model.name,
        project_name=model.project_name,
        audience=model.audience or 0,
        impression=model.impression or 0,
        cbd_area=model.cbd_area,
        building_status=model.building_status,
        competitor_location=bool(model.competitor_location),
        competitor_exclusive=bool(model.competitor_exclusive),
        competitor_presence=bool(model.competitor_presence),
        subdistrict=model.subdistrict,
        citytown=model.citytown,
        province=model.province,
        grade_resource=model.grade_resource,
        building_type=model.building_type,
        completion_year=model.completion_year,
        latitude=model.latitude,
        longitude=model.longitude,
        images=images,
        lcd_presence_status=model.lcd_presence_status,
        sellable=model.sellable or "",
        connectivity=model.connectivity or "",
        resource_type=model.resource_type,
        synced_at=model.synced_at,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


# ── Statement Builders ──────────────────────────────────────────────────────


def _update_statement(building_id: int, values: dict[str, Any]) -> Update:
    values = dict(values)
    values["updated_at"] = func.now()
    return (
        update(BuildingModel)
        .where(BuildingModel.id == building_id)
        .values(**values)
        .returning(BuildingModel)
    )


def build_erp_update(building_id: int, patch: BuildingERPPatch) -> Update:
    """UPDATE that writes ERP-owned columns (and updated_at) only."""
    return _update_statement(building_id, erp_update_values(patch))


def build_user_update(building_id: int, update_data: BuildingUserUpdate) -> Update:
    """UPDATE that writes user-owned columns (and updated_at) only."""
    return _update_statement(building_id, user_update_values(update_data))


# ── Repository ──────────────────────────────────────────────────────────────


class BuildingRepository(BuildingStore):
    """Async building persistence.

    An unbound repository opens one session per call and commits it before
    returning. transaction() yields a repository bound to a single session;
    calls on it share that transaction, which commits when the block exits
    and rolls back if it raises.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
        session: Session this repository is bound to, if any.
    """

    def __init__(
        self,
        session_factory: Callable[..., AsyncGenerator[AsyncSession, None]],
        session: AsyncSession | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._session = session

    @asynccontextmanager
    async def _session_scope(self) -> AsyncIterator[AsyncSession]:
        """Yield the bound session, or open one that commits on success."""
        if self._session is not None:
            yield self._session
            return

        async for session in self._session_factory():
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[BuildingRepository]:
        async with self._session_scope() as session:
            yield BuildingRepository(self._session_factory, session=session)

    async def find_by_external_id(self, external_id: str) -> BuildingRead | None:
        async with self._session_scope() as session:
            stmt = select(BuildingModel).where(
                BuildingModel.external_building_id == external_id
            )
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            if model is None:
                return None
            return _model_to_building(model)

    async def get(self, building_id: int) -> BuildingRead | None:
        async with self._session_scope() as session:
            model = await session.get(BuildingModel, building_id)
            if model is None:
                return None
            return _model_to_building(model)

    async def create(
        self, patch: BuildingERPPatch, user_fields: BuildingUserFields
    ) -> BuildingRead:
        """Insert a building row.

        Args:
            patch: ERP-owned values.
            user_fields: Initial user-owned values.

        Returns:
            BuildingRead with the database-assigned id.
        """
        async with self._session_scope() as session:
            model = BuildingModel(**erp_create_values(patch, user_fields))
            session.add(model)
            await session.flush()
            await session.refresh(model)
            return _model_to_building(model)

    async def update_erp_fields(self, building_id: int, patch: BuildingERPPatch) -> BuildingRead:
        """Overwrite the ERP-owned columns of one row.

        Raises:
            BuildingNotFoundError: The row no longer exists.
        """
        async with self._session_scope() as session:
            result = await session.execute(build_erp_update(building_id, patch))
            model = result.scalar_one_or_none()
            if model is None:
                raise BuildingNotFoundError(building_id)
            return _model_to_building(model)

    async def update_user_fields(
        self, building_id: int, update_data: BuildingUserUpdate
    ) -> BuildingRead | None:
        """Apply the end-user update. Returns None if the building doesn't exist."""
        values = user_update_values(update_data)
        if not values:
            return await self.get(building_id)

        async with self._session_scope() as session:
            result = await session.execute(build_user_update(building_id, update_data))
            model = result.scalar_one_or_none()
            if model is None:
                return None
            building = _model_to_building(model)

        logger.info(
            "buildings.user_fields_updated",
            building_id=building_id,
            fields=sorted(values),
        )
        return building
