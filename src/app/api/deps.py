"""FastAPI dependencies for app.state services and admin authentication.

Services are created in the application lifespan and stored on app.state.
Each getter returns 503 when its service failed to initialize, so a broken
ERP or database configuration degrades the affected endpoints only.
"""

from __future__ import annotations

import secrets

from fastapi import Header, HTTPException, Request, status

from src.app.buildings.repository import BuildingRepository
from src.app.config import get_settings
from src.app.erp.schemas import EntityKind
from src.app.sync.engine import SyncOrchestrator


def get_building_repository(request: Request) -> BuildingRepository:
    """Retrieve BuildingRepository from app.state, 503 if not available."""
    repo = getattr(request.app.state, "building_repository", None)
    if repo is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Building store not initialized",
        )
    return repo


def get_sync_orchestrators(request: Request) -> dict[EntityKind, SyncOrchestrator]:
    """Retrieve the per-kind orchestrators from app.state, 503 if not available."""
    orchestrators = getattr(request.app.state, "sync_orchestrators", None)
    if not orchestrators:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="ERP sync not initialized",
        )
    return orchestrators


async def require_admin_key(x_api_key: str | None = Header(default=None)) -> None:
    """Check X-API-Key against ADMIN_API_KEY. No-op when no key is configured."""
    expected = get_settings().ADMIN_API_KEY
    if not expected:
        return
    if x_api_key is None or not secrets.compare_digest(x_api_key, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )
