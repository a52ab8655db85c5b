"""Building read and user-field update endpoints.

PATCH writes only the user-owned fields (sellable, connectivity,
resource_type); ERP-owned fields are read-only over the API.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, status

from src.app.api.deps import get_building_repository
from src.app.buildings.schemas import BuildingRead, BuildingUserUpdate

router = APIRouter(prefix="/api/v1/buildings", tags=["buildings"])


@router.get("/{building_id}", response_model=BuildingRead)
async def get_building(building_id: int, request: Request) -> BuildingRead:
    """Get a single building by ID."""
    repo = get_building_repository(request)
    building = await repo.get(building_id)
    if building is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Building not found: {building_id}",
        )
    return building


@router.patch("/{building_id}", response_model=BuildingRead)
async def update_building(
    building_id: int,
    body: BuildingUserUpdate,
    request: Request,
) -> BuildingRead:
    """Update user-owned fields of a building."""
    repo = get_building_repository(request)
    building = await repo.update_user_fields(building_id, body)
    if building is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Building not found: {building_id}",
        )
    return building
