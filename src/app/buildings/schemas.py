"""Pydantic schemas for buildings.

Defines:
- BuildingImage: One named photo reference
- BuildingERPPatch: The ERP-owned column values derived from one ERP record
- BuildingUserFields: The user-owned column values (never sourced from the ERP)
- BuildingRead: Full row as returned by the repository and API
- BuildingUserUpdate: Partial update payload for the end-user update operation
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class BuildingImage(BaseModel):
    """Named photo reference, e.g. ``{"name": "front_side", "path": "/files/a.jpg"}``."""

    name: str
    path: str


class BuildingERPPatch(BaseModel):
    """ERP-owned building values for one sync write.

    ``latitude``/``longitude`` of None on an update mean "keep the stored
    value"; on create they are stored as NULL.
    """

    model_config = ConfigDict(frozen=True)

    external_building_id: str
    iris_code: str | None = None
    name: str | None = None
    project_name: str | None = None
    audience: int = 0
    impression: int = 0
    cbd_area: str | None = None
    building_status: str | None = None
    competitor_location: bool = False
    competitor_exclusive: bool = False
    competitor_presence: bool = False
    subdistrict: str | None = None
    citytown: str | None = None
    province: str | None = None
    grade_resource: str | None = None
    building_type: str | None = None
    completion_year: int | None = None
    latitude: float | None = None
    longitude: float | None = None
    images: list[BuildingImage] = Field(default_factory=list)
    lcd_presence_status: str | None = None
    synced_at: datetime | None = None


class BuildingUserFields(BaseModel):
    """User-owned building values."""

    model_config = ConfigDict(frozen=True)

    sellable: str = ""
    connectivity: str = ""
    resource_type: str | None = None


class BuildingRead(BaseModel):
    """Schema for reading a building row."""

    id: int
    external_building_id: str
    iris_code: str | None = None
    name: str | None = None
    project_name: str | None = None
    audience: int = 0
    impression: int = 0
    cbd_area: str | None = None
    building_status: str | None = None
    competitor_location: bool = False
    competitor_exclusive: bool = False
    competitor_presence: bool = False
    subdistrict: str | None = None
    citytown: str | None = None
    province: str | None = None
    grade_resource: str | None = None
    building_type: str | None = None
    completion_year: int | None = None
    latitude: float | None = None
    longitude: float | None = None
    images: list[BuildingImage] = Field(default_factory=list)
    lcd_presence_status: str | None = None
    sellable: str = ""
    connectivity: str = ""
    resource_type: str | None = None
    synced_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class BuildingUserUpdate(BaseModel):
    """Partial update of user-owned fields (only non-None fields applied)."""

    model_config = ConfigDict(extra="forbid")

    sellable: str | None = None
    connectivity: str | None = None
    resource_type: str | None = None
