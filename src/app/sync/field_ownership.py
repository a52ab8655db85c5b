"""Field ownership for building rows.

Defines:
- ERP_OWNED_FIELDS: Columns the sync pass overwrites on every match
- USER_OWNED_FIELDS: Columns only the end-user update operation writes
- erp_update_values(), erp_create_values(), user_update_values(): the only
  places a column-to-value mapping is assembled for a building write

The ERP patch and the user state are separate values; they meet only in
erp_create_values(), when a row is first inserted.
"""

from __future__ import annotations

from typing import Any

from src.app.buildings.schemas import BuildingERPPatch, BuildingUserFields, BuildingUserUpdate

# ── Ownership Rules ────────────────────────────────────────────────────────

ERP_OWNED_FIELDS: tuple[str, ...] = (
    "external_building_id",
    "iris_code",
    "name",
    "project_name",
    "audience",
    "impression",
    "cbd_area",
    "building_status",
    "competitor_location",
    "competitor_exclusive",
    "competitor_presence",
    "subdistrict",
    "citytown",
    "province",
    "grade_resource",
    "building_type",
    "completion_year",
    "latitude",
    "longitude",
    "images",
    "lcd_presence_status",
    "synced_at",
)

USER_OWNED_FIELDS: tuple[str, ...] = (
    "sellable",
    "connectivity",
    "resource_type",
)

# ERP sends 0 when coordinates are unknown; a stored value wins on update.
PRESERVED_WHEN_UNSET: frozenset[str] = frozenset({"latitude", "longitude"})


# ── Value Builders ─────────────────────────────────────────────────────────


def erp_update_values(patch: BuildingERPPatch) -> dict[str, Any]:
    """Column values for updating an existing row from the ERP."""
    values = patch.model_dump(include=set(ERP_OWNED_FIELDS))
    for field in PRESERVED_WHEN_UNSET:
        if values.get(field) is None:
            values.pop(field, None)
    return values


def erp_create_values(patch: BuildingERPPatch, user_fields: BuildingUserFields) -> dict[str, Any]:
    """Column values for inserting a new row: ERP patch plus initial user state."""
    values = patch.model_dump(include=set(ERP_OWNED_FIELDS))
    values.update(user_fields.model_dump(include=set(USER_OWNED_FIELDS)))
    return values


def user_update_values(update: BuildingUserUpdate) -> dict[str, Any]:
    """Column values for the end-user update; fields left as None are untouched."""
    return update.model_dump(include=set(USER_OWNED_FIELDS), exclude_none=True)
