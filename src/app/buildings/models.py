"""Building persistence model.

BuildingModel holds one row per ERP building, matched by the unique
external_building_id. Column groups:
- ERP-owned: rewritten on every sync pass
- User-owned: sellable, connectivity, resource_type (never written by sync)
- Bookkeeping: id, created_at, updated_at
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Integer, String, func, text
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.orm import Mapped, mapped_column

from src.app.core.database import Base


class BuildingModel(Base):
    """A building known to the ERP, enriched with locally-entered sales data."""

    __tablename__ = "buildings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_building_id: Mapped[str] = mapped_column(
        String(140), nullable=False, unique=True, index=True
    )

    # ERP-owned
    iris_code: Mapped[str | None] = mapped_column(String(140), nullable=True)
    name: Mapped[str | None] = mapped_column(String(300), nullable=True)
    project_name: Mapped[str | None] = mapped_column(String(300), nullable=True)
    audience: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"))
    impression: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"))
    cbd_area: Mapped[str | None] = mapped_column(String(140), nullable=True)
    building_status: Mapped[str | None] = mapped_column(String(140), nullable=True)
    competitor_location: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false")
    )
    competitor_exclusive: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false")
    )
    competitor_presence: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false")
    )
    subdistrict: Mapped[str | None] = mapped_column(String(140), nullable=True)
    citytown: Mapped[str | None] = mapped_column(String(140), nullable=True)
    province: Mapped[str | None] = mapped_column(String(140), nullable=True)
    grade_resource: Mapped[str | None] = mapped_column(String(50), nullable=True)
    building_type: Mapped[str | None] = mapped_column(String(140), nullable=True)
    completion_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    images: Mapped[list] = mapped_column(
        JSON, default=list, server_default=text("'[]'::json")
    )
    lcd_presence_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # User-owned
    sellable: Mapped[str] = mapped_column(String(50), default="", server_default=text("''"))
    connectivity: Mapped[str] = mapped_column(String(50), default="", server_default=text("''"))
    resource_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True,
    )
