"""SQLAlchemy models describing the brand kit tables."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

DEFAULT_TYPOGRAPHY = {
    "primary": "Inter",
    "secondary": "Roboto",
    "heading": "Inter",
    "body": "Inter",
}

ASSET_TYPES = frozenset({"logo", "font", "template", "image", "icon", "pattern"})


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for ORM models."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )


class BrandKit(Base):
    """Visual identity of a tenant used to theme generated content."""

    __tablename__ = "brand_kits"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(128), default="Mon Kit de Marque")
    description: Mapped[str | None] = mapped_column(Text)
    logo_url: Mapped[str | None] = mapped_column(String(1024))
    primary_color: Mapped[str] = mapped_column(String(7), default="#3b82f6")
    secondary_color: Mapped[str] = mapped_column(String(7), default="#1d4ed8")
    accent_color: Mapped[str] = mapped_column(String(7), default="#8b5cf6")
    font_family: Mapped[str] = mapped_column(String(64), default="Inter")
    typography: Mapped[dict[str, str]] = mapped_column(
        JSON, default=lambda: dict(DEFAULT_TYPOGRAPHY)
    )
    brand_voice: Mapped[dict[str, list[str]]] = mapped_column(
        JSON, default=lambda: {"tone": [], "style": [], "keywords": []}
    )
    vibe: Mapped[str | None] = mapped_column(String(64))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class BrandAsset(Base):
    """File attached to a brand kit (logo, font, template...)."""

    __tablename__ = "brand_assets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    brand_kit_id: Mapped[str] = mapped_column(
        ForeignKey("brand_kits.id", ondelete="CASCADE"), index=True, nullable=False
    )
    asset_type: Mapped[str] = mapped_column(String(16), nullable=False)
    asset_name: Mapped[str] = mapped_column(String(256), nullable=False)
    asset_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_size: Mapped[int | None] = mapped_column(Integer)
    mime_type: Mapped[str | None] = mapped_column(String(128))
    # "metadata" is reserved on declarative classes.
    asset_metadata: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
