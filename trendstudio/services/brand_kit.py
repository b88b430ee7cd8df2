"""Business logic for brand kits and palette extraction."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from trendstudio.db import models
from trendstudio.imgproc.color_extract import ColorExtractor, ExtractionResult, get_fallback_colors
from trendstudio.imgproc.decode import ImageDecodeError, decode_rgba
from trendstudio.imgproc.loader import ImageFetchError, ImageLoader
from trendstudio.metrics.prometheus_exporter import palette_extraction_total, palette_fallback_total

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"

KIT_FIELDS = frozenset(
    {
        "name",
        "description",
        "logo_url",
        "primary_color",
        "secondary_color",
        "accent_color",
        "font_family",
        "typography",
        "brand_voice",
        "vibe",
        "is_active",
    }
)
ASSET_FIELDS = frozenset(
    {
        "asset_type",
        "asset_name",
        "asset_url",
        "file_size",
        "mime_type",
        "asset_metadata",
        "is_primary",
        "sort_order",
    }
)
COLOR_SLOTS = ("primary_color", "secondary_color", "accent_color")


class BrandKitNotFoundError(LookupError):
    """Raised when a brand kit or asset does not exist."""


class BrandKitValidationError(ValueError):
    """Raised when a brand kit request cannot be applied as given."""


def _check_fields(fields: dict[str, Any], allowed: frozenset[str]) -> None:
    unknown = set(fields) - allowed
    if unknown:
        raise BrandKitValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")


def _check_asset_type(asset_type: str | None) -> None:
    if asset_type is not None and asset_type not in models.ASSET_TYPES:
        raise BrandKitValidationError(f"Unsupported asset type: {asset_type!r}")


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def brand_kit_to_dict(kit: models.BrandKit) -> dict[str, Any]:
    """Serialise a kit into its record shape."""

    return {
        "id": kit.id,
        "user_id": kit.user_id,
        "name": kit.name,
        "description": kit.description,
        "logo_url": kit.logo_url,
        "primary_color": kit.primary_color,
        "secondary_color": kit.secondary_color,
        "accent_color": kit.accent_color,
        "font_family": kit.font_family,
        "typography": kit.typography,
        "brand_voice": kit.brand_voice,
        "vibe": kit.vibe,
        "is_active": kit.is_active,
        "created_at": _isoformat(kit.created_at),
        "updated_at": _isoformat(kit.updated_at),
    }


def brand_asset_to_dict(asset: models.BrandAsset) -> dict[str, Any]:
    """Serialise an asset into its record shape."""

    return {
        "id": asset.id,
        "brand_kit_id": asset.brand_kit_id,
        "asset_type": asset.asset_type,
        "asset_name": asset.asset_name,
        "asset_url": asset.asset_url,
        "file_size": asset.file_size,
        "mime_type": asset.mime_type,
        "metadata": asset.asset_metadata,
        "is_primary": asset.is_primary,
        "sort_order": asset.sort_order,
        "created_at": _isoformat(asset.created_at),
    }


class BrandKitService:
    """Facade over brand kit storage and colour extraction."""

    def __init__(
        self,
        loader: ImageLoader,
        extractor: ColorExtractor | None = None,
        *,
        default_max_colors: int = 5,
        max_pixels: int | None = None,
    ) -> None:
        self._loader = loader
        self._extractor = extractor or ColorExtractor()
        self._default_max_colors = default_max_colors
        self._max_pixels = max_pixels

    async def close(self) -> None:
        """Release the HTTP client used for downloads."""

        await self._loader.close()

    # Colour extraction

    def _extract_from_bytes(self, data: bytes, max_colors: int) -> ExtractionResult:
        image = decode_rgba(data, max_pixels=self._max_pixels)
        return self._extractor.extract(image.pixels, max_colors)

    async def extract_palette(self, data: bytes, max_colors: int | None = None) -> ExtractionResult:
        """Extract colours from an encoded image, substituting the fallback on decode errors."""

        if max_colors is None:
            max_colors = self._default_max_colors
        palette_extraction_total.inc()
        try:
            result = await asyncio.to_thread(self._extract_from_bytes, data, max_colors)
        except ImageDecodeError as exc:
            logger.warning("Failed to decode image for colour extraction, using defaults: %s", exc)
            palette_fallback_total.labels(reason="decode").inc()
            return ExtractionResult(colors=get_fallback_colors(), fallback=True)

        if result.fallback:
            logger.warning("Image has no opaque pixels, using default palette.")
            palette_fallback_total.labels(reason="empty").inc()
        return result

    async def extract_colors_from_bytes(self, data: bytes, max_colors: int | None = None) -> list[str]:
        """Return the palette of an already downloaded image."""

        result = await self.extract_palette(data, max_colors)
        return result.colors

    async def extract_palette_from_url(self, url: str, max_colors: int | None = None) -> ExtractionResult:
        """Download ``url`` and extract its palette, never raising for image errors."""

        try:
            data = await self._loader.fetch(url)
        except ImageFetchError as exc:
            logger.warning("Failed to load image for colour extraction, using defaults: %s", exc)
            palette_extraction_total.inc()
            palette_fallback_total.labels(reason="fetch").inc()
            return ExtractionResult(colors=get_fallback_colors(), fallback=True)
        return await self.extract_palette(data, max_colors)

    async def extract_colors_from_image(self, url: str, max_colors: int | None = None) -> list[str]:
        """Return the dominant colours of the image at ``url``."""

        result = await self.extract_palette_from_url(url, max_colors)
        return result.colors

    # Brand kits

    async def get_brand_kits(self, session: AsyncSession, *, user_id: str) -> list[models.BrandKit]:
        """Return all kits of a user, most recently updated first."""

        stmt = (
            select(models.BrandKit)
            .where(models.BrandKit.user_id == user_id)
            .order_by(models.BrandKit.updated_at.desc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def get_active_brand_kit(
        self,
        session: AsyncSession,
        *,
        user_id: str,
    ) -> models.BrandKit | None:
        """Return the active kit of a user if there is one."""

        stmt = (
            select(models.BrandKit)
            .where(
                models.BrandKit.user_id == user_id,
                models.BrandKit.is_active.is_(True),
            )
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_brand_kit(self, session: AsyncSession, *, kit_id: str) -> models.BrandKit:
        kit = await session.get(models.BrandKit, kit_id)
        if kit is None:
            raise BrandKitNotFoundError(f"Brand kit {kit_id} does not exist.")
        return kit

    async def _deactivate_user_kits(self, session: AsyncSession, user_id: str) -> None:
        stmt = (
            update(models.BrandKit)
            .where(models.BrandKit.user_id == user_id)
            .values(is_active=False)
        )
        await session.execute(stmt)

    async def create_brand_kit(
        self,
        session: AsyncSession,
        *,
        user_id: str,
        **fields: Any,
    ) -> models.BrandKit:
        """Create a kit with default colours and typography."""

        _check_fields(fields, KIT_FIELDS)
        kit = models.BrandKit(user_id=user_id, **fields)
        if kit.is_active is None or kit.is_active:
            await self._deactivate_user_kits(session, user_id)
            kit.is_active = True
        session.add(kit)
        await session.commit()
        await session.refresh(kit)
        logger.info("Created brand kit %s for user %s", kit.id, user_id)
        return kit

    async def update_brand_kit(
        self,
        session: AsyncSession,
        *,
        kit_id: str,
        **updates: Any,
    ) -> models.BrandKit:
        """Apply a partial update to a kit."""

        _check_fields(updates, KIT_FIELDS)
        kit = await self.get_brand_kit(session, kit_id=kit_id)
        if updates.get("is_active"):
            await self._deactivate_user_kits(session, kit.user_id)
        for key, value in updates.items():
            setattr(kit, key, value)
        session.add(kit)
        await session.commit()
        await session.refresh(kit)
        return kit

    async def set_active_brand_kit(
        self,
        session: AsyncSession,
        *,
        user_id: str,
        kit_id: str,
    ) -> None:
        """Make ``kit_id`` the only active kit of the user."""

        kit = await self.get_brand_kit(session, kit_id=kit_id)
        if kit.user_id != user_id:
            raise BrandKitNotFoundError(f"Brand kit {kit_id} does not belong to user {user_id}.")

        await self._deactivate_user_kits(session, user_id)
        kit.is_active = True
        session.add(kit)
        await session.commit()

    async def delete_brand_kit(self, session: AsyncSession, *, kit_id: str) -> None:
        """Remove a kit together with its assets."""

        kit = await self.get_brand_kit(session, kit_id=kit_id)
        await session.execute(
            delete(models.BrandAsset).where(models.BrandAsset.brand_kit_id == kit_id)
        )
        await session.delete(kit)
        await session.commit()

    async def apply_extracted_colors(
        self,
        session: AsyncSession,
        *,
        kit_id: str,
        colors: Sequence[str],
    ) -> models.BrandKit:
        """Fill primary, secondary and accent colours from a palette."""

        kit = await self.get_brand_kit(session, kit_id=kit_id)
        for slot, color in zip(COLOR_SLOTS, colors):
            if color:
                setattr(kit, slot, color)
        session.add(kit)
        await session.commit()
        await session.refresh(kit)
        return kit

    async def extract_colors_from_logo(self, session: AsyncSession, *, kit_id: str) -> models.BrandKit:
        """Extract the palette of the kit's logo and store it on the kit."""

        kit = await self.get_brand_kit(session, kit_id=kit_id)
        if not kit.logo_url:
            raise BrandKitValidationError("Brand kit has no logo to extract colours from.")

        colors = await self.extract_colors_from_image(kit.logo_url)
        return await self.apply_extracted_colors(session, kit_id=kit_id, colors=colors)

    # Brand assets

    async def get_brand_assets(
        self,
        session: AsyncSession,
        *,
        brand_kit_id: str,
    ) -> list[models.BrandAsset]:
        """Return the assets of a kit in display order."""

        stmt = (
            select(models.BrandAsset)
            .where(models.BrandAsset.brand_kit_id == brand_kit_id)
            .order_by(models.BrandAsset.sort_order.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def add_brand_asset(
        self,
        session: AsyncSession,
        *,
        brand_kit_id: str,
        **fields: Any,
    ) -> models.BrandAsset:
        """Attach a new asset to a kit."""

        _check_fields(fields, ASSET_FIELDS)
        _check_asset_type(fields.get("asset_type"))
        await self.get_brand_kit(session, kit_id=brand_kit_id)

        asset = models.BrandAsset(brand_kit_id=brand_kit_id, **fields)
        session.add(asset)
        await session.commit()
        await session.refresh(asset)
        return asset

    async def _get_asset(self, session: AsyncSession, asset_id: str) -> models.BrandAsset:
        asset = await session.get(models.BrandAsset, asset_id)
        if asset is None:
            raise BrandKitNotFoundError(f"Brand asset {asset_id} does not exist.")
        return asset

    async def update_brand_asset(
        self,
        session: AsyncSession,
        *,
        asset_id: str,
        **updates: Any,
    ) -> models.BrandAsset:
        _check_fields(updates, ASSET_FIELDS)
        _check_asset_type(updates.get("asset_type"))
        asset = await self._get_asset(session, asset_id)
        for key, value in updates.items():
            setattr(asset, key, value)
        session.add(asset)
        await session.commit()
        await session.refresh(asset)
        return asset

    async def delete_brand_asset(self, session: AsyncSession, *, asset_id: str) -> None:
        asset = await self._get_asset(session, asset_id)
        await session.delete(asset)
        await session.commit()

    # Presentation helpers

    @staticmethod
    def get_brand_kit_summary(kit: models.BrandKit) -> dict[str, Any]:
        """Describe how complete a kit is."""

        typography = kit.typography or {}
        has_logo = bool(kit.logo_url)
        has_colors = bool(kit.primary_color and kit.secondary_color and kit.accent_color)
        has_typography = bool(typography.get("primary") and typography.get("body"))
        filled = sum((has_logo, has_colors, has_typography))
        return {
            "has_logo": has_logo,
            "has_colors": has_colors,
            "has_typography": has_typography,
            "completeness": round(filled / 3 * 100),
        }

    @staticmethod
    def export_brand_kit(kit: models.BrandKit, assets: Sequence[models.BrandAsset]) -> str:
        """Render a kit and its assets as a JSON document."""

        payload = {
            "brandKit": brand_kit_to_dict(kit),
            "assets": [brand_asset_to_dict(asset) for asset in assets],
            "exportedAt": datetime.now(timezone.utc).isoformat(),
            "version": EXPORT_VERSION,
        }
        return json.dumps(payload, ensure_ascii=False, indent=2)
