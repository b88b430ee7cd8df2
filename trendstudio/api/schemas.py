"""Request and response models of the HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

HexColor = Annotated[str, StringConstraints(pattern=r"^#[0-9a-fA-F]{6}$")]


class PaletteRequest(BaseModel):
    image_url: str
    max_colors: int = Field(default=5, ge=1, le=32)


class PaletteResponse(BaseModel):
    colors: list[str]
    fallback: bool


class Typography(BaseModel):
    primary: str = "Inter"
    secondary: str = "Roboto"
    heading: str = "Inter"
    body: str = "Inter"


class BrandVoice(BaseModel):
    tone: list[str] = []
    style: list[str] = []
    keywords: list[str] = []


class BrandKitIn(BaseModel):
    """Kit fields accepted on create and update; omitted ones are left alone."""

    name: str | None = None
    description: str | None = None
    logo_url: str | None = None
    primary_color: HexColor | None = None
    secondary_color: HexColor | None = None
    accent_color: HexColor | None = None
    font_family: str | None = None
    typography: Typography | None = None
    brand_voice: BrandVoice | None = None
    vibe: str | None = None
    is_active: bool | None = None

    def as_fields(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class BrandKitOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    name: str
    description: str | None
    logo_url: str | None
    primary_color: str
    secondary_color: str
    accent_color: str
    font_family: str
    typography: dict[str, str]
    brand_voice: dict[str, list[str]]
    vibe: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class BrandKitSummary(BaseModel):
    has_logo: bool
    has_colors: bool
    has_typography: bool
    completeness: int


class BrandAssetCreate(BaseModel):
    asset_type: Literal["logo", "font", "template", "image", "icon", "pattern"]
    asset_name: str
    asset_url: str
    file_size: int | None = None
    mime_type: str | None = None
    metadata: dict[str, Any] = {}
    is_primary: bool = False
    sort_order: int = 0

    def as_fields(self) -> dict[str, Any]:
        fields = self.model_dump(exclude={"metadata"})
        fields["asset_metadata"] = self.metadata
        return fields


class BrandAssetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    brand_kit_id: str
    asset_type: str
    asset_name: str
    asset_url: str
    file_size: int | None
    mime_type: str | None
    metadata: dict[str, Any] = Field(validation_alias="asset_metadata")
    is_primary: bool
    sort_order: int
    created_at: datetime
