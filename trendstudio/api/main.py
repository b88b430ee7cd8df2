"""FastAPI entrypoint and HTTP routes."""

from __future__ import annotations

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator

from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.ext.asyncio import AsyncSession

from trendstudio.api.schemas import (
    BrandAssetCreate,
    BrandAssetOut,
    BrandKitIn,
    BrandKitOut,
    BrandKitSummary,
    PaletteRequest,
    PaletteResponse,
)
from trendstudio.config.settings import get_settings
from trendstudio.db.session import get_session, init_db
from trendstudio.imgproc.color_extract import ColorExtractor
from trendstudio.imgproc.loader import ImageLoader
from trendstudio.monitoring.logging import configure_logging
from trendstudio.services.brand_kit import (
    BrandKitNotFoundError,
    BrandKitService,
    BrandKitValidationError,
)


@lru_cache
def get_brand_kit_service() -> BrandKitService:
    """Return the process-wide brand kit service."""

    settings = get_settings()
    return BrandKitService(
        ImageLoader.from_settings(settings),
        ColorExtractor.from_settings(settings),
        default_max_colors=settings.palette_max_colors,
        max_pixels=settings.image_max_pixels,
    )


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    await init_db()
    yield
    if get_brand_kit_service.cache_info().currsize:
        await get_brand_kit_service().close()


SessionDependency = Depends(get_session)
ServiceDependency = Depends(get_brand_kit_service)


def create_app() -> FastAPI:
    """Initialise the FastAPI application."""

    settings = get_settings()
    app = FastAPI(
        title="TrendStudio Brand Kit API",
        version="0.1.0",
        docs_url="/docs" if settings.environment != "prod" else None,
        redoc_url="/redoc" if settings.environment != "prod" else None,
        lifespan=lifespan,
    )

    @app.exception_handler(BrandKitNotFoundError)
    async def _not_found(_: Request, exc: BrandKitNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(BrandKitValidationError)
    async def _invalid(_: Request, exc: BrandKitValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc)},
        )

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple health endpoint used for readiness checks."""

        return {"status": "ok"}

    @app.get("/metrics", tags=["system"])
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.post("/palette/extract", response_model=PaletteResponse, tags=["palette"])
    async def extract_palette(
        payload: PaletteRequest,
        service: BrandKitService = ServiceDependency,
    ) -> PaletteResponse:
        """Return the dominant colours of a remote image."""

        result = await service.extract_palette_from_url(payload.image_url, payload.max_colors)
        return PaletteResponse(colors=result.colors, fallback=result.fallback)

    @app.get("/users/{user_id}/brand-kits", response_model=list[BrandKitOut], tags=["brand-kits"])
    async def list_brand_kits(
        user_id: str,
        session: AsyncSession = SessionDependency,
        service: BrandKitService = ServiceDependency,
    ):
        return await service.get_brand_kits(session, user_id=user_id)

    @app.post(
        "/users/{user_id}/brand-kits",
        response_model=BrandKitOut,
        status_code=status.HTTP_201_CREATED,
        tags=["brand-kits"],
    )
    async def create_brand_kit(
        user_id: str,
        payload: BrandKitIn,
        session: AsyncSession = SessionDependency,
        service: BrandKitService = ServiceDependency,
    ):
        return await service.create_brand_kit(session, user_id=user_id, **payload.as_fields())

    @app.get("/users/{user_id}/brand-kits/active", response_model=BrandKitOut, tags=["brand-kits"])
    async def get_active_brand_kit(
        user_id: str,
        session: AsyncSession = SessionDependency,
        service: BrandKitService = ServiceDependency,
    ):
        kit = await service.get_active_brand_kit(session, user_id=user_id)
        if kit is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active brand kit.")
        return kit

    @app.post(
        "/users/{user_id}/brand-kits/{kit_id}/activate",
        status_code=status.HTTP_204_NO_CONTENT,
        tags=["brand-kits"],
    )
    async def activate_brand_kit(
        user_id: str,
        kit_id: str,
        session: AsyncSession = SessionDependency,
        service: BrandKitService = ServiceDependency,
    ) -> Response:
        await service.set_active_brand_kit(session, user_id=user_id, kit_id=kit_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.patch("/brand-kits/{kit_id}", response_model=BrandKitOut, tags=["brand-kits"])
    async def update_brand_kit(
        kit_id: str,
        payload: BrandKitIn,
        session: AsyncSession = SessionDependency,
        service: BrandKitService = ServiceDependency,
    ):
        return await service.update_brand_kit(session, kit_id=kit_id, **payload.as_fields())

    @app.delete("/brand-kits/{kit_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["brand-kits"])
    async def delete_brand_kit(
        kit_id: str,
        session: AsyncSession = SessionDependency,
        service: BrandKitService = ServiceDependency,
    ) -> Response:
        await service.delete_brand_kit(session, kit_id=kit_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/brand-kits/{kit_id}/extract-colors", response_model=BrandKitOut, tags=["brand-kits"])
    async def extract_colors_from_logo(
        kit_id: str,
        session: AsyncSession = SessionDependency,
        service: BrandKitService = ServiceDependency,
    ):
        """Replace the kit colours with the palette of its logo."""

        return await service.extract_colors_from_logo(session, kit_id=kit_id)

    @app.get("/brand-kits/{kit_id}/summary", response_model=BrandKitSummary, tags=["brand-kits"])
    async def brand_kit_summary(
        kit_id: str,
        session: AsyncSession = SessionDependency,
        service: BrandKitService = ServiceDependency,
    ):
        kit = await service.get_brand_kit(session, kit_id=kit_id)
        return service.get_brand_kit_summary(kit)

    @app.get("/brand-kits/{kit_id}/export", tags=["brand-kits"])
    async def export_brand_kit(
        kit_id: str,
        session: AsyncSession = SessionDependency,
        service: BrandKitService = ServiceDependency,
    ) -> Response:
        kit = await service.get_brand_kit(session, kit_id=kit_id)
        assets = await service.get_brand_assets(session, brand_kit_id=kit_id)
        body = service.export_brand_kit(kit, assets)
        return Response(
            content=body,
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="brand-kit-{kit_id}.json"'},
        )

    @app.get("/brand-kits/{kit_id}/assets", response_model=list[BrandAssetOut], tags=["brand-assets"])
    async def list_brand_assets(
        kit_id: str,
        session: AsyncSession = SessionDependency,
        service: BrandKitService = ServiceDependency,
    ):
        return await service.get_brand_assets(session, brand_kit_id=kit_id)

    @app.post(
        "/brand-kits/{kit_id}/assets",
        response_model=BrandAssetOut,
        status_code=status.HTTP_201_CREATED,
        tags=["brand-assets"],
    )
    async def add_brand_asset(
        kit_id: str,
        payload: BrandAssetCreate,
        session: AsyncSession = SessionDependency,
        service: BrandKitService = ServiceDependency,
    ):
        return await service.add_brand_asset(session, brand_kit_id=kit_id, **payload.as_fields())

    @app.delete("/brand-assets/{asset_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["brand-assets"])
    async def delete_brand_asset(
        asset_id: str,
        session: AsyncSession = SessionDependency,
        service: BrandKitService = ServiceDependency,
    ) -> Response:
        await service.delete_brand_asset(session, asset_id=asset_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app


app = create_app()
