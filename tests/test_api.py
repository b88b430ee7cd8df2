"""HTTP tests for the brand kit API."""

from __future__ import annotations

import json
from typing import AsyncIterator

import httpx
import pytest
import pytest_asyncio
import pytest_mock

from trendstudio.api.main import app, get_brand_kit_service
from trendstudio.db.session import get_session
from trendstudio.imgproc.color_extract import FALLBACK_PALETTE
from trendstudio.imgproc.loader import ImageFetchError, ImageLoader
from trendstudio.services.brand_kit import BrandKitService


@pytest.fixture()
def loader(mocker: pytest_mock.MockerFixture):
    instance = mocker.create_autospec(ImageLoader, instance=True)
    instance.fetch = mocker.AsyncMock(return_value=b"")
    return instance


@pytest_asyncio.fixture()
async def client(session_factory, loader) -> AsyncIterator[httpx.AsyncClient]:
    async def _session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_brand_kit_service] = lambda: BrandKitService(loader)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_health_returns_ok(client: httpx.AsyncClient) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_extract_palette(client: httpx.AsyncClient, loader, red_blue_png: bytes) -> None:
    loader.fetch.return_value = red_blue_png

    response = await client.post(
        "/palette/extract",
        json={"image_url": "https://cdn.example.com/logo.png", "max_colors": 2},
    )

    assert response.status_code == 200
    assert response.json() == {"colors": ["#ff0000", "#0000ff"], "fallback": False}


@pytest.mark.asyncio
async def test_extract_palette_falls_back(client: httpx.AsyncClient, loader) -> None:
    loader.fetch.side_effect = ImageFetchError("blocked")

    response = await client.post("/palette/extract", json={"image_url": "https://cdn.example.com/x.png"})

    assert response.status_code == 200
    assert response.json() == {"colors": list(FALLBACK_PALETTE), "fallback": True}


@pytest.mark.asyncio
async def test_extract_palette_validates_max_colors(client: httpx.AsyncClient) -> None:
    response = await client.post(
        "/palette/extract",
        json={"image_url": "https://cdn.example.com/x.png", "max_colors": 0},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_brand_kit_crud(client: httpx.AsyncClient) -> None:
    created = await client.post("/users/user-1/brand-kits", json={"name": "Acme", "vibe": "bold"})
    assert created.status_code == 201
    kit = created.json()
    assert kit["name"] == "Acme"
    assert kit["primary_color"] == "#3b82f6"
    assert kit["is_active"] is True

    patched = await client.patch(f"/brand-kits/{kit['id']}", json={"accent_color": "#ff00aa"})
    assert patched.status_code == 200
    assert patched.json()["accent_color"] == "#ff00aa"
    assert patched.json()["name"] == "Acme"

    listing = await client.get("/users/user-1/brand-kits")
    assert [item["id"] for item in listing.json()] == [kit["id"]]

    active = await client.get("/users/user-1/brand-kits/active")
    assert active.json()["id"] == kit["id"]

    deleted = await client.delete(f"/brand-kits/{kit['id']}")
    assert deleted.status_code == 204
    assert (await client.get("/users/user-1/brand-kits/active")).status_code == 404


@pytest.mark.asyncio
async def test_activate_switches_active_kit(client: httpx.AsyncClient) -> None:
    first = (await client.post("/users/user-1/brand-kits", json={"name": "First"})).json()
    await client.post("/users/user-1/brand-kits", json={"name": "Second"})

    response = await client.post(f"/users/user-1/brand-kits/{first['id']}/activate")

    assert response.status_code == 204
    active = await client.get("/users/user-1/brand-kits/active")
    assert active.json()["id"] == first["id"]


@pytest.mark.asyncio
async def test_invalid_colour_is_rejected(client: httpx.AsyncClient) -> None:
    response = await client.post("/users/user-1/brand-kits", json={"primary_color": "blue"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_missing_kit_returns_404(client: httpx.AsyncClient) -> None:
    response = await client.get("/brand-kits/does-not-exist/summary")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_extract_colors_from_logo(client: httpx.AsyncClient, loader, red_blue_png: bytes) -> None:
    loader.fetch.return_value = red_blue_png
    kit = (
        await client.post(
            "/users/user-1/brand-kits",
            json={"logo_url": "https://cdn.example.com/logo.png"},
        )
    ).json()

    response = await client.post(f"/brand-kits/{kit['id']}/extract-colors")

    assert response.status_code == 200
    body = response.json()
    assert (body["primary_color"], body["secondary_color"]) == ("#ff0000", "#0000ff")


@pytest.mark.asyncio
async def test_extract_colors_without_logo_is_unprocessable(client: httpx.AsyncClient) -> None:
    kit = (await client.post("/users/user-1/brand-kits", json={})).json()

    response = await client.post(f"/brand-kits/{kit['id']}/extract-colors")

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_summary_and_export(client: httpx.AsyncClient) -> None:
    kit = (await client.post("/users/user-1/brand-kits", json={"name": "Acme"})).json()
    asset = await client.post(
        f"/brand-kits/{kit['id']}/assets",
        json={
            "asset_type": "logo",
            "asset_name": "logo.svg",
            "asset_url": "https://cdn.example.com/logo.svg",
            "metadata": {"variant": "light"},
        },
    )
    assert asset.status_code == 201
    assert asset.json()["metadata"] == {"variant": "light"}

    summary = await client.get(f"/brand-kits/{kit['id']}/summary")
    assert summary.json() == {
        "has_logo": False,
        "has_colors": True,
        "has_typography": True,
        "completeness": 67,
    }

    exported = await client.get(f"/brand-kits/{kit['id']}/export")
    assert exported.headers["content-disposition"].startswith("attachment;")
    document = json.loads(exported.content)
    assert document["brandKit"]["id"] == kit["id"]
    assert [item["asset_name"] for item in document["assets"]] == ["logo.svg"]


@pytest.mark.asyncio
async def test_asset_routes(client: httpx.AsyncClient) -> None:
    kit = (await client.post("/users/user-1/brand-kits", json={})).json()
    created = await client.post(
        f"/brand-kits/{kit['id']}/assets",
        json={"asset_type": "pattern", "asset_name": "dots.svg", "asset_url": "https://cdn.example.com/dots.svg"},
    )

    listing = await client.get(f"/brand-kits/{kit['id']}/assets")
    assert [item["id"] for item in listing.json()] == [created.json()["id"]]

    deleted = await client.delete(f"/brand-assets/{created.json()['id']}")
    assert deleted.status_code == 204
    assert (await client.get(f"/brand-kits/{kit['id']}/assets")).json() == []


@pytest.mark.asyncio
async def test_metrics_endpoint(client: httpx.AsyncClient) -> None:
    response = await client.get("/metrics")

    assert response.status_code == 200
    assert "palette_extraction_total" in response.text


@pytest.mark.asyncio
async def test_unexpected_value_error_is_a_server_error(
    client: httpx.AsyncClient,
    mocker: pytest_mock.MockerFixture,
) -> None:
    failing = mocker.create_autospec(BrandKitService, instance=True)
    failing.get_brand_kits = mocker.AsyncMock(side_effect=ValueError("corrupted row"))
    app.dependency_overrides[get_brand_kit_service] = lambda: failing
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)

    async with httpx.AsyncClient(transport=transport, base_url="http://test") as raw_client:
        response = await raw_client.get("/users/user-1/brand-kits")

    assert response.status_code == 500
