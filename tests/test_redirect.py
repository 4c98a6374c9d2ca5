"""Redirect endpoint behavior tests."""

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from shortener.dependencies import get_id_generator


@pytest.mark.asyncio
async def test_redirect_valid_id(client: AsyncClient) -> None:
    # Create a short link first
    create_resp = await client.post("/", json={"url": "https://example.com"})
    short_id = create_resp.json()["url"].rsplit("/", 1)[1]

    response = await client.get(f"/{short_id}", follow_redirects=False)
    assert response.status_code == 308
    assert response.headers["location"] == "https://example.com"


@pytest.mark.asyncio
async def test_redirect_unknown_id(client: AsyncClient) -> None:
    response = await client.get("/zzzzzz", follow_redirects=False)
    assert response.status_code == 404
    assert response.json() == {"message": "Redirect URL not found", "code": "NOT_FOUND"}


@pytest.mark.asyncio
async def test_redirect_long_unknown_id(client: AsyncClient) -> None:
    response = await client.get("/doesnotexist", follow_redirects=False)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_redirect_id_spelling_a_route_name(app: FastAPI, client: AsyncClient) -> None:
    app.dependency_overrides[get_id_generator] = lambda: (lambda: "health")
    create_resp = await client.post("/", json={"url": "https://example.com/status"})
    assert create_resp.json() == {"url": "http://test/health"}

    response = await client.get("/health", follow_redirects=False)
    assert response.status_code == 308
    assert response.headers["location"] == "https://example.com/status"


@pytest.mark.asyncio
async def test_redirect_location_is_stored_url(client: AsyncClient) -> None:
    create_resp = await client.post("/", json={"url": "ftp://files.example.org/a b?q=1%202"})
    short_id = create_resp.json()["url"].rsplit("/", 1)[1]

    response = await client.get(f"/{short_id}", follow_redirects=False)
    assert response.status_code == 308
    assert response.headers["location"] == "ftp://files.example.org/a b?q=1%202"


@pytest.mark.asyncio
async def test_redirect_location_escapes_non_ascii(client: AsyncClient) -> None:
    create_resp = await client.post("/", json={"url": "https://example.com/café"})
    short_id = create_resp.json()["url"].rsplit("/", 1)[1]

    response = await client.get(f"/{short_id}", follow_redirects=False)
    assert response.headers["location"] == "https://example.com/caf%C3%A9"
