"""Shorten endpoint behavior tests."""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from shortener.dependencies import get_id_generator, get_shortener_service
from shortener.errors import ShortenError
from shortener.gateway import UrlGateway
from shortener.service import ShortenerService


@pytest.mark.asyncio
async def test_shorten_url(client: AsyncClient) -> None:
    response = await client.post("/", json={"url": "https://example.com"})
    assert response.status_code == 201
    short_url = response.json()["url"]
    assert short_url.startswith("http://test/")
    assert len(short_url.rsplit("/", 1)[1]) == 6


@pytest.mark.asyncio
async def test_shorten_same_url_twice(client: AsyncClient) -> None:
    first = await client.post("/", json={"url": "https://example.com"})
    second = await client.post("/", json={"url": "https://example.com"})
    assert first.status_code == second.status_code == 201
    assert first.json()["url"] == second.json()["url"]


@pytest.mark.asyncio
async def test_shorten_multiple_urls(client: AsyncClient) -> None:
    urls = [
        "https://www.google.com",
        "https://www.github.com",
        "https://www.python.org",
    ]
    links = set()
    for url in urls:
        response = await client.post("/", json={"url": url})
        assert response.status_code == 201
        links.add(response.json()["url"])
    # All links should be unique
    assert len(links) == 3


@pytest.mark.asyncio
async def test_shorten_missing_url_field(client: AsyncClient) -> None:
    response = await client.post("/", json={"link": "https://example.com"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_shorten_retry_exhausted(app: FastAPI, client: AsyncClient) -> None:
    taken = await client.post("/", json={"url": "https://taken.example.com"})
    taken_id = taken.json()["url"].rsplit("/", 1)[1]

    app.dependency_overrides[get_id_generator] = lambda: (lambda: taken_id)
    response = await client.post("/", json={"url": "https://example.com"})

    assert response.status_code == 422
    assert response.json()["code"] == "RETRY_EXHAUSTED"


@pytest.mark.asyncio
async def test_shorten_collisions_invisible(app: FastAPI, client: AsyncClient) -> None:
    taken = await client.post("/", json={"url": "https://taken.example.com"})
    taken_id = taken.json()["url"].rsplit("/", 1)[1]
    candidates = iter([taken_id] * 9 + ["free01"])

    app.dependency_overrides[get_id_generator] = lambda: (lambda: next(candidates))
    response = await client.post("/", json={"url": "https://example.com"})

    assert response.status_code == 201
    assert response.json() == {"url": "http://test/free01"}


@pytest.mark.asyncio
async def test_shorten_storage_failure(app: FastAPI, client: AsyncClient) -> None:
    gateway = AsyncMock(spec=UrlGateway)
    gateway.upsert_by_url.side_effect = ShortenError.storage_failure("connection reset")
    app.dependency_overrides[get_shortener_service] = lambda: ShortenerService(gateway, 10)

    response = await client.post("/", json={"url": "https://example.com"})

    assert response.status_code == 500
    assert response.json() == {"message": "DB Operation: connection reset", "code": "DB_OPERATION_ERROR"}
    assert gateway.upsert_by_url.await_count == 1
