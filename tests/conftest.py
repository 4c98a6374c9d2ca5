"""Shared pytest fixtures for API and gateway tests against a SQLite store."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from shortener.config import Settings
from shortener.gateway import UrlGateway
from shortener.main import create_app


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        APP_ENV="test",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'shortener.db'}",
        BASE_URL="http://test",
        METRICS_ENABLED=False,
    )


@pytest_asyncio.fixture(scope="function")
async def gateway(settings: Settings) -> AsyncGenerator[UrlGateway, None]:
    gateway = await UrlGateway.connect(settings)
    yield gateway
    await gateway.close()


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    # ASGITransport does not send lifespan events, so run startup/shutdown here
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac

    app.dependency_overrides.clear()
