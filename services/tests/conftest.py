"""Pytest configuration for the services test suite."""

from __future__ import annotations

import sys
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient


def _ensure_src_on_path() -> None:
    """Add the services src directory to ``sys.path`` for imports."""

    src_dir = Path(__file__).resolve().parent.parent / "src"
    src_path = str(src_dir)
    if src_dir.is_dir() and src_path not in sys.path:
        sys.path.insert(0, src_path)


_ensure_src_on_path()


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_metrics() -> Iterator[None]:
    from latexai.services import metrics

    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture()
def service_app(tmp_path: Path) -> Iterator[FastAPI]:
    """Provide the FastAPI application in offline mode with a temporary data dir."""

    from latexai.services.app import create_app
    from latexai.services.config import ServiceSettings
    from latexai.services.settings import BackendSettings

    app = create_app(
        ServiceSettings(data_dir=tmp_path / "data", completion_retry_attempts=0),
        backend_settings=BackendSettings(mode="offline"),
    )
    yield app
    app.dependency_overrides.clear()


@pytest.fixture()
def test_client(service_app: FastAPI) -> Iterator[TestClient]:
    """Yield a test client bound to the shared FastAPI application."""

    with TestClient(service_app) as client:
        client.app = service_app  # type: ignore[attr-defined]
        yield client


@pytest.fixture()
async def async_client(service_app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    """Provide an HTTPX async client bound to the FastAPI application."""

    transport = httpx.ASGITransport(app=service_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
