"""
Shared pytest fixtures for the newsdesk test suite.

This module provides fixtures for:
- An in-memory fake of the newsroom admin backend (FastAPI app)
- Async HTTP client bound to the fake backend through ASGITransport
- AdminAPIClient instances wired to that client
- Mock admin clients for isolated service tests

All fixtures support async tests via pytest-asyncio.
"""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from newsdesk.services.admin_api import AdminAPIClient
from tests.fake_admin import FakeAdminBackend, create_fake_admin_app


# ============================================================================
# Fake Backend Fixtures
# ============================================================================


@pytest.fixture
def fake_backend() -> FakeAdminBackend:
    """Provide empty fake backend state."""
    return FakeAdminBackend()


@pytest.fixture
def test_app(fake_backend: FakeAdminBackend) -> FastAPI:
    """Provide the fake admin FastAPI app bound to ``fake_backend``."""
    return create_fake_admin_app(fake_backend)


# ============================================================================
# HTTP Client Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def async_client(
    test_app: FastAPI,
    fake_backend: FakeAdminBackend,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Provide async HTTP client for the fake admin backend.

    Every request is recorded in ``fake_backend.requests``.

    Usage:
        async def test_endpoint(async_client):
            response = await async_client.get("/api/admin/ai/processing-status")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=test_app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        event_hooks={"request": [fake_backend.record]},
    ) as client:
        yield client


@pytest_asyncio.fixture
async def admin_client(
    async_client: AsyncClient,
) -> AsyncGenerator[AdminAPIClient, None]:
    """
    Provide AdminAPIClient that talks to the fake backend.

    Usage:
        async def test_list(admin_client, fake_backend):
            fake_backend.jobs.append(create_processing_job())
            body = await admin_client.list_processing_jobs()
    """
    client = AdminAPIClient(
        base_url="http://test",
        token="test-token",
        user_agent="Newsdesk/test",
        client=async_client,
    )
    yield client
    await client.aclose()


# ============================================================================
# Mock Clients
# ============================================================================


@pytest.fixture
def mock_admin_client() -> MagicMock:
    """
    Provide mock AdminAPIClient with async methods.

    Every method succeeds with an empty body unless the test configures it.

    Usage:
        async def test_fetch(mock_admin_client):
            mock_admin_client.list_duplicates.return_value = {...}
    """
    mock = MagicMock(spec=AdminAPIClient)
    for name in (
        "list_duplicates",
        "resolve_duplicates",
        "schedule_article",
        "get_article_schedules",
        "cancel_schedule",
        "list_scheduled_articles",
        "process_due_publications",
        "list_publications",
        "list_processing_jobs",
        "start_batch_processing",
        "update_job",
    ):
        setattr(mock, name, AsyncMock(return_value={}))
    return mock
