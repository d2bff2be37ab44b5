"""
Fixtures for integration tests
"""

import pytest
from httpx import ASGITransport, AsyncClient
from unittest.mock import AsyncMock, Mock

from app.main import app
from app.database import Database
from app.core.dependencies import get_name_cache
from app.services.name_resolution_service import NameResolutionCache


@pytest.fixture
def fake_name_source():
    """Naming source that knows a single name; everything else has none."""
    source = Mock()
    source.name = "ens"
    source.lookup = AsyncMock(return_value=None)
    return source


@pytest.fixture
async def client(test_store, fake_name_source):
    """
    HTTP client for testing API endpoints.

    Swaps the process store for the in-memory one and keeps name
    resolution away from the network.
    """
    original_client = Database.client
    Database.client = test_store
    app.dependency_overrides[get_name_cache] = lambda: NameResolutionCache(
        test_store, [fake_name_source]
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    Database.client = original_client
