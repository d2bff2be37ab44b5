"""
Pytest fixtures and configuration for all tests.
"""

import os

# Settings requiere REDIS_URL; los tests nunca se conectan a un Redis real
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

import pytest
from typing import AsyncGenerator
from fakeredis import FakeAsyncRedis

from app.repositories.leaderboard_index import LeaderboardIndex
from app.repositories.stats_repository import StatsRepository


@pytest.fixture(scope="function")
async def test_store() -> AsyncGenerator[FakeAsyncRedis, None]:
    """
    Provide a clean in-memory Redis for each test.

    Same client API as redis.asyncio.Redis, nothing shared between tests.
    """
    store = FakeAsyncRedis(decode_responses=True)

    yield store

    await store.flushall()
    await store.aclose()


@pytest.fixture
def leaderboard_index(test_store):
    return LeaderboardIndex(test_store)


@pytest.fixture
def stats_repo(test_store, leaderboard_index):
    return StatsRepository(test_store, leaderboard_index)


@pytest.fixture
def sample_addresses():
    """Three distinct, already-normalized wallet addresses."""
    return [
        "0xaa00000000000000000000000000000000000001",
        "0xbb00000000000000000000000000000000000002",
        "0xcc00000000000000000000000000000000000003",
    ]


@pytest.fixture
def sample_address(sample_addresses):
    return sample_addresses[0]
