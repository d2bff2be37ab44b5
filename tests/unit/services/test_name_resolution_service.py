"""
Unit tests for NameResolutionCache
"""

import asyncio
import pytest
import httpx
from unittest.mock import AsyncMock, Mock

from app.services.name_resolution_service import NO_NAME, NameResolutionCache, name_key
from app.services.name_sources import BasenameSource, EnsNameSource, NameSourceError


def make_source(name: str, result=None, side_effect=None):
    source = Mock()
    source.name = name
    source.lookup = AsyncMock(return_value=result, side_effect=side_effect)
    return source


class TestNameResolutionCache:
    """Test suite for cached, best-effort display names."""

    @pytest.mark.asyncio
    async def test_primary_source_wins(self, test_store, sample_address):
        ens = make_source("ens", "alice.eth")
        basename = make_source("basename", "alice.base.eth")
        cache = NameResolutionCache(test_store, [ens, basename])

        assert await cache.resolve(sample_address) == "alice.eth"
        basename.lookup.assert_not_awaited()
        assert await test_store.get(name_key(sample_address)) == "alice.eth"

    @pytest.mark.asyncio
    async def test_falls_back_to_secondary(self, test_store, sample_address):
        ens = make_source("ens", None)
        basename = make_source("basename", "alice.base.eth")
        cache = NameResolutionCache(test_store, [ens, basename])

        assert await cache.resolve(sample_address) == "alice.base.eth"
        ens.lookup.assert_awaited_once_with(sample_address)

    @pytest.mark.asyncio
    async def test_negative_result_is_cached_with_ttl(self, test_store, sample_address):
        """No ENS and no basename: cache "no name" and don't ask again."""
        ens = make_source("ens", None)
        basename = make_source("basename", None)
        cache = NameResolutionCache(test_store, [ens, basename], ttl_seconds=3600)

        assert await cache.resolve(sample_address) is None
        assert await cache.resolve(sample_address) is None

        assert ens.lookup.await_count == 1
        assert basename.lookup.await_count == 1
        assert await test_store.get(name_key(sample_address)) == NO_NAME
        ttl = await test_store.ttl(name_key(sample_address))
        assert 0 < ttl <= 3600

    @pytest.mark.asyncio
    async def test_expired_entry_is_resolved_again(self, test_store, sample_address):
        ens = make_source("ens", None)
        cache = NameResolutionCache(test_store, [ens])

        await cache.resolve(sample_address)
        await test_store.delete(name_key(sample_address))  # TTL vencido
        await cache.resolve(sample_address)

        assert ens.lookup.await_count == 2

    @pytest.mark.asyncio
    async def test_source_failures_mean_no_name(self, test_store, sample_address):
        ens = make_source("ens", side_effect=NameSourceError("rpc down"))
        basename = make_source("basename", side_effect=NameSourceError("503"))
        cache = NameResolutionCache(test_store, [ens, basename])

        assert await cache.resolve(sample_address) is None

    @pytest.mark.asyncio
    async def test_unexpected_source_error_falls_through(self, test_store, sample_address):
        ens = make_source("ens", side_effect=AttributeError("boom"))
        basename = make_source("basename", "bob.base.eth")
        cache = NameResolutionCache(test_store, [ens, basename])

        assert await cache.resolve(sample_address) == "bob.base.eth"
        basename.lookup.assert_awaited_once_with(sample_address)

    @pytest.mark.asyncio
    async def test_malformed_rpc_reply_tries_basename(self, test_store, sample_address):
        """An RPC node answering with a JSON list is "no ENS name", not a crash."""
        ens = EnsNameSource(
            "https://rpc.test",
            "0x00000000000c2e074ec69a0dfb2997ba6c7d2e1e",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[1, 2]))
        )
        basename = BasenameSource(
            "https://resolver.test/v1/name",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"name": "bob.base.eth"}))
        )
        cache = NameResolutionCache(test_store, [ens, basename])

        assert await cache.resolve(sample_address) == "bob.base.eth"
        assert await test_store.get(name_key(sample_address)) == "bob.base.eth"

    @pytest.mark.asyncio
    async def test_slow_source_times_out(self, test_store, sample_address):
        async def slow_lookup(address):
            await asyncio.sleep(5)
            return "late.eth"

        ens = Mock()
        ens.name = "ens"
        ens.lookup = slow_lookup
        basename = make_source("basename", "fast.base.eth")
        cache = NameResolutionCache(test_store, [ens, basename], lookup_timeout=0.05)

        assert await cache.resolve(sample_address) == "fast.base.eth"

    @pytest.mark.asyncio
    async def test_cached_names_only_returns_hits(self, test_store, sample_addresses):
        await test_store.set(name_key(sample_addresses[0]), "alice.eth")
        await test_store.set(name_key(sample_addresses[1]), NO_NAME)
        cache = NameResolutionCache(test_store, [])

        cached = await cache.cached_names(sample_addresses)

        assert cached == {sample_addresses[0]: "alice.eth", sample_addresses[1]: None}

    @pytest.mark.asyncio
    async def test_resolve_many(self, test_store, sample_addresses):
        names = {sample_addresses[0]: "alice.eth"}
        source = Mock()
        source.name = "ens"
        source.lookup = AsyncMock(side_effect=lambda address: names.get(address))
        cache = NameResolutionCache(test_store, [source])

        result = await cache.resolve_many(sample_addresses + [sample_addresses[0]])

        assert result == {
            sample_addresses[0]: "alice.eth",
            sample_addresses[1]: None,
            sample_addresses[2]: None,
        }
        assert source.lookup.await_count == 3

    @pytest.mark.asyncio
    async def test_refresh_skips_addresses_being_resolved(self, test_store, sample_addresses):
        await test_store.set(f"name:{sample_addresses[0]}:resolving", "1", ex=30)
        source = make_source("ens", "someone.eth")
        cache = NameResolutionCache(test_store, [source])

        result = await cache.refresh(sample_addresses[:2])

        assert list(result) == [sample_addresses[1]]
        source.lookup.assert_awaited_once_with(sample_addresses[1])
        assert await test_store.exists(f"name:{sample_addresses[1]}:resolving") == 0
