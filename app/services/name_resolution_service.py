"""
NameResolutionCache - Nombres legibles (ENS / basenames) cacheados en Redis.

El ranking nunca espera a esta capa: el leaderboard lee lo que ya está en
caché y los faltantes se resuelven en segundo plano.

Estados por address:
    sin resolver -> resolviendo -> {con nombre | sin nombre}
y vuelve a "sin resolver" cuando vence el TTL.
"""

import asyncio
import logging
from typing import Iterable, Optional, Sequence

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.core.config import Settings
from app.services.name_sources import (
    BasenameSource,
    EnsNameSource,
    NameSource,
    NameSourceError,
)

logger = logging.getLogger(__name__)

# Marca de resultado negativo: un nombre ENS real siempre lleva un punto
NO_NAME = "null"


def name_key(address: str) -> str:
    return f"name:{address}"


def resolving_key(address: str) -> str:
    return f"name:{address}:resolving"


class NameResolutionCache:
    def __init__(
        self,
        store: Redis,
        sources: Sequence[NameSource],
        ttl_seconds: int = 3600,
        lookup_timeout: float = 3.0,
        resolving_lock_seconds: int = 30,
    ):
        self.store = store
        self.sources = list(sources)
        self.ttl_seconds = ttl_seconds
        self.lookup_timeout = lookup_timeout
        self.resolving_lock_seconds = resolving_lock_seconds

    @classmethod
    def from_settings(cls, store: Redis, settings: Settings) -> "NameResolutionCache":
        """ENS primero, basenames después."""
        timeout = settings.name_lookup_timeout_seconds
        return cls(
            store,
            sources=[
                EnsNameSource(settings.ens_rpc_url, settings.ens_registry_address, timeout),
                BasenameSource(settings.basename_api_url, timeout),
            ],
            ttl_seconds=settings.name_cache_ttl_seconds,
            lookup_timeout=timeout,
            resolving_lock_seconds=settings.name_resolving_lock_seconds,
        )

    async def cached_names(self, addresses: Sequence[str]) -> dict[str, Optional[str]]:
        """
        Solo aciertos de caché, en un MGET.

        Las addresses ausentes del resultado no fueron resueltas todavía
        (o su entrada venció); None significa "resuelta, sin nombre".
        """
        if not addresses:
            return {}
        try:
            values = await self.store.mget([name_key(a) for a in addresses])
        except RedisError as e:
            logger.warning(f"Error reading name cache: {e}")
            return {}

        return {
            address: (None if value == NO_NAME else value)
            for address, value in zip(addresses, values)
            if value is not None
        }

    async def _lookup(self, address: str) -> Optional[str]:
        """Prueba cada fuente en orden; el primer nombre gana."""
        for source in self.sources:
            try:
                found = await asyncio.wait_for(source.lookup(address), self.lookup_timeout)
            except asyncio.TimeoutError:
                logger.info(f"⏱️ {source.name} lookup timed out for {address}")
                continue
            except NameSourceError as e:
                logger.info(f"{source.name} lookup failed for {address}: {e}")
                continue
            except Exception as e:
                logger.warning(f"⚠️ {source.name} lookup crashed for {address}: {e!r}")
                continue

            if found:
                return found
        return None

    async def resolve(self, address: str) -> Optional[str]:
        """
        Nombre para mostrar, o None.

        Nunca lanza: un store caído o fuentes caídas equivalen a "sin nombre".
        """
        try:
            cached = await self.store.get(name_key(address))
        except RedisError as e:
            logger.warning(f"Error reading name cache for {address}: {e}")
            cached = None

        if cached is not None:
            return None if cached == NO_NAME else cached

        display_name = await self._lookup(address)

        try:
            await self.store.setex(name_key(address), self.ttl_seconds, display_name or NO_NAME)
        except RedisError as e:
            logger.warning(f"Error caching display name for {address}: {e}")

        return display_name

    async def resolve_many(self, addresses: Iterable[str]) -> dict[str, Optional[str]]:
        """Resuelve en paralelo; la cantidad la acota quien llama (una página)."""
        unique = list(dict.fromkeys(addresses))
        names = await asyncio.gather(*(self.resolve(a) for a in unique))
        return dict(zip(unique, names))

    async def refresh(self, addresses: Iterable[str]) -> dict[str, Optional[str]]:
        """
        Resuelve en segundo plano las addresses que ninguna otra
        instancia está resolviendo ya (marca SET NX con vencimiento).
        """
        claimed = []
        for address in dict.fromkeys(addresses):
            try:
                acquired = await self.store.set(
                    resolving_key(address), "1", nx=True, ex=self.resolving_lock_seconds
                )
            except RedisError as e:
                logger.warning(f"Error claiming name resolution for {address}: {e}")
                continue
            if acquired:
                claimed.append(address)

        if not claimed:
            return {}

        try:
            return await self.resolve_many(claimed)
        finally:
            try:
                await self.store.delete(*(resolving_key(a) for a in claimed))
            except RedisError as e:
                logger.warning(f"Error releasing name resolution marks: {e}")
