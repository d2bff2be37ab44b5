"""
StatsRepository - Redis access for per-user and global counters.

All per-user mutation goes through record_spin, which runs as an optimistic
transaction (WATCH/MULTI/EXEC) on the user's stats hash, so concurrent spins
for the same address are serialized by Redis and never lost.
"""

import logging
import time
from decimal import Decimal

from redis.asyncio import Redis
from redis.asyncio.client import Pipeline
from redis.exceptions import RedisError

from app.core.addresses import add_amounts
from app.models.user_stats import GlobalStats, UserStats
from app.repositories.errors import StoreUnavailableError
from app.repositories.leaderboard_index import LeaderboardIndex

logger = logging.getLogger(__name__)

GLOBAL_STATS_KEY = "global:stats"
STATS_KEY_PATTERN = "user:*:stats"


def stats_key(address: str) -> str:
    return f"user:{address}:stats"


def profile_key(address: str) -> str:
    return f"user:{address}:profile"


def now_ms() -> int:
    return int(time.time() * 1000)


class StatsRepository:
    def __init__(self, store: Redis, index: LeaderboardIndex):
        self.store = store
        self.index = index

    async def ensure_account(self, address: str) -> bool:
        """
        Create the profile and a zeroed stats hash if they don't exist.

        Idempotent: stats fields are written with HSETNX, and the profile
        and the totalPlayers bump go out in the same MULTI, only when the
        profile is missing. Returns True only for the call that created it.
        """
        zeroed = UserStats(address=address).to_hash()
        profile = profile_key(address)

        async def apply(pipe: Pipeline) -> bool:
            created = not await pipe.exists(profile)

            pipe.multi()
            if created:
                pipe.hset(profile, mapping={"address": address, "createdAt": str(now_ms())})
                pipe.hincrby(GLOBAL_STATS_KEY, "totalPlayers", 1)
            for field, value in zeroed.items():
                pipe.hsetnx(stats_key(address), field, value)
            return created

        try:
            return await self.store.transaction(apply, profile, value_from_callable=True)
        except RedisError as e:
            logger.error(f"Error creating user account {address}: {e}")
            raise StoreUnavailableError("Failed to create user account") from e

    async def get_stats(self, address: str) -> UserStats:
        """Stats for an address; unknown addresses (and outages) read as zero."""
        try:
            data = await self.store.hgetall(stats_key(address))
        except RedisError as e:
            logger.warning(f"Error getting user stats for {address}: {e}")
            return UserStats(address=address)

        return UserStats.from_hash(address, data)

    async def get_many(self, addresses: list[str]) -> dict[str, UserStats]:
        """Stats for a bounded list of addresses in one round trip."""
        if not addresses:
            return {}
        try:
            async with self.store.pipeline(transaction=False) as pipe:
                for address in addresses:
                    pipe.hgetall(stats_key(address))
                rows = await pipe.execute()
        except RedisError as e:
            logger.warning(f"Error hydrating stats for {len(addresses)} users: {e}")
            return {address: UserStats(address=address) for address in addresses}

        return {
            address: UserStats.from_hash(address, data)
            for address, data in zip(addresses, rows)
        }

    async def record_spin(
        self,
        address: str,
        is_win: bool,
        tokens_won: Decimal
    ) -> UserStats:
        """
        Apply one completed spin and re-rank the address.

        Raises StoreUnavailableError instead of dropping the update.
        """
        key = stats_key(address)

        async def apply(pipe: Pipeline) -> UserStats:
            current = UserStats.from_hash(address, await pipe.hgetall(key))
            now = now_ms()

            updated = current.model_copy(update={
                "spins": current.spins + 1,
                "wins": current.wins + 1 if is_win else current.wins,
                "total_won": add_amounts(current.total_won, tokens_won),
                "first_seen": current.first_seen or now,
                "last_seen": now,
            })

            pipe.multi()
            pipe.hset(key, mapping=updated.to_hash())
            self.index.stage_update(pipe, updated)
            return updated

        try:
            await self.ensure_account(address)
            return await self.store.transaction(apply, key, value_from_callable=True)
        except RedisError as e:
            logger.error(f"Error recording spin for {address}: {e}")
            raise StoreUnavailableError("Failed to record spin") from e

    async def increment_global(self, is_win: bool) -> None:
        """Bump global counters; separate from record_spin on purpose."""
        try:
            async with self.store.pipeline(transaction=True) as pipe:
                pipe.hincrby(GLOBAL_STATS_KEY, "totalGames", 1)
                if is_win:
                    pipe.hincrby(GLOBAL_STATS_KEY, "totalWins", 1)
                await pipe.execute()
        except RedisError as e:
            logger.error(f"Error incrementing global stats: {e}")
            raise StoreUnavailableError("Failed to increment global stats") from e

    async def get_global_stats(self) -> GlobalStats:
        try:
            data = await self.store.hgetall(GLOBAL_STATS_KEY)
        except RedisError as e:
            logger.error(f"Error getting global stats: {e}")
            raise StoreUnavailableError("Failed to get global stats") from e

        data = data or {}
        return GlobalStats(
            total_games=int(data.get("totalGames") or 0),
            total_wins=int(data.get("totalWins") or 0),
            total_players=int(data.get("totalPlayers") or 0),
        )

    async def get_all_stats(self) -> dict[str, UserStats]:
        """Bulk export of every user's stats, keyed by address."""
        try:
            keys = [key async for key in self.store.scan_iter(match=STATS_KEY_PATTERN, count=500)]
            if not keys:
                return {}

            async with self.store.pipeline(transaction=False) as pipe:
                for key in keys:
                    pipe.hgetall(key)
                rows = await pipe.execute()
        except RedisError as e:
            logger.error(f"Error exporting user stats: {e}")
            raise StoreUnavailableError("Failed to export user stats") from e

        result = {}
        for key, data in zip(keys, rows):
            address = key.split(":")[1]
            result[address] = UserStats.from_hash(address, data)
        return dict(sorted(result.items()))
