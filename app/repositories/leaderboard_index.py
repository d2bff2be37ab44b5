"""
LeaderboardIndex - Redis sorted sets for the two leaderboard rankings.

Both rankings are maintained at write time (one ZADD per ranking per spin),
so reads are a ZREVRANGE over the requested page instead of a full scan.

Scores are value + tiebreak, where the tiebreak is a deterministic sub-1e-6
fraction derived from the address. Scores are opaque: the value shown to
users is always re-derived from UserStats.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from redis.asyncio import Redis
from redis.asyncio.client import Pipeline
from redis.exceptions import RedisError

from app.models.leaderboard import LeaderboardType, RankedAddress, RankingPage
from app.models.user_stats import UserStats
from app.repositories.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

# 8 hex chars -> [0, 16^8); scaled so the fraction stays below 1e-6
TIEBREAK_HEX_CHARS = 8
TIEBREAK_DIVISOR = float(16 ** TIEBREAK_HEX_CHARS) * 1e6

ONE_DECIMAL = Decimal("0.1")


def leaderboard_key(ranking: LeaderboardType) -> str:
    return f"leaderboard:{ranking.value}"


def address_tiebreak(address: str) -> float:
    """Deterministic fraction in [0, 1e-6) taken from the address prefix."""
    prefix = address[2:2 + TIEBREAK_HEX_CHARS]
    return int(prefix, 16) / TIEBREAK_DIVISOR


def win_ratio_percent(spins: int, wins: int) -> Decimal:
    """Exact win percentage (0-100); zero when there are no spins."""
    if spins <= 0:
        return Decimal("0")
    return Decimal(wins * 100) / Decimal(spins)


def format_win_ratio(spins: int, wins: int) -> str:
    """Win percentage rounded half-up to one decimal ("66.7", "0.0")."""
    if spins <= 0:
        return "0.0"
    return str(win_ratio_percent(spins, wins).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP))


def ranking_scores(stats: UserStats) -> dict[LeaderboardType, float]:
    """
    Scores to upsert for an address.

    total_won is always present; win_ratio only once the user has spun.
    """
    tiebreak = address_tiebreak(stats.address)
    scores = {
        LeaderboardType.TOTAL_WON: float(Decimal(stats.total_won)) + tiebreak,
    }
    if stats.spins > 0:
        scores[LeaderboardType.WIN_RATIO] = (
            float(win_ratio_percent(stats.spins, stats.wins)) + tiebreak
        )
    return scores


class LeaderboardIndex:
    def __init__(self, store: Redis):
        self.store = store

    def stage_update(self, pipe: Pipeline, stats: UserStats) -> None:
        """
        Queue the ranking upserts on a pipeline that is already in MULTI.

        Used by StatsRepository so the rankings commit atomically with the
        stats they were computed from.
        """
        for ranking, score in ranking_scores(stats).items():
            pipe.zadd(leaderboard_key(ranking), {stats.address: score})

    async def update(self, address: str, stats: UserStats) -> None:
        """Upsert (replace, never add to) the address's score in each ranking."""
        try:
            async with self.store.pipeline(transaction=True) as pipe:
                self.stage_update(pipe, stats.model_copy(update={"address": address}))
                await pipe.execute()
        except RedisError as e:
            logger.error(f"Error updating leaderboards for {address}: {e}")
            raise StoreUnavailableError("Failed to update leaderboards") from e

    async def query(
        self,
        ranking: LeaderboardType,
        limit: int,
        offset: int
    ) -> RankingPage:
        """
        Read one page of a ranking, highest score first.

        Callers validate limit/offset; an offset past the end returns an
        empty page without touching the range.
        """
        if limit < 1 or offset < 0:
            raise ValueError("limit must be >= 1 and offset must be >= 0")

        key = leaderboard_key(ranking)
        try:
            total = await self.store.zcard(key)

            if offset >= total:
                return RankingPage(members=[], total=total, offset=offset, limit=limit)

            rows = await self.store.zrevrange(
                key, offset, offset + limit - 1, withscores=True
            )
        except RedisError as e:
            logger.error(f"Error reading leaderboard {ranking.value}: {e}")
            raise StoreUnavailableError("Failed to read leaderboard") from e

        members = [
            RankedAddress(address=address, ranking_score=float(score))
            for address, score in rows
        ]
        return RankingPage(members=members, total=total, offset=offset, limit=limit)

    async def rank(self, ranking: LeaderboardType, address: str) -> Optional[int]:
        """1-based rank of an address, None when it is not ranked."""
        try:
            position = await self.store.zrevrank(leaderboard_key(ranking), address)
        except RedisError as e:
            logger.error(f"Error reading rank for {address}: {e}")
            raise StoreUnavailableError("Failed to read leaderboard rank") from e

        return position + 1 if position is not None else None
