"""
LeaderboardService - Paginated leaderboard reads.

The ranking order comes from the sorted-set index; every field shown to
the user is re-read from UserStats for the page being served.
"""

from typing import Optional

from app.core.addresses import normalize_address
from app.models.leaderboard import (
    LeaderboardEntry,
    LeaderboardResult,
    LeaderboardType,
    Pagination,
)
from app.models.user_stats import UserStats
from app.repositories.leaderboard_index import LeaderboardIndex, format_win_ratio
from app.repositories.stats_repository import StatsRepository
from app.services.name_resolution_service import NameResolutionCache

MIN_LIMIT = 1
MAX_LIMIT = 50


class LeaderboardServiceError(Exception):
    """Base exception for leaderboard service errors."""
    pass


class InvalidPaginationError(LeaderboardServiceError):
    """Raised when limit/offset fall outside the accepted bounds."""
    pass


def _display_value(ranking: LeaderboardType, stats: UserStats, win_ratio: str) -> str:
    if ranking == LeaderboardType.WIN_RATIO:
        return win_ratio
    return stats.total_won


class LeaderboardService:
    def __init__(
        self,
        stats_repo: StatsRepository,
        index: LeaderboardIndex,
        names: Optional[NameResolutionCache] = None,
        max_limit: int = MAX_LIMIT,
    ):
        self.stats_repo = stats_repo
        self.index = index
        self.names = names
        self.max_limit = max_limit

    async def get_leaderboard(
        self,
        ranking: LeaderboardType = LeaderboardType.TOTAL_WON,
        limit: int = 10,
        offset: int = 0
    ) -> LeaderboardResult:
        """One page of a ranking, highest first, without display names."""
        if limit < MIN_LIMIT or limit > self.max_limit:
            raise InvalidPaginationError(f"Limit must be between {MIN_LIMIT} and {self.max_limit}")
        if offset < 0:
            raise InvalidPaginationError("Offset must be non-negative")

        page = await self.index.query(ranking, limit, offset)

        addresses = [m.address for m in page.members]
        stats_by_address = await self.stats_repo.get_many(addresses)

        entries = []
        for position, member in enumerate(page.members):
            stats = stats_by_address.get(member.address) or UserStats(address=member.address)
            win_ratio = format_win_ratio(stats.spins, stats.wins)

            entries.append(LeaderboardEntry(
                rank=offset + position + 1,
                address=member.address,
                total_won=stats.total_won,
                spins=stats.spins,
                wins=stats.wins,
                win_ratio=win_ratio,
                ranking_score=member.ranking_score,
                display_value=_display_value(ranking, stats, win_ratio),
            ))

        return LeaderboardResult(
            entries=entries,
            pagination=Pagination(
                total=page.total,
                has_more=offset + len(entries) < page.total,
                current_offset=offset,
                limit=limit,
            )
        )

    async def attach_cached_names(self, result: LeaderboardResult) -> list[str]:
        """
        Fill display names that are already cached.

        Never waits for a naming service. Returns the addresses of the
        page with no cache entry yet, for a background refresh.
        """
        if self.names is None or not result.entries:
            return []

        cached = await self.names.cached_names([e.address for e in result.entries])

        unresolved = []
        for entry in result.entries:
            if entry.address in cached:
                entry.display_name = cached[entry.address]
            else:
                unresolved.append(entry.address)
        return unresolved

    async def get_user_rank(
        self,
        address: str,
        ranking: LeaderboardType = LeaderboardType.TOTAL_WON
    ) -> Optional[int]:
        """
        Get user's rank in a specific leaderboard ranking.

        Returns None when the address has never spun.
        """
        return await self.index.rank(ranking, normalize_address(address))
