from .user_stats import UserStats, GlobalStats, SpinEvent
from .leaderboard import (
    LeaderboardType,
    LeaderboardEntry,
    LeaderboardResult,
    Pagination,
    RankedAddress,
    RankingPage,
)

__all__ = [
    "UserStats",
    "GlobalStats",
    "SpinEvent",
    "LeaderboardType",
    "LeaderboardEntry",
    "LeaderboardResult",
    "Pagination",
    "RankedAddress",
    "RankingPage",
]
