from .stats_repository import StatsRepository
from .leaderboard_index import LeaderboardIndex

__all__ = [
    "StatsRepository",
    "LeaderboardIndex",
]
