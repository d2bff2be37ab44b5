"""
Dependencies de FastAPI para inyección del store y de los servicios

Cada request arma sus repositorios sobre el cliente de Redis del proceso;
ningún componente guarda un cliente global propio.
"""

from typing import Annotated

from fastapi import Depends
from redis.asyncio import Redis

from app.core.config import get_settings
from app.database import get_database
from app.repositories.leaderboard_index import LeaderboardIndex
from app.repositories.stats_repository import StatsRepository
from app.services.leaderboard_service import LeaderboardService
from app.services.name_resolution_service import NameResolutionCache
from app.services.stats_service import StatsService


def get_stats_service(
    store: Annotated[Redis, Depends(get_database)]
) -> StatsService:
    return StatsService(StatsRepository(store, LeaderboardIndex(store)))


def get_name_cache(
    store: Annotated[Redis, Depends(get_database)]
) -> NameResolutionCache:
    return NameResolutionCache.from_settings(store, get_settings())


def get_leaderboard_service(
    store: Annotated[Redis, Depends(get_database)],
    names: Annotated[NameResolutionCache, Depends(get_name_cache)]
) -> LeaderboardService:
    index = LeaderboardIndex(store)
    return LeaderboardService(
        StatsRepository(store, index),
        index,
        names,
        max_limit=get_settings().leaderboard_max_limit,
    )


# Alias de tipos para que se vea mas limpio en los endpoints
Stats = Annotated[StatsService, Depends(get_stats_service)]
Leaderboard = Annotated[LeaderboardService, Depends(get_leaderboard_service)]
