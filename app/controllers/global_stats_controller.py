"""
Controlador de estadísticas globales - Totales de juegos, victorias y jugadores
"""

from fastapi import APIRouter, HTTPException, status

from app.core.dependencies import Stats
from app.models.user_stats import GlobalStats
from app.repositories.errors import StoreUnavailableError


router = APIRouter(tags=["global-stats"])


@router.get("/global-stats", response_model=GlobalStats)
async def get_global_stats(stats: Stats):
    """
    Obtener los contadores globales.
    """
    try:
        return await stats.get_global_stats()
    except StoreUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get global stats: {e}"
        )
