"""
Controlador de leaderboards - Endpoints de clasificación

El orden sale de los índices mantenidos en cada spin; los nombres
(ENS / basenames) se completan en segundo plano y aparecen al re-consultar.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, status
from pydantic import BaseModel

from app.core.addresses import InvalidAddressError
from app.core.config import get_settings
from app.core.dependencies import Leaderboard
from app.models.leaderboard import LeaderboardResult, LeaderboardType
from app.repositories.errors import StoreUnavailableError
from app.services.leaderboard_service import InvalidPaginationError


router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


class RankResponse(BaseModel):
    """Posición de una address en un ranking."""
    address: str
    type: LeaderboardType
    rank: Optional[int] = None


@router.get(
    "",
    response_model=LeaderboardResult,
    response_model_exclude_none=True
)
async def get_leaderboard(
    leaderboard: Leaderboard,
    background_tasks: BackgroundTasks,
    type: LeaderboardType = Query(LeaderboardType.TOTAL_WON, description="total_won | win_ratio"),
    limit: Optional[int] = Query(None, description="Page size (1-50)"),
    offset: int = Query(0, description="Entries to skip"),
    resolve_names: bool = Query(False, alias="resolveNames")
):
    """
    Obtener una página del leaderboard.

    Con resolveNames=true se devuelven los nombres que ya están en caché;
    los que faltan se resuelven después de responder.
    """
    try:
        if limit is None:
            limit = get_settings().leaderboard_default_limit

        result = await leaderboard.get_leaderboard(type, limit, offset)
    except InvalidPaginationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except StoreUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get leaderboard: {e}"
        )

    if resolve_names:
        unresolved = await leaderboard.attach_cached_names(result)
        if unresolved:
            background_tasks.add_task(leaderboard.names.refresh, unresolved)

    return result


@router.get("/rank", response_model=RankResponse)
async def get_rank(
    leaderboard: Leaderboard,
    address: Optional[str] = Query(None, description="Wallet address"),
    type: LeaderboardType = Query(LeaderboardType.TOTAL_WON)
):
    """
    Obtener la posición de una address en el leaderboard.
    """
    if not address:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Address is required"
        )

    try:
        rank = await leaderboard.get_user_rank(address, type)
    except InvalidAddressError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except StoreUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get leaderboard rank: {e}"
        )

    return RankResponse(address=address.lower(), type=type, rank=rank)
