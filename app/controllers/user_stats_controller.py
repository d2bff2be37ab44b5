"""
Controlador de estadísticas de usuario - Cuentas, spins y export masivo

La capa del contrato llama a POST /user-stats cada vez que termina un spin.
"""

from typing import Literal, Optional, Union

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr

from app.core.addresses import InvalidAddressError, InvalidAmountError
from app.core.dependencies import Stats
from app.models.user_stats import SpinEvent, UserStats
from app.repositories.errors import StoreUnavailableError
from app.services.stats_service import SpinNotRecordedError


router = APIRouter(tags=["user-stats"])


class UserStatsRequest(BaseModel):
    """Body de POST /user-stats (crear cuenta o registrar un spin)."""

    model_config = ConfigDict(populate_by_name=True)

    address: Optional[str] = None
    action: Literal["create", "update"]
    is_win: Optional[StrictBool] = Field(None, alias="isWin")
    tokens_won: Optional[Union[StrictStr, StrictInt, StrictFloat]] = Field(None, alias="tokensWon")


class SuccessResponse(BaseModel):
    success: bool


@router.get("/user-stats", response_model=UserStats)
async def get_user_stats(
    stats: Stats,
    address: Optional[str] = Query(None, description="Wallet address")
):
    """
    Obtener las estadísticas de un usuario.

    Una address desconocida devuelve todo en cero, no un error.
    """
    if not address:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Address is required"
        )

    try:
        return await stats.get_user_stats(address)
    except InvalidAddressError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.post("/user-stats", response_model=Union[UserStats, SuccessResponse])
async def update_user_stats(body: UserStatsRequest, stats: Stats):
    """
    Crear la cuenta de un usuario o registrar un spin completado.

    - action="create": idempotente, crea perfil y stats en cero
    - action="update": requiere isWin booleano; tokensWon por defecto "0"
    """
    if not body.address:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Address is required"
        )

    try:
        if body.action == "create":
            await stats.create_account(body.address)
            return SuccessResponse(success=True)

        if body.is_win is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="isWin must be a boolean"
            )

        event = SpinEvent(
            address=body.address,
            is_win=body.is_win,
            tokens_won="0" if body.tokens_won is None else str(body.tokens_won),
        )
        return await stats.process_spin(event)

    except (InvalidAddressError, InvalidAmountError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except (StoreUnavailableError, SpinNotRecordedError) as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update user stats: {e}"
        )


@router.get("/all-user-stats", response_model=dict[str, UserStats])
async def get_all_user_stats(stats: Stats):
    """
    Export de las estadísticas de todos los usuarios (address -> stats).
    """
    try:
        return await stats.get_all_user_stats()
    except StoreUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch all user stats: {e}"
        )
