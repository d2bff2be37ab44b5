from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LeaderboardType(str, Enum):
    """Tipos de ranking mantenidos por el índice"""

    TOTAL_WON = "total_won"  # tokens ganados acumulados
    WIN_RATIO = "win_ratio"  # porcentaje de victorias (solo usuarios con spins)


class RankedAddress(BaseModel):
    """Posición cruda en un sorted set (score opaco, incluye tiebreak)"""

    address: str
    ranking_score: float


class RankingPage(BaseModel):
    """Página leída del índice, antes de hidratar con UserStats"""

    members: list[RankedAddress]
    total: int
    offset: int
    limit: int


class LeaderboardEntry(BaseModel):
    """Entrada en una tabla de clasificación (derivada, nunca persistida)"""

    model_config = ConfigDict(populate_by_name=True)

    rank: int
    address: str
    display_name: Optional[str] = Field(None, alias="displayName")

    total_won: str = Field(..., alias="totalWon")
    spins: int
    wins: int
    win_ratio: str = Field(..., alias="winRatio")

    # ranking_score es solo para ordenar; display_value se re-deriva de UserStats
    ranking_score: float = Field(..., alias="rankingScore")
    display_value: str = Field(..., alias="displayValue")


class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    has_more: bool = Field(..., alias="hasMore")
    current_offset: int = Field(..., alias="currentOffset")
    limit: int


class LeaderboardResult(BaseModel):
    entries: list[LeaderboardEntry]
    pagination: Pagination
