from pydantic import BaseModel, ConfigDict, Field


class UserStats(BaseModel):
    """Contadores por usuario (uno por address)"""

    model_config = ConfigDict(populate_by_name=True)

    address: str
    spins: int = 0
    wins: int = 0
    total_won: str = Field("0", alias="totalWon")  # string para no perder precisión
    first_seen: int = Field(0, alias="firstSeen")  # ms desde epoch, se setea una sola vez
    last_seen: int = Field(0, alias="lastSeen")

    @classmethod
    def from_hash(cls, address: str, data: dict | None) -> "UserStats":
        """Construye desde el hash de Redis; campos faltantes valen cero."""
        data = data or {}
        return cls(
            address=address,
            spins=int(data.get("spins") or 0),
            wins=int(data.get("wins") or 0),
            total_won=data.get("totalWon") or "0",
            first_seen=int(data.get("firstSeen") or 0),
            last_seen=int(data.get("lastSeen") or 0),
        )

    def to_hash(self) -> dict[str, str]:
        return {
            "spins": str(self.spins),
            "wins": str(self.wins),
            "totalWon": self.total_won,
            "firstSeen": str(self.first_seen),
            "lastSeen": str(self.last_seen),
        }


class GlobalStats(BaseModel):
    """Contadores globales del proceso/store"""

    model_config = ConfigDict(populate_by_name=True)

    total_games: int = Field(0, alias="totalGames")
    total_wins: int = Field(0, alias="totalWins")
    total_players: int = Field(0, alias="totalPlayers")


class SpinEvent(BaseModel):
    """Un spin completado, reportado por la capa del contrato"""

    address: str
    is_win: bool
    tokens_won: str = "0"
