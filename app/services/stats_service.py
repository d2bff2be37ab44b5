"""
StatsService - Entry point for spin events and per-user stats reads.
"""

import logging

from app.core.addresses import normalize_address, parse_amount
from app.models.user_stats import GlobalStats, SpinEvent, UserStats
from app.repositories.errors import StoreUnavailableError
from app.repositories.stats_repository import StatsRepository

logger = logging.getLogger(__name__)


class StatsServiceError(Exception):
    """Base exception for stats service errors."""
    pass


class SpinNotRecordedError(StatsServiceError):
    """Raised when the per-user or the global update of a spin failed."""
    pass


class StatsService:
    def __init__(self, stats_repo: StatsRepository):
        self.stats_repo = stats_repo

    async def create_account(self, address: str) -> bool:
        return await self.stats_repo.ensure_account(normalize_address(address))

    async def get_user_stats(self, address: str) -> UserStats:
        return await self.stats_repo.get_stats(normalize_address(address))

    async def get_global_stats(self) -> GlobalStats:
        return await self.stats_repo.get_global_stats()

    async def get_all_user_stats(self) -> dict[str, UserStats]:
        return await self.stats_repo.get_all_stats()

    async def process_spin(self, event: SpinEvent) -> UserStats:
        """
        Record a completed spin.

        The per-user update and the global increment are two independent
        writes: a failure in one does not skip the other. Any failure is
        raised after both were attempted, so the caller can retry/alert.
        """
        address = normalize_address(event.address)
        tokens_won = parse_amount(event.tokens_won)

        stats = None
        errors = []

        try:
            stats = await self.stats_repo.record_spin(address, event.is_win, tokens_won)
        except StoreUnavailableError as e:
            errors.append(e)

        try:
            await self.stats_repo.increment_global(event.is_win)
        except StoreUnavailableError as e:
            errors.append(e)

        if errors:
            logger.error(
                f"Spin for {address} partially applied "
                f"(user={'ok' if stats else 'failed'}, errors={len(errors)})"
            )
            raise SpinNotRecordedError(str(errors[0])) from errors[0]

        return stats
