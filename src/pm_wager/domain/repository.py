# src/pm_wager/domain/repository.py
"""WagerRepository Protocol — interface contract for persistence layer."""
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_wager.domain.models import Wager


class WagerRepositoryProtocol(Protocol):
    async def append(self, db: AsyncSession, wager: Wager) -> None: ...

    async def list_by_market(self, db: AsyncSession, market_id: str) -> list[Wager]: ...

    async def list_by_account(
        self,
        db: AsyncSession,
        account_id: str,
        market_id: str | None,
        limit: int,
    ) -> list[Wager]: ...

    async def sum_staked_since(
        self,
        db: AsyncSession,
        account_id: str,
        market_id: str,
        since: datetime,
    ) -> int:
        """Total cents the account has staked on the market at or after ``since``."""
        ...

    async def purge_market(self, db: AsyncSession, market_id: str) -> int: ...
