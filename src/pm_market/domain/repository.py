# src/pm_market/domain/repository.py
"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock or in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_market.domain.models import Market, MarketResult


class MarketRepositoryProtocol(Protocol):
    async def get_market(
        self,
        db: AsyncSession,
        market_id: str,
    ) -> Market | None: ...

    async def list_markets(
        self,
        db: AsyncSession,
    ) -> list[Market]: ...

    async def update_result(
        self,
        db: AsyncSession,
        market_id: str,
        result: MarketResult,
    ) -> Market | None:
        """Overwrite the result; None when the market is missing or already approved."""
        ...

    async def claim_payout_latch(
        self,
        db: AsyncSession,
        market_id: str,
    ) -> bool:
        """Flip payouts_approved false -> true on a FINAL market. False if not claimed."""
        ...

    async def reset_market(
        self,
        db: AsyncSession,
        market_id: str,
    ) -> Market | None: ...
