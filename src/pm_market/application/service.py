"""MarketApplicationService — thin composition layer.

All methods are read-only; no commit/rollback needed.
The open/closed flag and countdown are derived from the cycle clock at read
time, never stored.
"""

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_clock.domain.cycle_clock import MarketCycleClock
from src.pm_common.datetime_utils import utc_now
from src.pm_common.errors import MarketNotFoundError
from src.pm_market.application.schemas import MarketListResponse, MarketStateResponse
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.persistence import MarketRepository


class MarketApplicationService:
    def __init__(
        self,
        repo: MarketRepositoryProtocol | None = None,
        clock: MarketCycleClock | None = None,
    ) -> None:
        self._repo: MarketRepositoryProtocol = repo or MarketRepository()
        self._clock = clock or MarketCycleClock(
            settings.CYCLE_START_HOUR, settings.CYCLE_UTC_OFFSET_HOURS
        )

    async def list_markets(
        self, db: AsyncSession, now: datetime | None = None
    ) -> MarketListResponse:
        now = now or utc_now()
        markets = await self._repo.list_markets(db)
        return MarketListResponse(
            items=[MarketStateResponse.from_domain(m, self._clock, now) for m in markets]
        )

    async def get_market_state(
        self, db: AsyncSession, market_id: str, now: datetime | None = None
    ) -> MarketStateResponse:
        market = await self._repo.get_market(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        return MarketStateResponse.from_domain(market, self._clock, now or utc_now())
