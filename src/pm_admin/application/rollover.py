# src/pm_admin/application/rollover.py
"""Nightly market rollover.

At every cycle opening (CYCLE_START_HOUR in the bias timezone) each market is
reset for the new cycle: result back to PENDING, payouts_approved cleared, the
previous cycle's wagers purged. The reset of one market runs under the same
market lock as payout approval, so it can never interleave with an in-flight
settlement of that market.

A market whose lock is busy at the opening is skipped and retried every
ROLLOVER_RETRY_SECONDS until it resets or its first draw of the new cycle
passes. Until then its FINAL result keeps it closed for wagering.

The task is owned by the application lifespan:

    task = MarketRolloverTask()
    task.start()
    ...
    await task.stop()
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config.settings import settings
from src.pm_clock.domain.cycle_clock import MarketCycleClock
from src.pm_common.database import async_session_factory
from src.pm_common.datetime_utils import utc_now
from src.pm_common.errors import BusyError
from src.pm_common.locks import KeyedLocks, market_locks
from src.pm_common.transaction import atomic
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.persistence import MarketRepository
from src.pm_wager.domain.repository import WagerRepositoryProtocol
from src.pm_wager.infrastructure.persistence import WagerRepository

logger = logging.getLogger(__name__)


@dataclass
class RolloverPass:
    reset: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    # Earliest draw among the skipped markets; retries stop there
    retry_until: datetime | None = None


class MarketRolloverTask:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
        markets: MarketRepositoryProtocol | None = None,
        wagers: WagerRepositoryProtocol | None = None,
        clock: MarketCycleClock | None = None,
        locks: KeyedLocks | None = None,
        now_fn: Callable[[], datetime] = utc_now,
        retry_seconds: float = settings.ROLLOVER_RETRY_SECONDS,
    ) -> None:
        self._session_factory = session_factory
        self._markets: MarketRepositoryProtocol = markets or MarketRepository()
        self._wagers: WagerRepositoryProtocol = wagers or WagerRepository()
        self._clock = clock or MarketCycleClock(
            settings.CYCLE_START_HOUR, settings.CYCLE_UTC_OFFSET_HOURS
        )
        self._locks = locks or market_locks
        self._now_fn = now_fn
        self._retry_seconds = retry_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="market-rollover")
        logger.info("Market rollover task started")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Market rollover task stopped")

    def seconds_until_next_run(self, now: datetime) -> float:
        return max((self._clock.next_cycle_start(now) - now).total_seconds(), 0.0)

    async def run_once(
        self, now: datetime | None = None, market_ids: list[str] | None = None
    ) -> RolloverPass:
        """Reset every market (or only ``market_ids``) once."""
        now = now or self._now_fn()
        result = RolloverPass()
        async with self._session_factory() as db:
            markets = await self._markets.list_markets(db)
            if market_ids is not None:
                markets = [m for m in markets if m.id in market_ids]
            for market in markets:
                try:
                    if await self._reset_market(db, market.id):
                        result.reset.append(market.id)
                except BusyError:
                    logger.warning(
                        "Rollover skipped market %s: lock busy (settlement in flight?)",
                        market.id,
                    )
                    result.skipped.append(market.id)
                    draw = self._clock.window(market.draw_time, now).cycle_end
                    if result.retry_until is None or draw < result.retry_until:
                        result.retry_until = draw
        logger.info(
            "Rollover at %s reset %d/%d markets", now.isoformat(), len(result.reset), len(markets)
        )
        return result

    async def run_cycle(self, now: datetime | None = None) -> RolloverPass:
        """One opening: reset every market, retrying busy ones until their draw."""
        result = await self.run_once(now)
        retry_until = result.retry_until
        while result.skipped:
            await asyncio.sleep(self._retry_seconds)
            current = self._now_fn()
            if retry_until is not None and current >= retry_until:
                logger.error(
                    "Rollover gave up on %s: first draw of the cycle has passed",
                    ", ".join(result.skipped),
                )
                break
            retry = await self.run_once(current, result.skipped)
            result.reset.extend(retry.reset)
            result.skipped = retry.skipped
        return result

    async def _reset_market(self, db: AsyncSession, market_id: str) -> bool:
        async with self._locks.hold(market_id):
            async with atomic(db, "market_rollover"):
                market = await self._markets.get_market(db, market_id)
                if market is None:
                    return False
                if market.result.is_final and not market.payouts_approved:
                    logger.warning(
                        "Market %s reset with FINAL result %s never approved",
                        market_id, market.result.value,
                    )
                purged = await self._wagers.purge_market(db, market_id)
                await self._markets.reset_market(db, market_id)
        logger.info("Market %s rolled over, %d wagers purged", market_id, purged)
        return True

    async def _loop(self) -> None:
        while True:
            delay = self.seconds_until_next_run(self._now_fn())
            logger.debug("Next market rollover in %.0fs", delay)
            await asyncio.sleep(delay)
            try:
                await self.run_cycle()
            except Exception:
                logger.exception("Market rollover pass failed, retrying next cycle")
            # Step past the opening instant so next_cycle_start moves a full day
            await asyncio.sleep(1)
