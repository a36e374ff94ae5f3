# src/pm_admin/application/service.py
"""Settlement coordinator — result declaration, correction and payout approval.

Every operation on a market runs under that market's lock (shared with the
nightly rollover). ``approve_payouts`` additionally keeps an in-flight marker
so a concurrent or retried call is rejected at once with
APPROVAL_IN_PROGRESS instead of queueing behind the lock, and claims the
``payouts_approved`` latch in SQL inside the payout transaction: the latch and
every ledger credit commit together or not at all.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_account.domain.repository import AccountRepositoryProtocol
from src.pm_account.infrastructure.persistence import AccountRepository
from src.pm_admin.application.schemas import SettlementReport
from src.pm_clearing.domain.settlement import (
    PayoutBatch,
    build_payout_batch,
    correct,
    declare,
)
from src.pm_clock.domain.cycle_clock import MarketCycleClock
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import LedgerEntryType
from src.pm_common.errors import (
    AlreadyApprovedError,
    ApprovalInProgressError,
    MarketNotFinalError,
    MarketNotFoundError,
)
from src.pm_common.locks import KeyedLocks, market_locks
from src.pm_common.transaction import atomic
from src.pm_market.application.schemas import MarketStateResponse
from src.pm_market.domain.models import Market, MarketResult
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.persistence import MarketRepository
from src.pm_wager.domain.repository import WagerRepositoryProtocol
from src.pm_wager.infrastructure.persistence import WagerRepository

logger = logging.getLogger(__name__)

SETTLEMENT_REF = "MARKET"


class SettlementCoordinator:
    def __init__(
        self,
        accounts: AccountRepositoryProtocol | None = None,
        markets: MarketRepositoryProtocol | None = None,
        wagers: WagerRepositoryProtocol | None = None,
        clock: MarketCycleClock | None = None,
        locks: KeyedLocks | None = None,
    ) -> None:
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._markets: MarketRepositoryProtocol = markets or MarketRepository()
        self._wagers: WagerRepositoryProtocol = wagers or WagerRepository()
        self._clock = clock or MarketCycleClock(
            settings.CYCLE_START_HOUR, settings.CYCLE_UTC_OFFSET_HOURS
        )
        self._locks = locks or market_locks
        self._approvals_in_flight: set[str] = set()

    async def declare_winner(
        self, db: AsyncSession, market_id: str, number: str, now: datetime | None = None
    ) -> MarketStateResponse:
        async with self._locks.hold(market_id):
            async with atomic(db, "declare_winner"):
                market = await self._require_market(db, market_id)
                result = declare(market, number)
                updated = await self._write_result(db, market, result)
        logger.info(
            "Market %s result declared: %s %s",
            market_id, result.status.value, result.value,
        )
        return MarketStateResponse.from_domain(updated, self._clock, now or utc_now())

    async def correct_winner(
        self, db: AsyncSession, market_id: str, number: str, now: datetime | None = None
    ) -> MarketStateResponse:
        """Overwrite the result before approval; no monetary effects."""
        async with self._locks.hold(market_id):
            async with atomic(db, "correct_winner"):
                market = await self._require_market(db, market_id)
                if market.payouts_approved:
                    raise AlreadyApprovedError(market_id)
                result = correct(market, number)
                updated = await self._write_result(db, market, result)
        logger.info(
            "Market %s result corrected: %s -> %s",
            market_id, market.result.value, result.value,
        )
        return MarketStateResponse.from_domain(updated, self._clock, now or utc_now())

    async def approve_payouts(self, db: AsyncSession, market_id: str) -> SettlementReport:
        if market_id in self._approvals_in_flight:
            raise ApprovalInProgressError(market_id)
        self._approvals_in_flight.add(market_id)
        try:
            async with self._locks.hold(market_id):
                return await self._approve(db, market_id)
        finally:
            self._approvals_in_flight.discard(market_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _require_market(self, db: AsyncSession, market_id: str) -> Market:
        market = await self._markets.get_market(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        return market

    async def _write_result(
        self, db: AsyncSession, market: Market, result: MarketResult
    ) -> Market:
        updated = await self._markets.update_result(db, market.id, result)
        if updated is None:
            raise AlreadyApprovedError(market.id)
        return updated

    async def _approve(self, db: AsyncSession, market_id: str) -> SettlementReport:
        async with atomic(db, "approve_payouts"):
            market = await self._require_market(db, market_id)
            if market.payouts_approved:
                raise AlreadyApprovedError(
                    market_id, SettlementReport.empty(market_id, market.result.value)
                )
            if not market.result.is_final:
                raise MarketNotFinalError(market_id)
            if not await self._markets.claim_payout_latch(db, market_id):
                raise AlreadyApprovedError(
                    market_id, SettlementReport.empty(market_id, market.result.value)
                )
            wagers = await self._wagers.list_by_market(db, market_id)
            accounts = await self._accounts.get_accounts(
                db, sorted({w.account_id for w in wagers})
            )
            batch = build_payout_batch(market.result, wagers, accounts)
            await self._apply(db, market, batch)

        report = SettlementReport(
            market_id=market_id,
            result=market.result.value,
            paid_count=len(batch.prizes),
            total_paid=batch.total_paid,
            commission_count=len(batch.dealer_commissions),
            total_commission=batch.total_commission,
            rebate_count=len(batch.user_rebates),
            total_rebate=batch.total_rebate,
            wagers_settled=batch.wagers_settled,
        )
        logger.info(
            "Payouts approved for %s: wagers=%d paid=%d/%d commission=%d/%d rebate=%d/%d",
            market_id, report.wagers_settled,
            report.paid_count, report.total_paid,
            report.commission_count, report.total_commission,
            report.rebate_count, report.total_rebate,
        )
        return report

    async def _apply(self, db: AsyncSession, market: Market, batch: PayoutBatch) -> None:
        """One credit per account per kind, accounts visited in id order."""
        kinds = (
            (batch.prizes, LedgerEntryType.PRIZE_PAYOUT,
             f"Prize payout: {market.name} ({market.result.value})"),
            (batch.dealer_commissions, LedgerEntryType.DEALER_COMMISSION,
             f"Dealer commission: {market.name}"),
            (batch.user_rebates, LedgerEntryType.USER_COMMISSION,
             f"Commission: {market.name}"),
        )
        account_ids = sorted({a for credits, _, _ in kinds for a in credits})
        for account_id in account_ids:
            for credits, entry_type, description in kinds:
                amount = credits.get(account_id, 0)
                if amount > 0:
                    await self._accounts.credit(
                        db, account_id, amount, entry_type, description,
                        SETTLEMENT_REF, market.id,
                    )
