# src/pm_wager/application/service.py
"""WagerApplicationService — ticket placement and wager history.

Placement is one critical section per account: the account lock is held and a
single transaction is open from the account snapshot through the conditional
debit, the WAGER_STAKE ledger entry and the wager rows. A dealer may place a
ticket for one of its own sub-accounts; the sub-account is the one validated
and debited.
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_account.domain.models import Account
from src.pm_account.domain.repository import AccountRepositoryProtocol
from src.pm_account.infrastructure.persistence import AccountRepository
from src.pm_clearing.domain.commission import payout
from src.pm_clock.domain.cycle_clock import MarketCycleClock
from src.pm_common.cents import cents_to_display
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import Capability, LedgerEntryType, SubgameType, WagerOutcome
from src.pm_common.errors import (
    AccountNotFoundError,
    AppError,
    MarketNotFoundError,
    PermissionDeniedError,
)
from src.pm_common.id_generator import generate_id
from src.pm_common.locks import KeyedLocks, account_locks
from src.pm_common.transaction import atomic
from src.pm_market.domain.models import Market
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.persistence import MarketRepository
from src.pm_risk.validator import validate_wager
from src.pm_ticket.domain.models import StakeGroup, groups_number_count
from src.pm_ticket.domain.parser import normalize_groups, parse_ticket
from src.pm_wager.application.schemas import (
    WagerHistoryItem,
    WagerListResponse,
    WagerReceipt,
    WagerResponse,
)
from src.pm_wager.domain.models import Wager
from src.pm_wager.domain.repository import WagerRepositoryProtocol
from src.pm_wager.infrastructure.persistence import WagerRepository

logger = logging.getLogger(__name__)

TICKET_REF = "TICKET"

StructuredGroups = Iterable[tuple[SubgameType, Iterable[str], int]]


class WagerApplicationService:
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
        self._locks = locks or account_locks

    async def place_wager(
        self,
        db: AsyncSession,
        account_id: str,
        market_id: str,
        ticket_text: str | None = None,
        groups: StructuredGroups | None = None,
        now: datetime | None = None,
    ) -> WagerReceipt:
        """Validate and book a ticket; raises a StakeValidationError with no money moved."""
        return await self._place(db, account_id, market_id, ticket_text, groups, now)

    async def place_wager_for(
        self,
        db: AsyncSession,
        dealer_id: str,
        sub_account_id: str,
        market_id: str,
        ticket_text: str | None = None,
        groups: StructuredGroups | None = None,
        now: datetime | None = None,
    ) -> WagerReceipt:
        """Dealer terminal: book a ticket on behalf of a direct sub-account.

        The sub-account is validated and debited exactly as if it had placed the
        ticket itself (its fixed stake, limits and wallet apply); the placing
        dealer is recorded on every wager.
        """
        return await self._place(
            db, sub_account_id, market_id, ticket_text, groups, now, placed_by=dealer_id
        )

    async def _place(
        self,
        db: AsyncSession,
        account_id: str,
        market_id: str,
        ticket_text: str | None,
        groups: StructuredGroups | None,
        now: datetime | None,
        placed_by: str | None = None,
    ) -> WagerReceipt:
        now = now or utc_now()
        async with self._locks.hold(account_id):
            async with atomic(db, "place_wager"):
                account = await self._require_account(db, account_id)
                if placed_by is not None:
                    placer = await self._require_account(db, placed_by)
                    if not placer.owns(account):
                        raise PermissionDeniedError(
                            f"{placed_by} does not manage account {account_id}"
                        )
                    dealer = placer if placer.can(Capability.COMMISSION_CASCADE) else None
                else:
                    dealer = await self._cascade_dealer(db, account)
                market = await self._require_market(db, market_id)
                stake_groups = self._build_groups(account, market, ticket_text, groups)

                window = self._clock.window(market.draw_time, now)
                staked = await self._wagers.sum_staked_since(
                    db, account.id, market.id, window.cycle_start
                )
                try:
                    total = validate_wager(
                        account, market, stake_groups, staked, now, self._clock
                    )
                except AppError as exc:
                    logger.info(
                        "Wager rejected for %s on %s: %s", account.id, market.id, exc.reason
                    )
                    raise

                ticket_id = generate_id("TKT")
                number_count = groups_number_count(stake_groups)
                debited, entry = await self._accounts.debit(
                    db,
                    account.id,
                    total,
                    LedgerEntryType.WAGER_STAKE,
                    f"Wager on {market.name}: {number_count} numbers",
                    TICKET_REF,
                    ticket_id,
                )
                placed = []
                for group in stake_groups:
                    wager = self._to_wager(group, account, market, dealer, now)
                    await self._wagers.append(db, wager)
                    placed.append(wager)

        logger.info(
            "Ticket %s accepted: account=%s market=%s placed_by=%s numbers=%d total=%d",
            ticket_id, account.id, market.id, placed_by or account.id, number_count, total,
        )
        symbol = settings.CURRENCY_SYMBOL
        return WagerReceipt(
            ticket_id=ticket_id,
            account_id=account.id,
            market_id=market.id,
            placed_by=placed_by or account.id,
            wagers=[WagerResponse.from_domain(w) for w in placed],
            number_count=number_count,
            total_amount_cents=total,
            total_amount_display=cents_to_display(total, symbol),
            balance_after_cents=debited.wallet_balance,
            balance_after_display=cents_to_display(debited.wallet_balance, symbol),
            ledger_entry_id=entry.id,
        )

    async def list_wagers(
        self,
        db: AsyncSession,
        account_id: str,
        market_id: str | None = None,
        limit: int = 100,
    ) -> WagerListResponse:
        """Wager history with outcome and payout projected from current results."""
        account = await self._require_account(db, account_id)
        wagers = await self._wagers.list_by_account(db, account_id, market_id, limit)

        markets: dict[str, Market | None] = {}
        items = []
        for w in wagers:
            if w.market_id not in markets:
                markets[w.market_id] = await self._markets.get_market(db, w.market_id)
            market = markets[w.market_id]
            outcome, projected = WagerOutcome.PENDING, 0
            if market is not None and market.result.is_final:
                projected = payout(w, market.result, account.prize_rates)
                outcome = WagerOutcome.WON if projected > 0 else WagerOutcome.LOST
            items.append(
                WagerHistoryItem(
                    **WagerResponse.from_domain(w).model_dump(),
                    outcome=outcome.value,
                    projected_payout_cents=projected,
                )
            )
        return WagerListResponse(items=items)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _require_account(self, db: AsyncSession, account_id: str) -> Account:
        account = await self._accounts.get_account(db, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    async def _require_market(self, db: AsyncSession, market_id: str) -> Market:
        market = await self._markets.get_market(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        return market

    async def _cascade_dealer(self, db: AsyncSession, account: Account) -> Account | None:
        if account.parent_id is None:
            return None
        parent = await self._accounts.get_account(db, account.parent_id)
        if parent is None or not parent.can(Capability.COMMISSION_CASCADE):
            return None
        return parent

    @staticmethod
    def _build_groups(
        account: Account,
        market: Market,
        ticket_text: str | None,
        groups: StructuredGroups | None,
    ) -> list[StakeGroup]:
        if groups is not None:
            return normalize_groups(groups, market.variant, account.fixed_stake)
        return parse_ticket(ticket_text or "", market.variant, account.fixed_stake)

    @staticmethod
    def _to_wager(
        group: StakeGroup,
        account: Account,
        market: Market,
        dealer: Account | None,
        now: datetime,
    ) -> Wager:
        return Wager(
            id=generate_id("WGR"),
            account_id=account.id,
            market_id=market.id,
            subgame_type=group.subgame_type,
            numbers=tuple(sorted(group.numbers)),
            amount_per_number=group.amount_per_number,
            total_amount=group.total_amount,
            dealer_id=dealer.id if dealer else None,
            dealer_commission_bps=dealer.commission_rate_bps if dealer else 0,
            user_commission_bps=account.commission_rate_bps,
            placed_at=now,
        )
