"""Unit tests for WagerApplicationService against in-memory repositories."""

import asyncio
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from src.pm_account.domain.models import BetLimits
from src.pm_clock.domain.cycle_clock import MarketCycleClock
from src.pm_common.enums import AccountRole, LedgerEntryType, SubgameType
from src.pm_common.errors import (
    AccountNotFoundError,
    DrawLimitExceededError,
    EmptyTicketError,
    InsufficientBalanceError,
    InternalError,
    MarketClosedError,
    MarketNotFoundError,
    PermissionDeniedError,
)
from src.pm_common.locks import KeyedLocks
from src.pm_market.domain.models import MarketResult
from src.pm_wager.application.service import WagerApplicationService
from src.pm_wager.domain.models import Wager
from tests.helpers.in_memory import (
    NOW,
    FakeSession,
    InMemoryAccountRepository,
    InMemoryMarketRepository,
    InMemoryWagerRepository,
    make_account,
    make_market,
)

clock = MarketCycleClock(start_hour=16, utc_offset_hours=5)


class _World:
    def __init__(self, *accounts, markets=None, wagers=()) -> None:
        self.accounts = InMemoryAccountRepository(*accounts)
        self.markets = InMemoryMarketRepository(*(markets or [make_market()]))
        self.wagers = InMemoryWagerRepository(*wagers)
        self.service = WagerApplicationService(
            accounts=self.accounts,
            markets=self.markets,
            wagers=self.wagers,
            clock=clock,
            locks=KeyedLocks("account", 1.0),
        )


def _dealer_and_user(**user_kwargs):
    dealer = make_account("DLR-1", role=AccountRole.DEALER, commission_bps=1000)
    user_kwargs.setdefault("parent_id", "DLR-1")
    user_kwargs.setdefault("commission_bps", 500)
    return dealer, make_account("USR-1", **user_kwargs)


class TestPlaceWager:
    async def test_accepts_ticket(self) -> None:
        world = _World(*_dealer_and_user())
        db = FakeSession()

        receipt = await world.service.place_wager(
            db, "USR-1", "MKT-1", ticket_text="14, 25 50", now=NOW
        )

        assert receipt.total_amount_cents == 10_000
        assert receipt.number_count == 2
        assert receipt.balance_after_cents == 90_000
        assert receipt.balance_after_display == "Rs 900.00"
        assert world.accounts.balance("USR-1") == 90_000
        assert db.commits == 1

        [entry] = world.accounts.entries_for("USR-1")
        assert entry.entry_type == LedgerEntryType.WAGER_STAKE.value
        assert entry.debit == 10_000
        assert entry.reference_type == "TICKET"
        assert entry.reference_id == receipt.ticket_id
        assert receipt.ledger_entry_id == entry.id

    async def test_snapshots_dealer_rates(self) -> None:
        world = _World(*_dealer_and_user())
        await world.service.place_wager(
            FakeSession(), "USR-1", "MKT-1", ticket_text="47 10", now=NOW
        )
        [wager] = world.wagers.wagers
        assert wager.dealer_id == "DLR-1"
        assert wager.dealer_commission_bps == 1000
        assert wager.user_commission_bps == 500
        assert wager.numbers == ("47",)
        assert wager.placed_at == NOW

    async def test_admin_parent_does_not_cascade(self) -> None:
        admin = make_account("ADM-1", role=AccountRole.ADMIN, commission_bps=1000)
        user = make_account("USR-1", parent_id="ADM-1")
        world = _World(admin, user)
        await world.service.place_wager(
            FakeSession(), "USR-1", "MKT-1", ticket_text="47 10", now=NOW
        )
        assert world.wagers.wagers[0].dealer_id is None
        assert world.wagers.wagers[0].dealer_commission_bps == 0

    async def test_structured_groups(self) -> None:
        world = _World(make_account())
        receipt = await world.service.place_wager(
            FakeSession(), "USR-1", "MKT-1",
            groups=[
                (SubgameType.ONE_DIGIT_OPEN, ["4"], 1000),
                (SubgameType.TWO_DIGIT, ["7", "47"], 500),
            ],
            now=NOW,
        )
        assert receipt.total_amount_cents == 2000
        assert {w.subgame_type for w in receipt.wagers} == {"ONE_DIGIT_OPEN", "TWO_DIGIT"}
        assert len(world.wagers.wagers) == 2

    async def test_fixed_stake_overrides(self) -> None:
        world = _World(make_account(fixed_stake=200))
        receipt = await world.service.place_wager(
            FakeSession(), "USR-1", "MKT-1", ticket_text="14 25 50", now=NOW
        )
        assert receipt.total_amount_cents == 400

    async def test_empty_ticket(self) -> None:
        world = _World(make_account())
        with pytest.raises(EmptyTicketError):
            await world.service.place_wager(
                FakeSession(), "USR-1", "MKT-1", ticket_text="hello", now=NOW
            )

    async def test_dealer_cannot_wager(self) -> None:
        world = _World(make_account("DLR-1", role=AccountRole.DEALER))
        with pytest.raises(PermissionDeniedError):
            await world.service.place_wager(
                FakeSession(), "DLR-1", "MKT-1", ticket_text="47 10", now=NOW
            )

    async def test_closed_market(self) -> None:
        world = _World(make_account())
        with pytest.raises(MarketClosedError):
            await world.service.place_wager(
                FakeSession(), "USR-1", "MKT-1", ticket_text="47 10",
                now=NOW + timedelta(hours=6),
            )
        assert world.accounts.balance("USR-1") == 100_000

    async def test_unknown_market(self) -> None:
        world = _World(make_account())
        with pytest.raises(MarketNotFoundError):
            await world.service.place_wager(
                FakeSession(), "USR-1", "MKT-X", ticket_text="47 10", now=NOW
            )

    async def test_unknown_account(self) -> None:
        world = _World(make_account())
        with pytest.raises(AccountNotFoundError):
            await world.service.place_wager(
                FakeSession(), "USR-X", "MKT-1", ticket_text="47 10", now=NOW
            )


class TestDrawLimit:
    async def test_rejection_moves_no_money(self) -> None:
        world = _World(make_account(limits=BetLimits(per_draw=5_000)))
        with pytest.raises(DrawLimitExceededError):
            await world.service.place_wager(
                FakeSession(), "USR-1", "MKT-1", ticket_text="14, 25 50", now=NOW
            )
        assert world.accounts.balance("USR-1") == 100_000
        assert world.accounts.ledger == []
        assert world.wagers.wagers == []

    async def test_cumulative_within_cycle(self) -> None:
        world = _World(make_account(limits=BetLimits(per_draw=15_000)))
        await world.service.place_wager(
            FakeSession(), "USR-1", "MKT-1", ticket_text="14, 25 50", now=NOW
        )
        with pytest.raises(DrawLimitExceededError):
            await world.service.place_wager(
                FakeSession(), "USR-1", "MKT-1", ticket_text="36, 47 50",
                now=NOW + timedelta(minutes=5),
            )
        assert world.accounts.balance("USR-1") == 90_000

    async def test_previous_cycle_not_counted(self) -> None:
        yesterday = Wager(
            id="WGR-OLD", account_id="USR-1", market_id="MKT-1",
            subgame_type=SubgameType.TWO_DIGIT, numbers=("14",),
            amount_per_number=10_000, total_amount=10_000,
            placed_at=NOW - timedelta(days=1),
        )
        world = _World(make_account(limits=BetLimits(per_draw=10_000)), wagers=[yesterday])
        receipt = await world.service.place_wager(
            FakeSession(), "USR-1", "MKT-1", ticket_text="14, 25 50", now=NOW
        )
        assert receipt.total_amount_cents == 10_000


class TestConcurrentPlacement:
    async def test_balance_never_overdrawn(self) -> None:
        world = _World(make_account(balance=10_000))

        results = await asyncio.gather(
            *(
                world.service.place_wager(
                    FakeSession(), "USR-1", "MKT-1", ticket_text="47 30", now=NOW
                )
                for _ in range(5)
            ),
            return_exceptions=True,
        )

        accepted = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, Exception)]
        assert len(accepted) == 3
        assert all(isinstance(r, InsufficientBalanceError) for r in rejected)
        assert world.accounts.balance("USR-1") == 1_000
        assert sum(e.debit for e in world.accounts.ledger) == 9_000
        assert len(world.wagers.wagers) == 3

    async def test_accounts_do_not_block_each_other(self) -> None:
        world = _World(make_account("USR-1"), make_account("USR-2"))
        await asyncio.gather(
            world.service.place_wager(
                FakeSession(), "USR-1", "MKT-1", ticket_text="47 10", now=NOW
            ),
            world.service.place_wager(
                FakeSession(), "USR-2", "MKT-1", ticket_text="47 10", now=NOW
            ),
        )
        assert world.accounts.balance("USR-1") == 99_000
        assert world.accounts.balance("USR-2") == 99_000


class TestListWagers:
    async def test_projects_outcomes(self) -> None:
        markets = [
            make_market("MKT-1", result=MarketResult.final("47")),
            make_market("MKT-2", draw_time="02:15"),
        ]
        world = _World(make_account(), markets=markets)
        db = FakeSession()
        await world.service.place_wager(db, "USR-1", "MKT-2", ticket_text="47 10", now=NOW)
        world.wagers.wagers.extend([
            Wager("W-WIN", "USR-1", "MKT-1", SubgameType.TWO_DIGIT, ("47",), 100, 100,
                  placed_at=NOW),
            Wager("W-LOSE", "USR-1", "MKT-1", SubgameType.ONE_DIGIT_OPEN, ("5",), 100, 100,
                  placed_at=NOW),
        ])

        result = await world.service.list_wagers(db, "USR-1")

        by_id = {item.id: item for item in result.items}
        assert by_id["W-WIN"].outcome == "WON"
        assert by_id["W-WIN"].projected_payout_cents == 100 * 80
        assert by_id["W-LOSE"].outcome == "LOST"
        assert by_id["W-LOSE"].projected_payout_cents == 0
        pending = [i for i in result.items if i.market_id == "MKT-2"]
        assert [i.outcome for i in pending] == ["PENDING"]

    async def test_filters_by_market(self) -> None:
        world = _World(make_account(), markets=[
            make_market("MKT-1"), make_market("MKT-2", draw_time="02:15"),
        ])
        for market_id in ("MKT-1", "MKT-2"):
            await world.service.place_wager(
                FakeSession(), "USR-1", market_id, ticket_text="47 10", now=NOW
            )
        result = await world.service.list_wagers(FakeSession(), "USR-1", market_id="MKT-2")
        assert [i.market_id for i in result.items] == ["MKT-2"]

    async def test_unknown_account(self) -> None:
        world = _World(make_account())
        with pytest.raises(AccountNotFoundError):
            await world.service.list_wagers(FakeSession(), "USR-X")


class _FailingWagers(InMemoryWagerRepository):
    async def sum_staked_since(self, db, account_id, market_id, since) -> int:
        raise OperationalError("SELECT wagers", {}, Exception("connection reset"))


class TestPersistenceFailure:
    async def test_read_failure_surfaces_as_internal_error(self) -> None:
        accounts = InMemoryAccountRepository(make_account())
        service = WagerApplicationService(
            accounts=accounts,
            markets=InMemoryMarketRepository(make_market()),
            wagers=_FailingWagers(),
            clock=clock,
            locks=KeyedLocks("account", 1.0),
        )
        db = FakeSession()

        with pytest.raises(InternalError):
            await service.place_wager(db, "USR-1", "MKT-1", ticket_text="14 50", now=NOW)

        assert db.rollbacks == 1
        assert accounts.balance("USR-1") == 100_000


class TestSettledMarket:
    async def test_final_result_closes_market(self) -> None:
        world = _World(
            make_account(),
            markets=[make_market("MKT-1", result=MarketResult.final("47"), approved=True)],
        )
        with pytest.raises(MarketClosedError):
            await world.service.place_wager(
                FakeSession(), "USR-1", "MKT-1", ticket_text="47 10", now=NOW
            )
        assert world.accounts.balance("USR-1") == 100_000
        assert world.wagers.wagers == []


class TestPlaceWagerFor:
    async def test_debits_sub_account(self) -> None:
        world = _World(*_dealer_and_user())
        db = FakeSession()

        receipt = await world.service.place_wager_for(
            db, "DLR-1", "USR-1", "MKT-1", ticket_text="14, 25 50", now=NOW
        )

        assert receipt.account_id == "USR-1"
        assert receipt.placed_by == "DLR-1"
        assert world.accounts.balance("USR-1") == 90_000
        assert world.accounts.balance("DLR-1") == 100_000
        assert world.accounts.entries_for("DLR-1") == []
        [wager] = world.wagers.wagers
        assert wager.account_id == "USR-1"
        assert wager.dealer_id == "DLR-1"
        assert wager.dealer_commission_bps == 1000
        assert wager.user_commission_bps == 500

    async def test_sub_account_fixed_stake_applies(self) -> None:
        world = _World(*_dealer_and_user(fixed_stake=200))
        receipt = await world.service.place_wager_for(
            FakeSession(), "DLR-1", "USR-1", "MKT-1", ticket_text="14 25 50", now=NOW
        )
        assert receipt.total_amount_cents == 400
        assert world.accounts.balance("USR-1") == 99_600

    async def test_sub_account_limits_apply(self) -> None:
        world = _World(*_dealer_and_user(limits=BetLimits(per_draw=5_000)))
        with pytest.raises(DrawLimitExceededError):
            await world.service.place_wager_for(
                FakeSession(), "DLR-1", "USR-1", "MKT-1", ticket_text="14, 25 50", now=NOW
            )
        assert world.accounts.balance("USR-1") == 100_000

    async def test_foreign_account_rejected(self) -> None:
        other_dealer = make_account("DLR-2", role=AccountRole.DEALER)
        world = _World(*_dealer_and_user(), other_dealer)
        with pytest.raises(PermissionDeniedError):
            await world.service.place_wager_for(
                FakeSession(), "DLR-2", "USR-1", "MKT-1", ticket_text="47 10", now=NOW
            )
        assert world.accounts.balance("USR-1") == 100_000
        assert world.wagers.wagers == []

    async def test_user_cannot_place_for_sibling(self) -> None:
        dealer, user = _dealer_and_user()
        sibling = make_account("USR-2", parent_id="DLR-1")
        world = _World(dealer, user, sibling)
        with pytest.raises(PermissionDeniedError):
            await world.service.place_wager_for(
                FakeSession(), "USR-1", "USR-2", "MKT-1", ticket_text="47 10", now=NOW
            )
