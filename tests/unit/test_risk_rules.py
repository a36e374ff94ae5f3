"""Tests for pm_risk rules and the ordered validate_wager chain."""

from datetime import UTC, datetime

import pytest

from src.pm_account.domain.models import BetLimits
from src.pm_clock.domain.cycle_clock import MarketCycleClock
from src.pm_common.enums import AccountRole, SubgameType
from src.pm_common.errors import (
    AccountRestrictedError,
    DrawLimitExceededError,
    InsufficientBalanceError,
    LimitExceededError,
    MarketClosedError,
    PermissionDeniedError,
)
from src.pm_market.domain.models import MarketResult
from src.pm_risk.rules.account_status import check_can_wager, check_not_restricted
from src.pm_risk.rules.balance_check import check_balance
from src.pm_risk.rules.draw_limit import check_draw_limit
from src.pm_risk.rules.market_status import check_market_open
from src.pm_risk.rules.stake_limit import check_stake_limits
from src.pm_risk.validator import validate_wager
from src.pm_ticket.domain.models import StakeGroup
from tests.helpers.in_memory import NOW, make_account, make_market

clock = MarketCycleClock(start_hour=16, utc_offset_hours=5)
CLOSED = datetime(2026, 10, 19, 19, 0, tzinfo=UTC)


def _group(subgame: SubgameType, numbers: set[str], stake: int) -> StakeGroup:
    return StakeGroup(subgame, frozenset(numbers), stake)


class TestAccountStatus:
    def test_user_can_wager(self) -> None:
        check_can_wager(make_account())

    @pytest.mark.parametrize("role", [AccountRole.DEALER, AccountRole.ADMIN])
    def test_non_users_cannot_wager(self, role: AccountRole) -> None:
        with pytest.raises(PermissionDeniedError):
            check_can_wager(make_account(role=role))

    def test_restricted(self) -> None:
        with pytest.raises(AccountRestrictedError):
            check_not_restricted(make_account(restricted=True))


class TestMarketStatus:
    def test_open(self) -> None:
        check_market_open(make_market(), clock, NOW)

    def test_closed(self) -> None:
        with pytest.raises(MarketClosedError) as exc_info:
            check_market_open(make_market(), clock, CLOSED)
        assert exc_info.value.reason == "MARKET_CLOSED"

    def test_final_result_closes_open_window(self) -> None:
        market = make_market(result=MarketResult.final("47"), approved=True)
        with pytest.raises(MarketClosedError):
            check_market_open(market, clock, NOW)

    def test_partial_result_still_open(self) -> None:
        check_market_open(make_market(result=MarketResult.partial_open("4")), clock, NOW)


class TestStakeLimits:
    def test_within_caps(self) -> None:
        limits = BetLimits(one_digit=1000, two_digit=500)
        check_stake_limits(limits, [
            _group(SubgameType.ONE_DIGIT_OPEN, {"4"}, 1000),
            _group(SubgameType.TWO_DIGIT, {"47"}, 500),
        ])

    def test_one_digit_cap(self) -> None:
        limits = BetLimits(one_digit=1000)
        with pytest.raises(LimitExceededError):
            check_stake_limits(limits, [_group(SubgameType.ONE_DIGIT_CLOSE, {"4"}, 1001)])

    def test_combo_uses_two_digit_cap(self) -> None:
        limits = BetLimits(one_digit=100_000, two_digit=500)
        with pytest.raises(LimitExceededError):
            check_stake_limits(limits, [_group(SubgameType.COMBO, {"12", "21"}, 600)])

    def test_no_caps(self) -> None:
        check_stake_limits(BetLimits(), [_group(SubgameType.TWO_DIGIT, {"47"}, 10**9)])


class TestDrawLimit:
    def test_within(self) -> None:
        check_draw_limit(BetLimits(per_draw=10_000), 6_000, 4_000)

    def test_cumulative_exceeds(self) -> None:
        with pytest.raises(DrawLimitExceededError) as exc_info:
            check_draw_limit(BetLimits(per_draw=10_000), 6_000, 4_001)
        assert "10001" in exc_info.value.message

    def test_unlimited(self) -> None:
        check_draw_limit(BetLimits(), 10**9, 10**9)


class TestBalanceCheck:
    def test_exact_balance_ok(self) -> None:
        check_balance(make_account(balance=5000), 5000)

    def test_short(self) -> None:
        with pytest.raises(InsufficientBalanceError):
            check_balance(make_account(balance=4999), 5000)


class TestValidateWager:
    groups = [_group(SubgameType.TWO_DIGIT, {"14", "25"}, 5000)]

    def test_returns_total(self) -> None:
        total = validate_wager(make_account(), make_market(), self.groups, 0, NOW, clock)
        assert total == 10_000

    def test_permission_checked_first(self) -> None:
        dealer = make_account(role=AccountRole.DEALER, restricted=True, balance=0)
        with pytest.raises(PermissionDeniedError):
            validate_wager(dealer, make_market(), self.groups, 0, CLOSED, clock)

    def test_closed_before_restricted(self) -> None:
        account = make_account(restricted=True)
        with pytest.raises(MarketClosedError):
            validate_wager(account, make_market(), self.groups, 0, CLOSED, clock)

    def test_restricted_before_limits(self) -> None:
        account = make_account(restricted=True, limits=BetLimits(two_digit=1))
        with pytest.raises(AccountRestrictedError):
            validate_wager(account, make_market(), self.groups, 0, NOW, clock)

    def test_stake_cap_before_draw_limit(self) -> None:
        account = make_account(limits=BetLimits(two_digit=1, per_draw=1))
        with pytest.raises(LimitExceededError):
            validate_wager(account, make_market(), self.groups, 0, NOW, clock)

    def test_draw_limit_before_balance(self) -> None:
        account = make_account(balance=0, limits=BetLimits(per_draw=15_000))
        with pytest.raises(DrawLimitExceededError):
            validate_wager(account, make_market(), self.groups, 6_000, NOW, clock)

    def test_balance_last(self) -> None:
        with pytest.raises(InsufficientBalanceError):
            validate_wager(make_account(balance=9_999), make_market(), self.groups, 0, NOW, clock)
