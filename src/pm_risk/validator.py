"""Stake validation — the ordered rule chain run before any money moves.

Order (first failure wins):
    0. PLACE_WAGERS capability        -> PERMISSION_DENIED
    a. market open in current cycle,
       result not yet FINAL           -> MARKET_CLOSED
    b. account not restricted         -> ACCOUNT_RESTRICTED
    c. per-number stake caps          -> LIMIT_EXCEEDED
    d. per-draw cumulative cap        -> DRAW_LIMIT_EXCEEDED
    e. wallet covers the ticket       -> INSUFFICIENT_BALANCE

Pure: callers supply the account snapshot, the cycle total already staked and
``now``. The caller must hold the account's lock so the snapshot is current.
"""

from datetime import datetime

from src.pm_account.domain.models import Account
from src.pm_clock.domain.cycle_clock import MarketCycleClock
from src.pm_market.domain.models import Market
from src.pm_risk.rules.account_status import check_can_wager, check_not_restricted
from src.pm_risk.rules.balance_check import check_balance
from src.pm_risk.rules.draw_limit import check_draw_limit
from src.pm_risk.rules.market_status import check_market_open
from src.pm_risk.rules.stake_limit import check_stake_limits
from src.pm_ticket.domain.models import StakeGroup, groups_total


def validate_wager(
    account: Account,
    market: Market,
    groups: list[StakeGroup],
    staked_this_cycle: int,
    now: datetime,
    clock: MarketCycleClock,
) -> int:
    """Run every rule in order; return the ticket total in cents when all pass."""
    ticket_total = groups_total(groups)
    check_can_wager(account)
    check_market_open(market, clock, now)
    check_not_restricted(account)
    check_stake_limits(account.bet_limits, groups)
    check_draw_limit(account.bet_limits, staked_this_cycle, ticket_total)
    check_balance(account, ticket_total)
    return ticket_total
