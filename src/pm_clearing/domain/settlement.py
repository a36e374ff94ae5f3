"""Result lifecycle and payout batch for one market.

Result transitions:

    PENDING ──declare(d)──▶ PARTIAL_OPEN(d) ──declare(dd)──▶ FINAL(dd)
    PENDING ──declare(dd)─────────────────────────────────▶ FINAL(dd)
    any (latch clear) ──correct(v)──▶ classify(v)

The payout batch folds every wager of the market into one credit per account
per kind (prize, dealer margin, user rebate). Applying it, and claiming the
payouts_approved latch, is the coordinator's job.
"""

import re
from collections import defaultdict
from dataclasses import dataclass, field

from src.pm_account.domain.models import Account
from src.pm_clearing.domain.commission import commission, payout, user_commission
from src.pm_common.enums import MarketVariant, ResultStatus
from src.pm_common.errors import (
    AccountNotFoundError,
    InvalidResultError,
    ResultAlreadyFinalError,
)
from src.pm_market.domain.models import Market, MarketResult
from src.pm_wager.domain.models import Wager

_DIGITS_RE = re.compile(r"^[0-9]+$")


def classify_result(value: str, variant: MarketVariant) -> MarketResult:
    """Map a declared value to its result state; raise InvalidResultError if malformed."""
    value = value.strip()
    if not _DIGITS_RE.match(value):
        raise InvalidResultError(value, "result must be digits only")
    if variant == MarketVariant.SINGLE_DIGIT:
        if len(value) != 1:
            raise InvalidResultError(value, "single-digit markets draw exactly one digit")
        return MarketResult.final(value)
    if len(value) == 1:
        return MarketResult.partial_open(value)
    if len(value) == 2:
        return MarketResult.final(value)
    raise InvalidResultError(value, "expected one open digit or a two-digit number")


def declare(market: Market, value: str) -> MarketResult:
    """Next result after a declaration; only legal from PENDING or PARTIAL_OPEN."""
    current = market.result
    if current.status == ResultStatus.FINAL:
        raise ResultAlreadyFinalError(market.id)
    declared = classify_result(value, market.variant)
    if current.status == ResultStatus.PARTIAL_OPEN:
        if declared.status == ResultStatus.PARTIAL_OPEN:
            raise InvalidResultError(value, f"open digit already declared as {current.value}")
        if declared.value is not None and declared.value[0] != current.value:
            raise InvalidResultError(
                value, f"does not start with the declared open digit {current.value}"
            )
    return declared


def correct(market: Market, value: str) -> MarketResult:
    """Overwrite the result outright; the caller guarantees the latch is clear."""
    return classify_result(value, market.variant)


@dataclass
class PayoutBatch:
    prizes: dict[str, int] = field(default_factory=dict)
    dealer_commissions: dict[str, int] = field(default_factory=dict)
    user_rebates: dict[str, int] = field(default_factory=dict)
    wagers_settled: int = 0

    @property
    def total_paid(self) -> int:
        return sum(self.prizes.values())

    @property
    def total_commission(self) -> int:
        return sum(self.dealer_commissions.values())

    @property
    def total_rebate(self) -> int:
        return sum(self.user_rebates.values())


def build_payout_batch(
    result: MarketResult,
    wagers: list[Wager],
    accounts: dict[str, Account],
) -> PayoutBatch:
    """Aggregate payouts and commissions for every wager on a FINAL market.

    Prize rates come from each wagering account; commission rates from the
    wager's own snapshot. Zero amounts are omitted.
    """
    prizes: dict[str, int] = defaultdict(int)
    margins: dict[str, int] = defaultdict(int)
    rebates: dict[str, int] = defaultdict(int)

    for wager in wagers:
        account = accounts.get(wager.account_id)
        if account is None:
            raise AccountNotFoundError(wager.account_id)
        prize = payout(wager, result, account.prize_rates)
        if prize:
            prizes[wager.account_id] += prize
        margin = commission(wager)
        if margin and wager.dealer_id is not None:
            margins[wager.dealer_id] += margin
        rebate = user_commission(wager)
        if rebate:
            rebates[wager.account_id] += rebate

    return PayoutBatch(
        prizes=dict(prizes),
        dealer_commissions=dict(margins),
        user_rebates=dict(rebates),
        wagers_settled=len(wagers),
    )
