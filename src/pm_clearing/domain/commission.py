"""Commission engine — payout and cascade commission for one wager.

Pure functions over snapshotted wager data:

    payout          = match_count × amount_per_number × prize_rate[subgame]   (FINAL only)
    commission      = floor(total × (dealer_bps − user_bps) / 10000)   dealer margin
    user_commission = floor(total × user_bps / 10000)                  user rebate

Match rules: TWO_DIGIT and COMBO compare the whole result; ONE_DIGIT_OPEN
compares the first character; ONE_DIGIT_CLOSE compares the last character,
which is the whole result in SINGLE_DIGIT markets.
"""

from src.pm_account.domain.models import PrizeRates
from src.pm_common.cents import apply_bps
from src.pm_common.enums import SubgameType
from src.pm_market.domain.models import MarketResult
from src.pm_wager.domain.models import Wager


def is_winning_number(number: str, subgame_type: SubgameType, result_value: str) -> bool:
    if not result_value:
        return False
    if subgame_type == SubgameType.ONE_DIGIT_OPEN:
        return number == result_value[0]
    if subgame_type == SubgameType.ONE_DIGIT_CLOSE:
        return number == result_value[-1]
    return number == result_value


def match_count(wager: Wager, result: MarketResult) -> int:
    if not result.is_final or result.value is None:
        return 0
    return sum(
        1 for n in wager.numbers if is_winning_number(n, wager.subgame_type, result.value)
    )


def payout(wager: Wager, result: MarketResult, prize_rates: PrizeRates) -> int:
    """Prize in cents; 0 unless the result is FINAL."""
    matches = match_count(wager, result)
    if matches == 0:
        return 0
    return matches * wager.amount_per_number * prize_rates.rate_for(wager.subgame_type)


def commission(wager: Wager) -> int:
    """Dealer's retained margin; never negative, 0 without a dealer."""
    if wager.dealer_id is None:
        return 0
    margin_bps = wager.dealer_commission_bps - wager.user_commission_bps
    return apply_bps(wager.total_amount, margin_bps)


def user_commission(wager: Wager) -> int:
    """Rebate passed through to the wagering account."""
    return apply_bps(wager.total_amount, wager.user_commission_bps)
