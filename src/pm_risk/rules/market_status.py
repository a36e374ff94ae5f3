from datetime import datetime

from src.pm_clock.domain.cycle_clock import MarketCycleClock
from src.pm_common.errors import MarketClosedError
from src.pm_market.domain.models import Market


def check_market_open(market: Market, clock: MarketCycleClock, now: datetime) -> None:
    """Raise MarketClosedError unless ``now`` lies inside the market's current cycle.

    A FINAL result means the draw is over: the market stays closed until the
    rollover resets it, even if the clock window has already reopened.
    """
    if market.result.is_final or not clock.is_open(market.draw_time, now):
        raise MarketClosedError(market.id)
