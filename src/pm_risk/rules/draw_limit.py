from src.pm_account.domain.models import BetLimits
from src.pm_common.errors import DrawLimitExceededError


def check_draw_limit(limits: BetLimits, staked_this_cycle: int, ticket_total: int) -> None:
    """Everything staked on one market in the current cycle must stay within per_draw."""
    if limits.per_draw is None:
        return
    requested = staked_this_cycle + ticket_total
    if requested > limits.per_draw:
        raise DrawLimitExceededError(requested, limits.per_draw)
