from src.pm_account.domain.models import BetLimits
from src.pm_common.errors import LimitExceededError
from src.pm_ticket.domain.models import StakeGroup


def check_stake_limits(limits: BetLimits, groups: list[StakeGroup]) -> None:
    """Per-number stake cap: one-digit cap for open/close, two-digit cap for the rest."""
    for group in groups:
        cap = limits.cap_for(group.subgame_type)
        if cap is not None and group.amount_per_number > cap:
            raise LimitExceededError(
                group.subgame_type.value, group.amount_per_number, cap
            )
