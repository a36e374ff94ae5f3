from src.pm_account.domain.models import Account
from src.pm_common.enums import Capability
from src.pm_common.errors import AccountRestrictedError, PermissionDeniedError


def check_can_wager(account: Account) -> None:
    if not account.can(Capability.PLACE_WAGERS):
        raise PermissionDeniedError(
            f"{account.role.value} account {account.id} cannot place wagers"
        )


def check_not_restricted(account: Account) -> None:
    if account.is_restricted:
        raise AccountRestrictedError(account.id)
