from src.pm_account.domain.models import Account
from src.pm_common.errors import InsufficientBalanceError


def check_balance(account: Account, ticket_total: int) -> None:
    """Early rejection only; the conditional debit in SQL is the authoritative check."""
    if account.wallet_balance < ticket_total:
        raise InsufficientBalanceError(ticket_total, account.wallet_balance)
