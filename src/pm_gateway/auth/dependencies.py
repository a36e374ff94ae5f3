"""FastAPI dependencies: caller identification and capability checks.

Authentication is terminated upstream; the gateway forwards the resolved
account id in the ``X-Account-Id`` header.

Usage in any protected router:
    from src.pm_gateway.auth.dependencies import get_caller, require_capability

    @router.post("/admin/thing")
    async def thing(caller: Account = Depends(require_capability(Capability.SETTLE_MARKETS))):
        ...
"""

from collections.abc import Awaitable, Callable

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.models import Account
from src.pm_account.infrastructure.persistence import AccountRepository
from src.pm_common.database import get_db_session
from src.pm_common.enums import Capability
from src.pm_common.errors import AccountNotFoundError, MissingCallerError, PermissionDeniedError

_accounts = AccountRepository()


async def get_caller_id(
    x_account_id: str | None = Header(default=None, alias="X-Account-Id"),
) -> str:
    """Return the caller's account id or raise 401 when the header is absent."""
    if not x_account_id or not x_account_id.strip():
        raise MissingCallerError()
    return x_account_id.strip()


async def get_caller(
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db_session),
) -> Account:
    account = await _accounts.get_account(db, caller_id)
    if account is None:
        raise AccountNotFoundError(caller_id)
    return account


def require_capability(
    capability: Capability,
) -> Callable[..., Awaitable[Account]]:
    """Build a dependency that admits only callers whose role grants ``capability``."""

    async def _check(caller: Account = Depends(get_caller)) -> Account:
        if not caller.can(capability):
            raise PermissionDeniedError(
                f"{caller.role.value} account lacks {capability.value}"
            )
        return caller

    return _check
