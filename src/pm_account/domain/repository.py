"""Repository Protocol — dependency inversion for testability.

Unit tests inject an in-memory implementation that conforms to this Protocol.
Infrastructure layer provides the real implementation.

``debit`` and ``credit`` change the wallet AND append the matching ledger entry;
callers never write one without the other.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.models import Account, LedgerEntry
from src.pm_common.enums import LedgerEntryType


class AccountRepositoryProtocol(Protocol):
    async def get_account(
        self, db: AsyncSession, account_id: str
    ) -> Account | None: ...

    async def get_accounts(
        self, db: AsyncSession, account_ids: list[str]
    ) -> dict[str, Account]: ...

    async def debit(
        self,
        db: AsyncSession,
        account_id: str,
        amount: int,
        entry_type: LedgerEntryType,
        description: str,
        ref_type: str | None = None,
        ref_id: str | None = None,
    ) -> tuple[Account, LedgerEntry]: ...

    async def credit(
        self,
        db: AsyncSession,
        account_id: str,
        amount: int,
        entry_type: LedgerEntryType,
        description: str,
        ref_type: str | None = None,
        ref_id: str | None = None,
    ) -> tuple[Account, LedgerEntry]: ...

    async def set_restricted(
        self, db: AsyncSession, account_id: str, restricted: bool
    ) -> Account: ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        account_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]: ...
