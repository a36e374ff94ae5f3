"""AccountApplicationService — thin composition layer.

Combines repository calls with schema transformations.
Wallet moves (transfer, reclaim) run under the per-account locks of both
parties, acquired in sorted order, inside one ``atomic`` unit so the debit,
the credit and both ledger rows commit together or not at all.
Reads (get_balance, list_ledger) run without an explicit transaction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.application.schemas import (
    BalanceResponse,
    LedgerEntryItem,
    LedgerResponse,
    RestrictionResponse,
    TransferResponse,
    cursor_decode,
    cursor_encode,
)
from src.pm_account.domain.models import Account
from src.pm_account.domain.repository import AccountRepositoryProtocol
from src.pm_account.infrastructure.persistence import AccountRepository
from src.pm_common.enums import LedgerEntryType
from src.pm_common.errors import AccountNotFoundError, PermissionDeniedError
from src.pm_common.locks import KeyedLocks, account_locks
from src.pm_common.transaction import atomic

logger = logging.getLogger(__name__)

TRANSFER_REF = "TRANSFER"


class AccountApplicationService:
    def __init__(
        self,
        repo: AccountRepositoryProtocol | None = None,
        locks: KeyedLocks | None = None,
    ) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()
        self._locks = locks or account_locks

    async def get_balance(self, db: AsyncSession, account_id: str) -> BalanceResponse:
        account = await self._require(db, account_id)
        return BalanceResponse.from_cents(
            account_id=account.id,
            role=account.role.value,
            balance=account.wallet_balance,
            is_restricted=account.is_restricted,
        )

    async def list_ledger(
        self,
        db: AsyncSession,
        account_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_ledger_entries(
            db, account_id, cursor_id, limit + 1, entry_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]

        items = [LedgerEntryItem.from_domain(e) for e in page]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(items=items, next_cursor=next_cursor, has_more=has_more)

    async def transfer(
        self, db: AsyncSession, caller_id: str, sub_account_id: str, amount: int
    ) -> TransferResponse:
        """Move funds from the caller into one of its direct sub-accounts."""
        parent, sub = await self._owned_pair(db, caller_id, sub_account_id)
        return await self._move(
            db,
            source=parent,
            target=sub,
            amount=amount,
            out_description=f"Transfer to {sub.name}",
            in_description=f"Transfer from {parent.name}",
        )

    async def reclaim(
        self, db: AsyncSession, caller_id: str, sub_account_id: str, amount: int
    ) -> TransferResponse:
        """Pull funds back from a direct sub-account into the caller's wallet."""
        parent, sub = await self._owned_pair(db, caller_id, sub_account_id)
        return await self._move(
            db,
            source=sub,
            target=parent,
            amount=amount,
            out_description=f"Reclaimed by {parent.name}",
            in_description=f"Reclaim from {sub.name}",
        )

    async def set_restricted(
        self, db: AsyncSession, caller_id: str, sub_account_id: str, restricted: bool
    ) -> RestrictionResponse:
        await self._owned_pair(db, caller_id, sub_account_id)
        async with self._locks.hold(sub_account_id):
            async with atomic(db, "set_restricted"):
                account = await self._repo.set_restricted(db, sub_account_id, restricted)
        logger.info(
            "Account %s restriction set to %s by %s", sub_account_id, restricted, caller_id
        )
        return RestrictionResponse(account_id=account.id, is_restricted=account.is_restricted)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _require(self, db: AsyncSession, account_id: str) -> Account:
        account = await self._repo.get_account(db, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    async def _owned_pair(
        self, db: AsyncSession, caller_id: str, sub_account_id: str
    ) -> tuple[Account, Account]:
        parent = await self._require(db, caller_id)
        sub = await self._require(db, sub_account_id)
        if not parent.owns(sub):
            raise PermissionDeniedError(
                f"{caller_id} does not manage account {sub_account_id}"
            )
        return parent, sub

    async def _move(
        self,
        db: AsyncSession,
        source: Account,
        target: Account,
        amount: int,
        out_description: str,
        in_description: str,
    ) -> TransferResponse:
        async def debit_source():
            return await self._repo.debit(
                db, source.id, amount, LedgerEntryType.TRANSFER_OUT,
                out_description, TRANSFER_REF, target.id,
            )

        async def credit_target():
            return await self._repo.credit(
                db, target.id, amount, LedgerEntryType.TRANSFER_IN,
                in_description, TRANSFER_REF, source.id,
            )

        async with self._locks.hold_many([source.id, target.id]):
            async with atomic(db, "transfer"):
                # Wallet rows in account-id order, as settlement credits them
                if source.id < target.id:
                    _, debit_entry = await debit_source()
                    _, credit_entry = await credit_target()
                else:
                    _, credit_entry = await credit_target()
                    _, debit_entry = await debit_source()
        logger.info("Moved %d cents %s -> %s", amount, source.id, target.id)
        return TransferResponse.from_entries(debit_entry, credit_entry, amount)
