"""AccountRepository — concrete implementation of AccountRepositoryProtocol.

All wallet-mutating operations use atomic PostgreSQL UPDATE ... RETURNING.
A result of 0 rows on a debit means the wallet could not cover the amount.
The ledger row is written in the same transaction, carrying the
balance_after returned by the UPDATE, so the ledger chain can never drift from
the wallet.

Transaction ownership: The CALLER (application service) is responsible for
committing or rolling back the transaction.
"""

from typing import Any

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.models import Account, BetLimits, LedgerEntry, PrizeRates
from src.pm_common.enums import AccountRole, LedgerEntryType
from src.pm_common.errors import AccountNotFoundError, InsufficientBalanceError, InternalError

_ACCOUNT_COLUMNS = """
    id, role, parent_id, name, wallet_balance, commission_rate_bps,
    prize_two_digit, prize_one_digit_open, prize_one_digit_close, prize_combo,
    limit_one_digit, limit_two_digit, limit_per_draw,
    fixed_stake, is_restricted, version, created_at, updated_at
"""

_LEDGER_COLUMNS = """
    id, account_id, entry_type, debit, credit, balance_after,
    description, reference_type, reference_id, created_at
"""

# ---------------------------------------------------------------------------
# SQL: accounts
# ---------------------------------------------------------------------------

_GET_ACCOUNT_SQL = text(f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE id = :account_id")

_GET_ACCOUNTS_SQL = text(
    f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE id IN :account_ids"
).bindparams(bindparam("account_ids", expanding=True))

_DEBIT_SQL = text(f"""
    UPDATE accounts
    SET wallet_balance = wallet_balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :account_id AND wallet_balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

_CREDIT_SQL = text(f"""
    UPDATE accounts
    SET wallet_balance = wallet_balance + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :account_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_SET_RESTRICTED_SQL = text(f"""
    UPDATE accounts
    SET is_restricted = :restricted,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :account_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: ledger_entries (append-only)
# ---------------------------------------------------------------------------

_INSERT_LEDGER_SQL = text(f"""
    INSERT INTO ledger_entries
        (account_id, entry_type, debit, credit, balance_after,
         description, reference_type, reference_id)
    VALUES
        (:account_id, :entry_type, :debit, :credit, :balance_after,
         :description, :reference_type, :reference_id)
    RETURNING {_LEDGER_COLUMNS}
""")

_LIST_LEDGER_SQL = text(f"""
    SELECT {_LEDGER_COLUMNS}
    FROM ledger_entries
    WHERE account_id = :account_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:entry_type AS VARCHAR) IS NULL OR entry_type = :entry_type)
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_account(row: Any) -> Account:
    return Account(
        id=row.id,
        role=AccountRole(row.role),
        parent_id=row.parent_id,
        name=row.name,
        wallet_balance=row.wallet_balance,
        commission_rate_bps=row.commission_rate_bps,
        prize_rates=PrizeRates(
            two_digit=row.prize_two_digit,
            one_digit_open=row.prize_one_digit_open,
            one_digit_close=row.prize_one_digit_close,
            combo=row.prize_combo,
        ),
        bet_limits=BetLimits(
            one_digit=row.limit_one_digit,
            two_digit=row.limit_two_digit,
            per_draw=row.limit_per_draw,
        ),
        fixed_stake=row.fixed_stake,
        is_restricted=row.is_restricted,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_ledger(row: Any) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,
        account_id=row.account_id,
        entry_type=row.entry_type,
        debit=row.debit,
        credit=row.credit,
        balance_after=row.balance_after,
        description=row.description,
        reference_type=row.reference_type,
        reference_id=row.reference_id,
        created_at=row.created_at,
    )


class AccountRepository:
    """Concrete repository — all operations atomic at the SQL level."""

    async def get_account(self, db: AsyncSession, account_id: str) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"account_id": account_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def get_accounts(
        self, db: AsyncSession, account_ids: list[str]
    ) -> dict[str, Account]:
        if not account_ids:
            return {}
        result = await db.execute(_GET_ACCOUNTS_SQL, {"account_ids": list(account_ids)})
        accounts = [_row_to_account(row) for row in result.fetchall()]
        return {a.id: a for a in accounts}

    async def debit(
        self,
        db: AsyncSession,
        account_id: str,
        amount: int,
        entry_type: LedgerEntryType,
        description: str,
        ref_type: str | None = None,
        ref_id: str | None = None,
    ) -> tuple[Account, LedgerEntry]:
        result = await db.execute(_DEBIT_SQL, {"account_id": account_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            current = await self.get_account(db, account_id)
            if current is None:
                raise AccountNotFoundError(account_id)
            raise InsufficientBalanceError(amount, current.wallet_balance)
        account = _row_to_account(row)
        entry = await self._append_ledger(
            db, account, entry_type, description, amount, 0, ref_type, ref_id
        )
        return account, entry

    async def credit(
        self,
        db: AsyncSession,
        account_id: str,
        amount: int,
        entry_type: LedgerEntryType,
        description: str,
        ref_type: str | None = None,
        ref_id: str | None = None,
    ) -> tuple[Account, LedgerEntry]:
        result = await db.execute(_CREDIT_SQL, {"account_id": account_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        account = _row_to_account(row)
        entry = await self._append_ledger(
            db, account, entry_type, description, 0, amount, ref_type, ref_id
        )
        return account, entry

    async def set_restricted(
        self, db: AsyncSession, account_id: str, restricted: bool
    ) -> Account:
        result = await db.execute(
            _SET_RESTRICTED_SQL, {"account_id": account_id, "restricted": restricted}
        )
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        return _row_to_account(row)

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        account_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "account_id": account_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_ledger(row) for row in result.fetchall()]

    async def _append_ledger(
        self,
        db: AsyncSession,
        account: Account,
        entry_type: LedgerEntryType,
        description: str,
        debit: int,
        credit: int,
        ref_type: str | None,
        ref_id: str | None,
    ) -> LedgerEntry:
        result = await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "account_id": account.id,
                "entry_type": entry_type.value,
                "debit": debit,
                "credit": credit,
                "balance_after": account.wallet_balance,
                "description": description,
                "reference_type": ref_type,
                "reference_id": ref_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows")
        return _row_to_ledger(row)
