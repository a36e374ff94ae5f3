"""Pydantic schemas and cursor utilities for pm_account API."""

import base64
import json

from pydantic import BaseModel, Field

from config.settings import settings
from src.pm_account.domain.models import LedgerEntry
from src.pm_common.cents import cents_to_display


def _display(cents: int) -> str:
    return cents_to_display(cents, settings.CURRENCY_SYMBOL)


# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class TransferRequest(BaseModel):
    """Parent -> sub-account (transfer) or sub-account -> parent (reclaim)."""

    sub_account_id: str = Field(..., min_length=1, max_length=64)
    amount_cents: int = Field(..., gt=0, description="Amount to move in cents")


class RestrictionRequest(BaseModel):
    is_restricted: bool


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    account_id: str
    role: str
    balance_cents: int
    balance_display: str
    is_restricted: bool

    @classmethod
    def from_cents(
        cls, account_id: str, role: str, balance: int, is_restricted: bool
    ) -> "BalanceResponse":
        return cls(
            account_id=account_id,
            role=role,
            balance_cents=balance,
            balance_display=_display(balance),
            is_restricted=is_restricted,
        )


class TransferResponse(BaseModel):
    from_account_id: str
    to_account_id: str
    amount_cents: int
    amount_display: str
    from_balance_cents: int
    to_balance_cents: int
    debit_entry_id: int
    credit_entry_id: int

    @classmethod
    def from_entries(
        cls, debit_entry: LedgerEntry, credit_entry: LedgerEntry, amount: int
    ) -> "TransferResponse":
        return cls(
            from_account_id=debit_entry.account_id,
            to_account_id=credit_entry.account_id,
            amount_cents=amount,
            amount_display=_display(amount),
            from_balance_cents=debit_entry.balance_after,
            to_balance_cents=credit_entry.balance_after,
            debit_entry_id=debit_entry.id,
            credit_entry_id=credit_entry.id,
        )


class RestrictionResponse(BaseModel):
    account_id: str
    is_restricted: bool


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    debit_cents: int
    credit_cents: int
    amount_display: str
    balance_after_cents: int
    balance_after_display: str
    reference_type: str | None
    reference_id: str | None
    description: str
    created_at: str  # ISO8601 string

    @classmethod
    def from_domain(cls, entry: LedgerEntry) -> "LedgerEntryItem":
        signed = entry.credit - entry.debit
        return cls(
            id=entry.id,
            entry_type=entry.entry_type,
            debit_cents=entry.debit,
            credit_cents=entry.credit,
            amount_display=_display(signed),
            balance_after_cents=entry.balance_after,
            balance_after_display=_display(entry.balance_after),
            reference_type=entry.reference_type,
            reference_id=entry.reference_id,
            description=entry.description,
            created_at=entry.created_at.isoformat() if entry.created_at else "",
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
