"""SQLAlchemy ORM models for pm_account (typed mirror of the schema).

These map to existing tables created by Alembic migrations.
DO NOT add/remove columns here without a corresponding migration.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.pm_common.database import Base


class AccountORM(Base):
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    role: Mapped[str] = mapped_column(String(10), nullable=False)
    parent_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    wallet_balance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    commission_rate_bps: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    prize_two_digit: Mapped[int] = mapped_column(Integer, nullable=False)
    prize_one_digit_open: Mapped[int] = mapped_column(Integer, nullable=False)
    prize_one_digit_close: Mapped[int] = mapped_column(Integer, nullable=False)
    prize_combo: Mapped[int | None] = mapped_column(Integer, nullable=True)
    limit_one_digit: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    limit_two_digit: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    limit_per_draw: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    fixed_stake: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    is_restricted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    version: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class LedgerEntryORM(Base):
    __tablename__ = "ledger_entries"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    account_id: Mapped[str] = mapped_column(String(64), nullable=False)
    entry_type: Mapped[str] = mapped_column(String(30), nullable=False)
    debit: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    credit: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    reference_type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    reference_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    # NOTE: No updated_at, ledger_entries is append-only
