"""SQLAlchemy ORM model for the wagers table.

Used for type reference only — persistence.py uses raw text() SQL.
Alembic migrations (004_create_wagers.py) are the authoritative DDL source.
"""

from datetime import datetime

from sqlalchemy import ARRAY, BigInteger, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from src.pm_common.database import Base


class WagerORM(Base):
    __tablename__ = "wagers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    account_id: Mapped[str] = mapped_column(String(64), nullable=False)
    dealer_id: Mapped[str | None] = mapped_column(String(64))
    market_id: Mapped[str] = mapped_column(String(64), nullable=False)
    subgame_type: Mapped[str] = mapped_column(String(20), nullable=False)
    numbers: Mapped[list[str]] = mapped_column(ARRAY(Text), nullable=False)
    amount_per_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    dealer_commission_bps: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    user_commission_bps: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    placed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
