"""SQLAlchemy ORM model for the markets table.

Used for type reference only — persistence.py uses raw text() SQL.
Alembic migrations (003_create_markets.py) are the authoritative DDL source.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from src.pm_common.database import Base


class MarketORM(Base):
    __tablename__ = "markets"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    draw_time: Mapped[str] = mapped_column(String(5), nullable=False)
    variant: Mapped[str] = mapped_column(String(20), nullable=False, default="STANDARD")
    result_status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    result_value: Mapped[str | None] = mapped_column(String(2))
    payouts_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
