# src/pm_wager/infrastructure/persistence.py
"""WagerRepository — raw SQL persistence implementation."""
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import SubgameType
from src.pm_wager.domain.models import Wager

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_INSERT_WAGER_SQL = text("""
    INSERT INTO wagers (id, account_id, dealer_id, market_id, subgame_type,
        numbers, amount_per_number, total_amount,
        dealer_commission_bps, user_commission_bps, placed_at)
    VALUES (:id, :account_id, :dealer_id, :market_id, :subgame_type,
        :numbers, :amount_per_number, :total_amount,
        :dealer_commission_bps, :user_commission_bps, :placed_at)
""")

_SELECT_COLUMNS = """
    id, account_id, dealer_id, market_id, subgame_type,
    numbers, amount_per_number, total_amount,
    dealer_commission_bps, user_commission_bps, placed_at
"""

_LIST_BY_MARKET_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM wagers
    WHERE market_id = :market_id
    ORDER BY placed_at, id
""")

_LIST_BY_ACCOUNT_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM wagers
    WHERE account_id = :account_id
      AND (CAST(:market_id AS TEXT) IS NULL OR market_id = :market_id)
    ORDER BY placed_at DESC, id DESC
    LIMIT :limit
""")

_SUM_STAKED_SQL = text("""
    SELECT COALESCE(SUM(total_amount), 0) AS staked
    FROM wagers
    WHERE account_id = :account_id
      AND market_id = :market_id
      AND placed_at >= :since
""")

_PURGE_MARKET_SQL = text("DELETE FROM wagers WHERE market_id = :market_id")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_wager(row: Any) -> Wager:
    """Convert a DB result row to a Wager domain object."""
    return Wager(
        id=row.id,
        account_id=row.account_id,
        dealer_id=row.dealer_id,
        market_id=row.market_id,
        subgame_type=SubgameType(row.subgame_type),
        numbers=tuple(row.numbers),
        amount_per_number=row.amount_per_number,
        total_amount=row.total_amount,
        dealer_commission_bps=row.dealer_commission_bps,
        user_commission_bps=row.user_commission_bps,
        placed_at=row.placed_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class WagerRepository:
    async def append(self, db: AsyncSession, wager: Wager) -> None:
        await db.execute(
            _INSERT_WAGER_SQL,
            {
                "id": wager.id,
                "account_id": wager.account_id,
                "dealer_id": wager.dealer_id,
                "market_id": wager.market_id,
                "subgame_type": wager.subgame_type.value,
                "numbers": list(wager.numbers),
                "amount_per_number": wager.amount_per_number,
                "total_amount": wager.total_amount,
                "dealer_commission_bps": wager.dealer_commission_bps,
                "user_commission_bps": wager.user_commission_bps,
                "placed_at": wager.placed_at,
            },
        )

    async def list_by_market(self, db: AsyncSession, market_id: str) -> list[Wager]:
        result = await db.execute(_LIST_BY_MARKET_SQL, {"market_id": market_id})
        return [_row_to_wager(row) for row in result.fetchall()]

    async def list_by_account(
        self,
        db: AsyncSession,
        account_id: str,
        market_id: str | None,
        limit: int,
    ) -> list[Wager]:
        result = await db.execute(
            _LIST_BY_ACCOUNT_SQL,
            {"account_id": account_id, "market_id": market_id, "limit": limit},
        )
        return [_row_to_wager(row) for row in result.fetchall()]

    async def sum_staked_since(
        self,
        db: AsyncSession,
        account_id: str,
        market_id: str,
        since: datetime,
    ) -> int:
        result = await db.execute(
            _SUM_STAKED_SQL,
            {"account_id": account_id, "market_id": market_id, "since": since},
        )
        return int(result.scalar_one())

    async def purge_market(self, db: AsyncSession, market_id: str) -> int:
        result = await db.execute(_PURGE_MARKET_SQL, {"market_id": market_id})
        return result.rowcount or 0
