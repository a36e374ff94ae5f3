"""MarketRepository — concrete implementation of MarketRepositoryProtocol.

All queries use raw text() SQL (no ORM).
Result writes are guarded in SQL as well as in the coordinator: a result can
never be rewritten once payouts_approved is set, and the latch can only be
claimed once, on a FINAL result.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import MarketVariant, ResultStatus
from src.pm_market.domain.models import Market, MarketResult

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_MARKET_COLUMNS = """
    id, name, draw_time, variant,
    result_status, result_value,
    payouts_approved, approved_at,
    created_at, updated_at
"""

_GET_MARKET_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM markets
    WHERE id = :market_id
""")

_LIST_MARKETS_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM markets
    ORDER BY draw_time, id
""")

_UPDATE_RESULT_SQL = text(f"""
    UPDATE markets
    SET result_status = :result_status,
        result_value = :result_value,
        updated_at = NOW()
    WHERE id = :market_id AND payouts_approved = FALSE
    RETURNING {_MARKET_COLUMNS}
""")

_CLAIM_LATCH_SQL = text("""
    UPDATE markets
    SET payouts_approved = TRUE,
        approved_at = NOW(),
        updated_at = NOW()
    WHERE id = :market_id
      AND payouts_approved = FALSE
      AND result_status = 'FINAL'
    RETURNING id
""")

_RESET_MARKET_SQL = text(f"""
    UPDATE markets
    SET result_status = 'PENDING',
        result_value = NULL,
        payouts_approved = FALSE,
        approved_at = NULL,
        updated_at = NOW()
    WHERE id = :market_id
    RETURNING {_MARKET_COLUMNS}
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_market(row: Any) -> Market:
    return Market(
        id=row.id,
        name=row.name,
        draw_time=row.draw_time,
        variant=MarketVariant(row.variant),
        result=MarketResult(ResultStatus(row.result_status), row.result_value),
        payouts_approved=row.payouts_approved,
        approved_at=row.approved_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class MarketRepository:
    async def get_market(self, db: AsyncSession, market_id: str) -> Market | None:
        result = await db.execute(_GET_MARKET_SQL, {"market_id": market_id})
        row = result.fetchone()
        return _row_to_market(row) if row else None

    async def list_markets(self, db: AsyncSession) -> list[Market]:
        result = await db.execute(_LIST_MARKETS_SQL)
        return [_row_to_market(row) for row in result.fetchall()]

    async def update_result(
        self, db: AsyncSession, market_id: str, result: MarketResult
    ) -> Market | None:
        rows = await db.execute(
            _UPDATE_RESULT_SQL,
            {
                "market_id": market_id,
                "result_status": result.status.value,
                "result_value": result.value,
            },
        )
        row = rows.fetchone()
        return _row_to_market(row) if row else None

    async def claim_payout_latch(self, db: AsyncSession, market_id: str) -> bool:
        result = await db.execute(_CLAIM_LATCH_SQL, {"market_id": market_id})
        return result.fetchone() is not None

    async def reset_market(self, db: AsyncSession, market_id: str) -> Market | None:
        result = await db.execute(_RESET_MARKET_SQL, {"market_id": market_id})
        row = result.fetchone()
        return _row_to_market(row) if row else None
