# tests/unit/test_market_persistence.py
"""Unit tests for MarketRepository using MagicMock AsyncSession."""
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.pm_common.enums import MarketVariant, ResultStatus
from src.pm_market.domain.models import MarketResult
from src.pm_market.infrastructure.persistence import MarketRepository


def _make_market_row(**kwargs):
    """Build a mock DB row with all required fields."""
    row = MagicMock()
    row.id = kwargs.get("id", "MKT-TEST")
    row.name = kwargs.get("name", "Evening")
    row.draw_time = kwargs.get("draw_time", "19:30")
    row.variant = kwargs.get("variant", "STANDARD")
    row.result_status = kwargs.get("result_status", "PENDING")
    row.result_value = kwargs.get("result_value")
    row.payouts_approved = kwargs.get("payouts_approved", False)
    row.approved_at = None
    row.created_at = datetime.now(UTC)
    row.updated_at = datetime.now(UTC)
    return row


def _result(fetchone=None, fetchall=None):
    result_mock = MagicMock()
    result_mock.fetchone.return_value = fetchone
    result_mock.fetchall.return_value = fetchall or []
    return result_mock


@pytest.fixture
def db():
    return MagicMock()


class TestGetMarket:
    async def test_returns_market_when_found(self, db):
        db.execute = AsyncMock(return_value=_result(
            _make_market_row(id="MKT-1", result_status="FINAL", result_value="47")
        ))

        market = await MarketRepository().get_market(db, "MKT-1")

        assert market is not None
        assert market.id == "MKT-1"
        assert market.variant == MarketVariant.STANDARD
        assert market.result == MarketResult(ResultStatus.FINAL, "47")

    async def test_returns_none_when_missing(self, db):
        db.execute = AsyncMock(return_value=_result(None))
        assert await MarketRepository().get_market(db, "MKT-X") is None

    async def test_passes_market_id(self, db):
        db.execute = AsyncMock(return_value=_result(None))
        await MarketRepository().get_market(db, "MKT-1")
        assert db.execute.call_args.args[1] == {"market_id": "MKT-1"}


class TestListMarkets:
    async def test_maps_rows(self, db):
        db.execute = AsyncMock(return_value=_result(fetchall=[
            _make_market_row(id="MKT-A", variant="SINGLE_DIGIT"),
            _make_market_row(id="MKT-B"),
        ]))
        markets = await MarketRepository().list_markets(db)
        assert [m.id for m in markets] == ["MKT-A", "MKT-B"]
        assert markets[0].variant == MarketVariant.SINGLE_DIGIT


class TestUpdateResult:
    async def test_writes_status_and_value(self, db):
        db.execute = AsyncMock(return_value=_result(
            _make_market_row(result_status="PARTIAL_OPEN", result_value="4")
        ))

        market = await MarketRepository().update_result(
            db, "MKT-TEST", MarketResult.partial_open("4")
        )

        params = db.execute.call_args.args[1]
        assert params == {
            "market_id": "MKT-TEST", "result_status": "PARTIAL_OPEN", "result_value": "4",
        }
        assert market.result.status == ResultStatus.PARTIAL_OPEN

    async def test_guarded_by_latch(self, db):
        db.execute = AsyncMock(return_value=_result(None))
        market = await MarketRepository().update_result(db, "MKT-TEST", MarketResult.final("47"))
        assert market is None
        assert "payouts_approved = FALSE" in str(db.execute.call_args.args[0])


class TestClaimPayoutLatch:
    async def test_claimed(self, db):
        db.execute = AsyncMock(return_value=_result(MagicMock(id="MKT-TEST")))
        assert await MarketRepository().claim_payout_latch(db, "MKT-TEST") is True

    async def test_already_claimed(self, db):
        db.execute = AsyncMock(return_value=_result(None))
        assert await MarketRepository().claim_payout_latch(db, "MKT-TEST") is False

    async def test_requires_final_in_sql(self, db):
        db.execute = AsyncMock(return_value=_result(None))
        await MarketRepository().claim_payout_latch(db, "MKT-TEST")
        sql = str(db.execute.call_args.args[0])
        assert "result_status = 'FINAL'" in sql
        assert "payouts_approved = FALSE" in sql


class TestResetMarket:
    async def test_returns_pending_market(self, db):
        db.execute = AsyncMock(return_value=_result(_make_market_row()))
        market = await MarketRepository().reset_market(db, "MKT-TEST")
        assert market.result == MarketResult.pending()
        assert market.payouts_approved is False
