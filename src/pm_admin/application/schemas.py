# src/pm_admin/application/schemas.py
from pydantic import BaseModel, Field


class ResultRequest(BaseModel):
    """Declared or corrected result: one open digit, or the full number."""

    number: str = Field(..., min_length=1, max_length=2)


class SettlementReport(BaseModel):
    market_id: str
    result: str | None
    paid_count: int = 0          # accounts credited a prize
    total_paid: int = 0          # cents
    commission_count: int = 0    # dealers credited a margin
    total_commission: int = 0    # cents
    rebate_count: int = 0        # accounts credited a user rebate
    total_rebate: int = 0        # cents
    wagers_settled: int = 0

    @classmethod
    def empty(cls, market_id: str, result: str | None = None) -> "SettlementReport":
        return cls(market_id=market_id, result=result)
