"""Pydantic schemas for pm_market API responses."""

from datetime import datetime

from pydantic import BaseModel

from src.pm_clock.domain.cycle_clock import MarketCycleClock
from src.pm_market.domain.models import Market, MarketResult


class ResultOut(BaseModel):
    status: str
    value: str | None

    @classmethod
    def from_domain(cls, result: MarketResult) -> "ResultOut":
        return cls(status=result.status.value, value=result.value)


class MarketStateResponse(BaseModel):
    id: str
    name: str
    draw_time: str
    variant: str
    is_open: bool
    result: ResultOut
    payouts_approved: bool
    cycle_start: str
    cycle_end: str
    seconds_until_close: int

    @classmethod
    def from_domain(
        cls, m: Market, clock: MarketCycleClock, now: datetime
    ) -> "MarketStateResponse":
        window = clock.window(m.draw_time, now)
        return cls(
            id=m.id,
            name=m.name,
            draw_time=m.draw_time,
            variant=m.variant.value,
            is_open=window.contains(now),
            result=ResultOut.from_domain(m.result),
            payouts_approved=m.payouts_approved,
            cycle_start=window.cycle_start.isoformat(),
            cycle_end=window.cycle_end.isoformat(),
            seconds_until_close=clock.seconds_until_close(m.draw_time, now),
        )


class MarketListResponse(BaseModel):
    items: list[MarketStateResponse]
