"""Domain models for pm_market — pure dataclasses, no business logic.

A market's result is an explicit tagged state:

    PENDING                      value None
    PARTIAL_OPEN(digit)          value "4"   (STANDARD markets only)
    FINAL(number)                value "47"  (or "7" in SINGLE_DIGIT markets)
"""

from dataclasses import dataclass, field
from datetime import datetime

from src.pm_common.enums import MarketVariant, ResultStatus


@dataclass(frozen=True)
class MarketResult:
    status: ResultStatus = ResultStatus.PENDING
    value: str | None = None

    @classmethod
    def pending(cls) -> "MarketResult":
        return cls(ResultStatus.PENDING, None)

    @classmethod
    def partial_open(cls, digit: str) -> "MarketResult":
        return cls(ResultStatus.PARTIAL_OPEN, digit)

    @classmethod
    def final(cls, number: str) -> "MarketResult":
        return cls(ResultStatus.FINAL, number)

    @property
    def is_final(self) -> bool:
        return self.status == ResultStatus.FINAL


@dataclass
class Market:
    id: str
    name: str
    draw_time: str                   # wall-clock "HH:MM" in the cycle bias timezone
    variant: MarketVariant = MarketVariant.STANDARD
    result: MarketResult = field(default_factory=MarketResult.pending)
    payouts_approved: bool = False   # one-way latch per cycle, only on a FINAL result
    approved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
