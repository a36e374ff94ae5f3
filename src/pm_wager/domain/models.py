"""Wager domain model — pure dataclass, no SQLAlchemy dependency.

A wager is immutable once placed. Won/lost/pending is never stored; it is
projected at read time from the market's current result.
"""

from dataclasses import dataclass
from datetime import datetime

from src.pm_common.enums import SubgameType


@dataclass(frozen=True)
class Wager:
    id: str
    account_id: str
    market_id: str
    subgame_type: SubgameType
    numbers: tuple[str, ...]         # sorted, unique
    amount_per_number: int           # cents
    total_amount: int                # amount_per_number * len(numbers)
    dealer_id: str | None = None     # commission-cascade parent, if any
    # Rates snapshotted at placement; settlement never reads current rates
    dealer_commission_bps: int = 0
    user_commission_bps: int = 0
    placed_at: datetime | None = None
