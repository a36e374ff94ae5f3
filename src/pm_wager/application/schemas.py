# src/pm_wager/application/schemas.py
from pydantic import BaseModel, Field, model_validator

from config.settings import settings
from src.pm_common.cents import cents_to_display
from src.pm_common.enums import SubgameType
from src.pm_wager.domain.models import Wager


class StakeGroupIn(BaseModel):
    subgame_type: SubgameType
    numbers: list[str] = Field(..., min_length=1)
    amount_per_number_cents: int = Field(..., gt=0)


class PlaceWagerRequest(BaseModel):
    """Either freeform ``ticket_text`` or pre-structured ``groups``, not both."""

    market_id: str = Field(..., min_length=1, max_length=64)
    # Dealer terminal: book the ticket for this sub-account instead of the caller
    account_id: str | None = Field(None, min_length=1, max_length=64)
    ticket_text: str | None = Field(None, max_length=10_000)
    groups: list[StakeGroupIn] | None = None

    @model_validator(mode="after")
    def exactly_one_source(self) -> "PlaceWagerRequest":
        if (self.ticket_text is None) == (self.groups is None):
            raise ValueError("Provide exactly one of ticket_text or groups")
        return self


class WagerResponse(BaseModel):
    id: str
    market_id: str
    dealer_id: str | None
    subgame_type: str
    numbers: list[str]
    amount_per_number_cents: int
    total_amount_cents: int
    total_amount_display: str
    placed_at: str | None

    @classmethod
    def from_domain(cls, w: Wager) -> "WagerResponse":
        return cls(
            id=w.id,
            market_id=w.market_id,
            dealer_id=w.dealer_id,
            subgame_type=w.subgame_type.value,
            numbers=list(w.numbers),
            amount_per_number_cents=w.amount_per_number,
            total_amount_cents=w.total_amount,
            total_amount_display=cents_to_display(w.total_amount, settings.CURRENCY_SYMBOL),
            placed_at=w.placed_at.isoformat() if w.placed_at else None,
        )


class WagerReceipt(BaseModel):
    ticket_id: str
    account_id: str
    market_id: str
    placed_by: str
    wagers: list[WagerResponse]
    number_count: int
    total_amount_cents: int
    total_amount_display: str
    balance_after_cents: int
    balance_after_display: str
    ledger_entry_id: int


class WagerHistoryItem(WagerResponse):
    outcome: str                     # PENDING / WON / LOST, projected at read time
    projected_payout_cents: int


class WagerListResponse(BaseModel):
    items: list[WagerHistoryItem]
