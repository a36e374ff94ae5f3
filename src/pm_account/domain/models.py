"""Domain models for pm_account — pure dataclasses, no SQLAlchemy dependency.

One Account record for every role; what an account may do comes from its
capability set, not from its type.
"""

from dataclasses import dataclass, field
from datetime import datetime

from src.pm_common.enums import ROLE_CAPABILITIES, AccountRole, Capability, SubgameType


@dataclass(frozen=True)
class PrizeRates:
    """Integer payout multipliers per subgame (80 = pays 80x the stake)."""

    two_digit: int
    one_digit_open: int
    one_digit_close: int
    combo: int | None = None    # None: combos pay the two-digit rate

    def rate_for(self, subgame_type: SubgameType) -> int:
        if subgame_type == SubgameType.ONE_DIGIT_OPEN:
            return self.one_digit_open
        if subgame_type == SubgameType.ONE_DIGIT_CLOSE:
            return self.one_digit_close
        if subgame_type == SubgameType.COMBO and self.combo is not None:
            return self.combo
        return self.two_digit


@dataclass(frozen=True)
class BetLimits:
    """Stake caps in cents; None means unlimited."""

    one_digit: int | None = None
    two_digit: int | None = None
    per_draw: int | None = None

    def cap_for(self, subgame_type: SubgameType) -> int | None:
        if subgame_type in (SubgameType.ONE_DIGIT_OPEN, SubgameType.ONE_DIGIT_CLOSE):
            return self.one_digit
        return self.two_digit


@dataclass
class Account:
    id: str
    role: AccountRole
    name: str
    wallet_balance: int          # cents
    commission_rate_bps: int     # 500 = 5%
    prize_rates: PrizeRates
    bet_limits: BetLimits = field(default_factory=BetLimits)
    parent_id: str | None = None     # owning dealer/admin
    fixed_stake: int | None = None   # cents, overrides every ticket line's stake
    is_restricted: bool = False
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def capabilities(self) -> frozenset[Capability]:
        return ROLE_CAPABILITIES[self.role]

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def owns(self, other: "Account") -> bool:
        return other.parent_id == self.id and self.can(Capability.MANAGE_SUBACCOUNTS)


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    account_id: str
    entry_type: str                  # LedgerEntryType value
    debit: int                       # cents
    credit: int                      # cents
    balance_after: int               # cents, wallet snapshot after op
    description: str
    reference_type: str | None = None
    reference_id: str | None = None
    created_at: datetime | None = None
