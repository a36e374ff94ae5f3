"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class AccountRole(str, Enum):
    USER = "USER"
    DEALER = "DEALER"
    ADMIN = "ADMIN"


class Capability(str, Enum):
    """What an account may do; derived from role, never from subclassing."""
    MANAGE_SUBACCOUNTS = "MANAGE_SUBACCOUNTS"
    COMMISSION_CASCADE = "COMMISSION_CASCADE"
    PLACE_WAGERS = "PLACE_WAGERS"
    SETTLE_MARKETS = "SETTLE_MARKETS"


ROLE_CAPABILITIES: dict[AccountRole, frozenset[Capability]] = {
    AccountRole.USER: frozenset({Capability.PLACE_WAGERS}),
    AccountRole.DEALER: frozenset(
        {Capability.MANAGE_SUBACCOUNTS, Capability.COMMISSION_CASCADE}
    ),
    AccountRole.ADMIN: frozenset(
        {Capability.MANAGE_SUBACCOUNTS, Capability.SETTLE_MARKETS}
    ),
}


class MarketVariant(str, Enum):
    """STANDARD markets draw a two-digit number; SINGLE_DIGIT markets draw one digit."""
    STANDARD = "STANDARD"
    SINGLE_DIGIT = "SINGLE_DIGIT"


class ResultStatus(str, Enum):
    PENDING = "PENDING"
    PARTIAL_OPEN = "PARTIAL_OPEN"
    FINAL = "FINAL"


class SubgameType(str, Enum):
    TWO_DIGIT = "TWO_DIGIT"
    ONE_DIGIT_OPEN = "ONE_DIGIT_OPEN"
    ONE_DIGIT_CLOSE = "ONE_DIGIT_CLOSE"
    COMBO = "COMBO"


class WagerOutcome(str, Enum):
    """Read-time projection against the market's current result — never stored."""
    PENDING = "PENDING"
    WON = "WON"
    LOST = "LOST"


class LedgerEntryType(str, Enum):
    # Funding
    INITIAL_DEPOSIT = "INITIAL_DEPOSIT"
    TOP_UP = "TOP_UP"
    WITHDRAWAL = "WITHDRAWAL"
    # Parent <-> sub-account transfers
    TRANSFER_OUT = "TRANSFER_OUT"
    TRANSFER_IN = "TRANSFER_IN"
    # Wagering
    WAGER_STAKE = "WAGER_STAKE"
    # Settlement
    PRIZE_PAYOUT = "PRIZE_PAYOUT"
    DEALER_COMMISSION = "DEALER_COMMISSION"
    USER_COMMISSION = "USER_COMMISSION"
