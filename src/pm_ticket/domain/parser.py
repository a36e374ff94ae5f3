"""Freeform ticket parser.

Turns the text a user or dealer types into stake groups keyed by
(subgame_type, amount_per_number). One line per bet; the stake sits at the end
of the line:

    14, 25 50        -> TWO_DIGIT {14, 25} @ 50.00
    x4, 9x rs100     -> ONE_DIGIT_CLOSE {4} @ 100.00, ONE_DIGIT_OPEN {9} @ 100.00
    k123 20          -> COMBO {12, 13, 21, 23, 31, 32} @ 20.00

Token shapes: ``<d>x`` is the open digit, ``x<d>`` the close digit, one or two
bare digits a two-digit number (left-padded). A ``k``/``combo`` marker turns the
line into every ordered pair of its 3-6 unique digits. Unrecognised tokens are
dropped silently; a ticket with nothing left raises EmptyTicketError.
"""

import logging
import re
from collections.abc import Iterable

from src.pm_common.cents import parse_amount_to_cents
from src.pm_common.enums import MarketVariant, SubgameType
from src.pm_common.errors import EmptyTicketError
from src.pm_ticket.domain.models import StakeGroup

logger = logging.getLogger(__name__)

_STAKE_RE = re.compile(r"(?:rs|r)?\s*(\d+\.?\d*)$", re.IGNORECASE)
_COMBO_RE = re.compile(r"(?<![a-z0-9])(?:combo|k)(?![a-z])", re.IGNORECASE)
_DELIMITER_RE = re.compile(r"[-.,_*/+<>=%;'\s]+")

_TWO_DIGIT_RE = re.compile(r"^\d{1,2}$")
_OPEN_RE = re.compile(r"^(\d)x$", re.IGNORECASE)
_CLOSE_RE = re.compile(r"^x(\d)$", re.IGNORECASE)
_SINGLE_DIGIT_RE = re.compile(r"^x?(\d)x?$", re.IGNORECASE)

COMBO_MIN_DIGITS = 3
COMBO_MAX_DIGITS = 6


def classify_token(
    token: str, variant: MarketVariant = MarketVariant.STANDARD
) -> tuple[SubgameType, str] | None:
    """Return (subgame_type, normalised number) or None when the token is not a bet."""
    if variant == MarketVariant.SINGLE_DIGIT:
        match = _SINGLE_DIGIT_RE.match(token)
        return (SubgameType.ONE_DIGIT_CLOSE, match.group(1)) if match else None
    if _TWO_DIGIT_RE.match(token):
        return SubgameType.TWO_DIGIT, token.zfill(2)
    match = _OPEN_RE.match(token)
    if match:
        return SubgameType.ONE_DIGIT_OPEN, match.group(1)
    match = _CLOSE_RE.match(token)
    if match:
        return SubgameType.ONE_DIGIT_CLOSE, match.group(1)
    return None


def combo_numbers(text: str) -> list[str]:
    """Every ordered pair of distinct digits in ``text``; [] unless 3-6 unique digits."""
    unique = list(dict.fromkeys(re.sub(r"\D", "", text)))
    if not (COMBO_MIN_DIGITS <= len(unique) <= COMBO_MAX_DIGITS):
        return []
    return [a + b for a in unique for b in unique if a != b]


def _split_stake(line: str) -> tuple[str, int | None]:
    match = _STAKE_RE.search(line)
    if match is None:
        return line, None
    return line[: match.start()].strip(), parse_amount_to_cents(match.group(1))


class _GroupCollector:
    """Accumulates numbers per (subgame_type, stake), keeping first-seen order."""

    def __init__(self) -> None:
        self._groups: dict[tuple[SubgameType, int], dict[str, None]] = {}

    def add(self, subgame_type: SubgameType, number: str, stake: int) -> None:
        self._groups.setdefault((subgame_type, stake), {})[number] = None

    def build(self) -> list[StakeGroup]:
        groups = [
            StakeGroup(subgame_type=st, numbers=frozenset(nums), amount_per_number=stake)
            for (st, stake), nums in self._groups.items()
            if nums
        ]
        if not groups:
            raise EmptyTicketError()
        return groups


def parse_ticket(
    text: str,
    variant: MarketVariant = MarketVariant.STANDARD,
    fixed_stake: int | None = None,
) -> list[StakeGroup]:
    """Parse a multi-line ticket. ``fixed_stake`` (cents) overrides every line's stake."""
    collector = _GroupCollector()
    combos_allowed = variant != MarketVariant.SINGLE_DIGIT

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        bet_part, stake = _split_stake(line)
        if fixed_stake:
            stake = fixed_stake
        if not stake:
            logger.debug("Ticket line without stake skipped: %r", line)
            continue

        if combos_allowed and _COMBO_RE.search(bet_part):
            numbers = combo_numbers(_COMBO_RE.sub(" ", bet_part))
            if not numbers:
                logger.debug("Combo line needs %d-%d unique digits: %r",
                             COMBO_MIN_DIGITS, COMBO_MAX_DIGITS, line)
            for number in numbers:
                collector.add(SubgameType.COMBO, number, stake)
            continue

        for token in _DELIMITER_RE.split(bet_part):
            if not token:
                continue
            classified = classify_token(token, variant)
            if classified is None:
                logger.debug("Unrecognised ticket token dropped: %r", token)
                continue
            subgame_type, number = classified
            collector.add(subgame_type, number, stake)

    return collector.build()


def _normalise_number(
    subgame_type: SubgameType, number: str, variant: MarketVariant
) -> str | None:
    number = number.strip()
    if not number.isdigit():
        return None
    if variant == MarketVariant.SINGLE_DIGIT:
        if subgame_type != SubgameType.ONE_DIGIT_CLOSE or len(number) != 1:
            return None
        return number
    if subgame_type in (SubgameType.TWO_DIGIT, SubgameType.COMBO):
        return number.zfill(2) if len(number) <= 2 else None
    return number if len(number) == 1 else None


def normalize_groups(
    groups: Iterable[tuple[SubgameType, Iterable[str], int]],
    variant: MarketVariant = MarketVariant.STANDARD,
    fixed_stake: int | None = None,
) -> list[StakeGroup]:
    """Apply the ticket rules to already-structured (subgame, numbers, stake) input."""
    collector = _GroupCollector()
    for subgame_type, numbers, amount in groups:
        stake = fixed_stake or amount
        if stake <= 0:
            continue
        for raw in numbers:
            number = _normalise_number(subgame_type, raw, variant)
            if number is None:
                logger.debug("Structured number dropped: %s %r", subgame_type.value, raw)
                continue
            collector.add(subgame_type, number, stake)
    return collector.build()
