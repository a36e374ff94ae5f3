"""Integer arithmetic utilities for cents-based wallets and stakes.

All stakes, payouts, and balances use int (cents). No float, no Decimal.
Commission rates are basis points (500 = 5%), prize rates are integer multipliers.
"""

import re

_AMOUNT_RE = re.compile(r"^(\d+)(?:\.(\d{0,2})\d*)?$")


def parse_amount_to_cents(text: str) -> int:
    """Parse a decimal amount string into cents: '50' -> 5000, '12.5' -> 1250.

    Digits past the second fractional place are truncated.
    """
    match = _AMOUNT_RE.match(text.strip())
    if match is None:
        raise ValueError(f"Not a decimal amount: {text!r}")
    whole, frac = match.group(1), match.group(2) or ""
    return int(whole) * 100 + int(frac.ljust(2, "0"))


def cents_to_display(cents: int, symbol: str = "Rs") -> str:
    """Convert cents to display string: 650000 -> 'Rs 6,500.00', -1200 -> '-Rs 12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-{symbol} {abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"{symbol} {cents // 100:,}.{cents % 100:02d}"


def apply_bps(amount: int, rate_bps: int) -> int:
    """Floor of amount * rate_bps / 10000 (house never overpays commission)."""
    if amount <= 0 or rate_bps <= 0:
        return 0
    return (amount * rate_bps) // 10000
