"""
Money helpers.

Amounts are stored with 8 decimal places; values are truncated rather
than rounded so a computed payout never exceeds its ceiling.
"""

from decimal import ROUND_DOWN, Decimal


MONEY_QUANT = Decimal("0.00000001")


def to_money(value: Decimal | int | str) -> Decimal:
    """Truncate to the stored money precision."""
    return Decimal(value).quantize(MONEY_QUANT, rounding=ROUND_DOWN)


def format_usd(value: Decimal) -> str:
    """$1,234.50 style label."""
    return f"${Decimal(value):,.2f}"
