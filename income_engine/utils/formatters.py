"""
Formatters utility.

Money rounding and display helpers.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def round2(amount: Decimal) -> Decimal:
    """
    Round money to cents, half up.

    Args:
        amount: Amount to round

    Returns:
        Amount quantized to two decimal places

    Example:
        >>> round2(Decimal("99.995"))
        Decimal('100.00')
    """
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def format_usd(amount: Decimal) -> str:
    """Format amount as $1,234.56."""
    return f"${round2(amount):,.2f}"


def format_percent(value: Decimal) -> str:
    """Format percentage without trailing zeros (10%, 0.5%)."""
    normalized = Decimal(value).normalize()
    text = format(normalized, "f")
    return f"{text}%"
