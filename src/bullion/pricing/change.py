"""Day-over-day change computation.

All calculations use Decimal arithmetic; results are quantized to two decimal
places with ROUND_HALF_UP, which rounds halves away from zero.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
_HUNDRED = Decimal("100")


def quantize_price(value: Decimal) -> Decimal:
    """Round a money or percent value to 2 decimal places, halves away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_change(current: Decimal, previous: Decimal) -> tuple[Decimal, Decimal]:
    """Compute absolute and percent change of current against previous.

    A non-positive previous price yields a percent change of 0 rather than
    a division error; the absolute change is still reported.

    Args:
        current: Price for the period being filed.
        previous: Price for the period it is compared against.

    Returns:
        (change, change_percent), both rounded to 2 decimal places.
    """
    change = current - previous
    if previous > 0:
        change_percent = change / previous * _HUNDRED
    else:
        change_percent = Decimal("0")
    return quantize_price(change), quantize_price(change_percent)
