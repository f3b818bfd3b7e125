"""Percentage rounding shared by grading and progress."""

from decimal import ROUND_HALF_UP, Decimal


def round_percent(part: int, total: int) -> int:
    """``part / total`` as a whole percentage, rounding halves up.

    Returns 0 when ``total`` is 0.

    Examples:
        >>> round_percent(1, 8)
        13
        >>> round_percent(0, 0)
        0
    """
    if total <= 0:
        return 0
    value = Decimal(part) * 100 / Decimal(total)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))
