from decimal import ROUND_HALF_UP, Decimal
from typing import Union

TWO_PLACES = Decimal("0.01")


def round_half_up(val: Union[Decimal, int, float, str], places: Decimal = TWO_PLACES) -> float:
    """Round a number half-up (not banker's rounding) and return it as float.

    Example:
        >>> round_half_up(66.665)
        66.67
    """
    if not isinstance(val, Decimal):
        val = Decimal(str(val))
    return float(val.quantize(places, rounding=ROUND_HALF_UP))
