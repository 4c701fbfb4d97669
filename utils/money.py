from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Parse a JSON number or numeric string into a 2-place Decimal.

    Booleans are rejected even though they are ints in Python.
    Raises ValueError for anything that is not a finite number.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("not a number")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError):
        raise ValueError("not a number")
    if not amount.is_finite():
        raise ValueError("not a number")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def percentage_of(amount, rate) -> Decimal:
    return (Decimal(amount) * Decimal(rate)).quantize(CENT, rounding=ROUND_HALF_UP)


def as_float(value):
    return float(value) if value is not None else None
