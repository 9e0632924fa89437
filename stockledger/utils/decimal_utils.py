# stockledger/utils/decimal_utils.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

# Matches NUMERIC(15, 2) on the quantity columns.
TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_quantity(value) -> Decimal:
    """Coerce int/str/float/Decimal to a 2-place Decimal; None becomes zero.

    Raises ``ValueError`` for values that are not finite numbers.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValueError("Quantity must be numeric")
    try:
        dec = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid quantity: {value!r}")
    if not dec.is_finite():
        raise ValueError(f"Invalid quantity: {value!r}")
    return dec.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def optional_quantity(value) -> Decimal | None:
    return None if value is None else to_quantity(value)
