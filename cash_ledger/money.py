"""
Fixed-precision money values.

All amounts are Decimals quantized to cents. Floats are only
accepted through their shortest string form so that 0.1 stays
0.10 and never becomes 0.1000000000000000055511151231257827.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from cash_ledger.exceptions import InvalidAmount

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Numeric(15, 2): 13 digits before the decimal point
MAX_INTEGER_DIGITS = 13

# Drift below half a cent is rounding noise, not missing money
RECONCILIATION_EPSILON = Decimal("0.005")


def to_money(value, field: str = "amount", entity: str | None = None,
             integer_digits: int = MAX_INTEGER_DIGITS) -> Decimal:
    """
    Convert a value to a cent-precision Decimal.

    Rejects booleans, non-numeric strings, NaN/Infinity, values
    with more than two decimal places and values too large for
    their column (integer_digits before the decimal point).
    """
    if isinstance(value, bool) or value is None:
        raise InvalidAmount(value, "not a number", entity=entity, field=field)

    try:
        if isinstance(value, float):
            amount = Decimal(str(value))
        else:
            amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(value, "not a number", entity=entity, field=field)

    if not amount.is_finite():
        raise InvalidAmount(value, "not finite", entity=entity, field=field)

    # Checked before quantizing, which fails past the context precision
    if abs(amount) >= Decimal(10) ** integer_digits:
        raise InvalidAmount(
            value, f"at most {integer_digits} digits before the decimal point",
            entity=entity, field=field,
        )

    quantized = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if quantized != amount:
        raise InvalidAmount(
            value, "at most two decimal places allowed",
            entity=entity, field=field,
        )
    return quantized


def positive_money(value, field: str = "amount", entity: str | None = None,
                   integer_digits: int = MAX_INTEGER_DIGITS) -> Decimal:
    """Like to_money, but the result must be greater than zero."""
    amount = to_money(
        value, field=field, entity=entity, integer_digits=integer_digits
    )
    if amount <= ZERO:
        raise InvalidAmount(value, "must be positive", entity=entity, field=field)
    return amount


def money_sum(values) -> Decimal:
    """Sum money values, treating None (empty SQL SUM) as zero."""
    total = ZERO
    for value in values:
        if value is not None:
            total += Decimal(value)
    return total.quantize(CENT, rounding=ROUND_HALF_UP)


def stored(value) -> Decimal:
    """
    Normalize a value read back from a Numeric column.

    SQLite hands Numeric columns back through float; quantizing
    restores the exact cent value.
    """
    if value is None:
        return ZERO
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
