"""Lossless conversion between native Decimal amounts and raw integers.

Amounts cross the package boundary as Decimal values in a token's native
precision ("1.5" USDC) and are handled internally as raw integers
(1_500_000). The conversion must never round: an amount that carries more
fractional digits than the token supports cannot exist on chain and is
rejected.
"""

from __future__ import annotations

import decimal
from decimal import Decimal

# 78 digits of precision, enough for any uint256 value (up to ~1.16 * 10^77)
DECIMAL_HIGH_PREC_CONTEXT = decimal.Context(prec=78)


class InvalidAmountError(ValueError):
    """Amount is negative, non-finite or not representable in the token's decimals."""

    pass


def to_decimal(value: Decimal | str | int) -> Decimal:
    """Coerce a user-supplied amount to Decimal.

    Floats are refused: their binary representation would leak rounding noise
    into an exact computation.

    Raises:
        InvalidAmountError: If value is a float, not a number, or not finite
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmountError(f"Amounts must be Decimal, str or int, got {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(value)
        except decimal.InvalidOperation as err:
            raise InvalidAmountError(f"Not a decimal number: {value!r}") from err
    if not result.is_finite():
        raise InvalidAmountError(f"Amount must be finite, got {value!r}")
    return result


def to_fixed(amount: Decimal | str | int, decimals: int) -> int:
    """Scale a native amount to a raw integer: amount * 10^decimals.

    Args:
        amount: Non-negative amount in native precision
        decimals: Number of decimals of the token

    Returns:
        The exact raw integer amount

    Raises:
        InvalidAmountError: If amount is negative or has more than `decimals`
            fractional digits
    """
    value = to_decimal(amount)
    if value < 0:
        raise InvalidAmountError(f"Amount cannot be negative: {value}")
    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        scaled = value.scaleb(decimals)
        integral = scaled.to_integral_value(rounding=decimal.ROUND_DOWN)
        if scaled != integral:
            raise InvalidAmountError(f"{value} has more than {decimals} decimals")
        return int(integral)


def from_fixed(value: int, decimals: int) -> Decimal:
    """Inverse of to_fixed: raw integer to Decimal in native precision."""
    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        return Decimal(value).scaleb(-decimals)


def decimal_eq(a: Decimal, b: Decimal) -> bool:
    """Compare a == b with high precision for exactness."""
    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        return (a - b) == 0


def decimal_sum(values: list[Decimal]) -> Decimal:
    """Sum Decimals without losing digits to the default 28-digit context."""
    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        total = Decimal(0)
        for value in values:
            total += value
        return total


__all__ = [
    "DECIMAL_HIGH_PREC_CONTEXT",
    "InvalidAmountError",
    "to_decimal",
    "to_fixed",
    "from_fixed",
    "decimal_eq",
    "decimal_sum",
]
