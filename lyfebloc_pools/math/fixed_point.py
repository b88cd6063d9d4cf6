"""18-decimal fixed-point arithmetic with explicit rounding direction.

Mirrors the FixedPoint library of the pool contracts: every operator rounds
either down or up, and the caller picks the direction that favours the pool.
Arithmetic is checked the way a uint256 word is: products that leave the
word and subtractions below zero raise instead of wrapping.
"""

from __future__ import annotations

from decimal import Decimal
from typing import ClassVar

from lyfebloc_pools.math import log_exp
from lyfebloc_pools.math.decimal_utils import from_fixed, to_fixed
from lyfebloc_pools.safe_int import UINT256_MAX, DivisionByZero, S, Uint256Overflow, Underflow

ONE_18 = 10**18
TWO_18 = 2 * ONE_18
FOUR_18 = 4 * ONE_18

# pow_raw is accurate to 1e-14 relative error
MAX_POW_RELATIVE_ERROR = 10000


class FixedPoint:
    """Non-negative 18-decimal fixed-point number stored as int.

    All values are stored as integers scaled by 10^18.
    Example: 1.5 is stored as 1_500_000_000_000_000_000
    """

    ONE: ClassVar[int] = ONE_18

    __slots__ = ("value",)
    __hash__ = None  # type: ignore[assignment]

    def __init__(self, value: int) -> None:
        """Create from raw scaled value.

        Raises:
            Uint256Overflow: If value is negative or does not fit in uint256
        """
        if value < 0 or value > UINT256_MAX:
            raise Uint256Overflow(f"FixedPoint value out of uint256 range: {value}")
        self.value = value

    @classmethod
    def from_decimal(cls, d: Decimal | str) -> FixedPoint:
        """Create from a decimal, scaled by 10^18 without rounding.

        Raises:
            InvalidAmountError: If d is negative or has more than 18 decimals
        """
        return cls(to_fixed(d, 18))

    @classmethod
    def from_int(cls, i: int) -> FixedPoint:
        """Create from integer (will be scaled by 10^18)."""
        return cls(i * cls.ONE)

    def to_decimal(self) -> Decimal:
        """Convert to Decimal for display."""
        return from_fixed(self.value, 18)

    def add(self, other: FixedPoint) -> FixedPoint:
        """Checked addition."""
        return FixedPoint(self.value + other.value)

    def sub(self, other: FixedPoint) -> FixedPoint:
        """Checked subtraction.

        Raises:
            Underflow: If other > self
        """
        return FixedPoint((S(self.value) - other.value).value)

    def mul_down(self, other: FixedPoint) -> FixedPoint:
        """Multiply with floor rounding: (a * b) // 10^18"""
        product = (S(self.value) * other.value).to_uint256()
        return FixedPoint(product // ONE_18)

    def mul_up(self, other: FixedPoint) -> FixedPoint:
        """Multiply with ceiling rounding."""
        product = S((S(self.value) * other.value).to_uint256())
        return FixedPoint(product.ceiling_div(ONE_18).value)

    def div_down(self, other: FixedPoint) -> FixedPoint:
        """Divide with floor rounding: (a * 10^18) // b

        Raises:
            DivisionByZero: If other is zero
        """
        if other.value == 0:
            raise DivisionByZero("FixedPoint division by zero")
        numerator = (S(self.value) * ONE_18).to_uint256()
        return FixedPoint(numerator // other.value)

    def div_up(self, other: FixedPoint) -> FixedPoint:
        """Divide with ceiling rounding.

        Raises:
            DivisionByZero: If other is zero
        """
        if other.value == 0:
            raise DivisionByZero("FixedPoint division by zero")
        numerator = S((S(self.value) * ONE_18).to_uint256())
        return FixedPoint(numerator.ceiling_div(other.value).value)

    def complement(self) -> FixedPoint:
        """Return 1 - self. Clamps to 0 if self > 1."""
        return FixedPoint(max(0, ONE_18 - self.value))

    def pow_down(self, exp: FixedPoint) -> FixedPoint:
        """Compute self^exp, rounding down.

        Exponents of exactly 1, 2 and 4 are computed with multiplications,
        which is both exact and cheaper than the ln/exp round trip.
        """
        if exp.value == ONE_18:
            return self
        if exp.value == TWO_18:
            return self.mul_down(self)
        if exp.value == FOUR_18:
            square = self.mul_down(self)
            return square.mul_down(square)

        raw = log_exp.pow_raw(self.value, exp.value)
        max_error = _max_pow_error(raw)
        if raw < max_error:
            return FixedPoint(0)
        return FixedPoint(raw - max_error)

    def pow_up(self, exp: FixedPoint) -> FixedPoint:
        """Compute self^exp, rounding up."""
        if exp.value == ONE_18:
            return self
        if exp.value == TWO_18:
            return self.mul_up(self)
        if exp.value == FOUR_18:
            square = self.mul_up(self)
            return square.mul_up(square)

        raw = log_exp.pow_raw(self.value, exp.value)
        return FixedPoint(raw + _max_pow_error(raw))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FixedPoint):
            return NotImplemented
        return self.value == other.value

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, FixedPoint):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: object) -> bool:
        if not isinstance(other, FixedPoint):
            return NotImplemented
        return self.value <= other.value

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, FixedPoint):
            return NotImplemented
        return self.value > other.value

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, FixedPoint):
            return NotImplemented
        return self.value >= other.value

    def __repr__(self) -> str:
        return f"FixedPoint({self.value})"

    def __str__(self) -> str:
        return str(self.to_decimal())


def _max_pow_error(raw: int) -> int:
    # mul_up(raw, MAX_POW_RELATIVE_ERROR) + 1
    return S(raw * MAX_POW_RELATIVE_ERROR).ceiling_div(ONE_18).value + 1


ZERO = FixedPoint(0)
ONE = FixedPoint(ONE_18)


__all__ = [
    "FixedPoint",
    "ONE",
    "ONE_18",
    "ZERO",
    "MAX_POW_RELATIVE_ERROR",
    "DivisionByZero",
    "Underflow",
    "Uint256Overflow",
]
