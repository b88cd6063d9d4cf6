"""Fixed-point math shared by every pool type."""

from lyfebloc_pools.math.decimal_utils import InvalidAmountError, from_fixed, to_decimal, to_fixed
from lyfebloc_pools.math.fixed_point import ONE, ONE_18, ZERO, FixedPoint
from lyfebloc_pools.math.log_exp import LogExpMathError

__all__ = [
    "FixedPoint",
    "InvalidAmountError",
    "LogExpMathError",
    "ONE",
    "ONE_18",
    "ZERO",
    "from_fixed",
    "to_decimal",
    "to_fixed",
]
