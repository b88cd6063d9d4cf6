"""Fixed-point natural logarithm and exponential (LogExpMath).

Computes x^y for 18-decimal fixed-point x and y as exp(y * ln(x)). Both ln
and exp peel off precomputed powers of e (a binary ladder over exponents
2^7 .. 2^-4) and finish with a short series, working at 20-decimal precision
internally and at 36 decimals for ln near 1. Intermediate values are signed;
every division truncates toward zero like the EVM's sdiv.

The ladder constants and series lengths are bit-for-bit those of the
deployed contracts. The result of pow_raw carries a relative error below
1e-14, which FixedPoint.pow_down/pow_up compensate for.
"""

from __future__ import annotations

ONE_18 = 10**18
ONE_20 = 10**20
ONE_36 = 10**36

MAX_NATURAL_EXPONENT = 130 * ONE_18
MIN_NATURAL_EXPONENT = -41 * ONE_18

# ln is computed with 36 decimals when its argument is in (0.9, 1.1)
LN_36_LOWER_BOUND = ONE_18 - 10**17
LN_36_UPPER_BOUND = ONE_18 + 10**17

MILD_EXPONENT_BOUND = 2**254 // ONE_20

# (x, e^x) pairs at 18 decimals; e^x is stored without decimals
LADDER_18 = (
    (128 * ONE_18, 38877084059945950922200000000000000000000000000000000000),
    (64 * ONE_18, 6235149080811616882910000000),
)

# (x, e^x) pairs at 20 decimals
LADDER_20 = (
    (32 * ONE_20, 7896296018268069516100000000000000),
    (16 * ONE_20, 888611052050787263676000000),
    (8 * ONE_20, 298095798704172827474000),
    (4 * ONE_20, 5459815003314423907810),
    (2 * ONE_20, 738905609893065022723),
    (1 * ONE_20, 271828182845904523536),
    (ONE_20 // 2, 164872127070012814685),
    (ONE_20 // 4, 128402541668774148407),
    (ONE_20 // 8, 113314845306682631683),
    (ONE_20 // 16, 106449445891785942956),
)

# exp only walks the 20-decimal ladder down to 2^-2; the series handles the rest
_EXP_LADDER_20 = LADDER_20[:8]


class LogExpMathError(ArithmeticError):
    """Base error for the logarithm/exponential functions."""

    pass


class XOutOfBounds(LogExpMathError):
    """Base of pow does not fit in a signed 256-bit word."""

    pass


class YOutOfBounds(LogExpMathError):
    """Exponent of pow is at or above MILD_EXPONENT_BOUND."""

    pass


class ProductOutOfBounds(LogExpMathError):
    """y * ln(x) falls outside the domain of exp."""

    pass


class InvalidExponent(LogExpMathError):
    """Argument of exp is outside [MIN_NATURAL_EXPONENT, MAX_NATURAL_EXPONENT]."""

    pass


class OutOfBounds(LogExpMathError):
    """Argument of ln is not strictly positive."""

    pass


def _sdiv(a: int, b: int) -> int:
    """Signed division truncating toward zero.

    Python's // floors, which differs from the EVM for operands of opposite
    sign: -7 // 3 == -3 while sdiv(-7, 3) == -2.
    """
    if b == 0:
        raise ZeroDivisionError("Division by zero in sdiv")
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


def _smod(a: int, b: int) -> int:
    """Signed remainder with the sign of the dividend."""
    return a - _sdiv(a, b) * b


def exp(x: int) -> int:
    """e^x for 18-decimal fixed-point x (may be negative).

    Raises:
        InvalidExponent: If x is outside [MIN_NATURAL_EXPONENT, MAX_NATURAL_EXPONENT]
    """
    if not MIN_NATURAL_EXPONENT <= x <= MAX_NATURAL_EXPONENT:
        raise InvalidExponent(f"Exponent {x} outside [{MIN_NATURAL_EXPONENT}, {MAX_NATURAL_EXPONENT}]")

    if x < 0:
        return (ONE_18 * ONE_18) // exp(-x)

    # At most one of the two large terms can apply since x <= 130
    first_an = 1
    for x_n, a_n in LADDER_18:
        if x >= x_n:
            x -= x_n
            first_an = a_n
            break

    x *= 100

    product = ONE_20
    for x_n, a_n in _EXP_LADDER_20:
        if x >= x_n:
            x -= x_n
            product = (product * a_n) // ONE_20

    # Taylor series up to the 12th term: 1 + x + x^2/2! + ... + x^12/12!
    series_sum = ONE_20 + x
    term = x
    for i in range(2, 13):
        term = ((term * x) // ONE_20) // i
        series_sum += term

    return (((product * series_sum) // ONE_20) * first_an) // 100


def _ln(a: int) -> int:
    """ln(a) with 18 decimals, for a > 0."""
    if a < ONE_18:
        return -_ln((ONE_18 * ONE_18) // a)

    total = 0
    for x_n, a_n in LADDER_18:
        if a >= a_n * ONE_18:
            a //= a_n
            total += x_n

    total *= 100
    a *= 100

    for x_n, a_n in LADDER_20:
        if a >= a_n:
            a = (a * ONE_20) // a_n
            total += x_n

    # ln(a) = 2 * arctanh(z) with z = (a - 1) / (a + 1), series to z^11 / 11
    z = ((a - ONE_20) * ONE_20) // (a + ONE_20)
    z_squared = (z * z) // ONE_20

    num = z
    series_sum = num
    for i in range(3, 12, 2):
        num = (num * z_squared) // ONE_20
        series_sum += num // i

    series_sum *= 2

    return (total + series_sum) // 100


def _ln_36(x: int) -> int:
    """ln(x) with 36 decimals, for x close to ONE_18."""
    x *= ONE_18

    z = _sdiv((x - ONE_36) * ONE_36, x + ONE_36)
    z_squared = _sdiv(z * z, ONE_36)

    num = z
    series_sum = num
    for i in range(3, 16, 2):
        num = _sdiv(num * z_squared, ONE_36)
        series_sum += _sdiv(num, i)

    return series_sum * 2


def ln(a: int) -> int:
    """Natural logarithm of an 18-decimal fixed-point value.

    Raises:
        OutOfBounds: If a <= 0
    """
    if a <= 0:
        raise OutOfBounds(f"ln argument must be positive, got {a}")
    if LN_36_LOWER_BOUND < a < LN_36_UPPER_BOUND:
        return _sdiv(_ln_36(a), ONE_18)
    return _ln(a)


def pow_raw(x: int, y: int) -> int:
    """x^y for non-negative 18-decimal fixed-point x and y.

    Unrounded: the caller decides in which direction to absorb the error.

    Raises:
        XOutOfBounds: If x >= 2^255
        YOutOfBounds: If y >= MILD_EXPONENT_BOUND
        ProductOutOfBounds: If y * ln(x) is outside the domain of exp
    """
    if y == 0:
        return ONE_18
    if x == 0:
        return 0

    if x >= 2**255:
        raise XOutOfBounds(f"Base {x} does not fit in int256")
    if y >= MILD_EXPONENT_BOUND:
        raise YOutOfBounds(f"Exponent {y} exceeds {MILD_EXPONENT_BOUND}")

    if LN_36_LOWER_BOUND < x < LN_36_UPPER_BOUND:
        ln_36_x = _ln_36(x)
        # Split to keep the product within 256 bits, as the contract does
        logx_times_y = _sdiv(ln_36_x, ONE_18) * y + _sdiv(_smod(ln_36_x, ONE_18) * y, ONE_18)
    else:
        logx_times_y = _ln(x) * y
    logx_times_y = _sdiv(logx_times_y, ONE_18)

    if not MIN_NATURAL_EXPONENT <= logx_times_y <= MAX_NATURAL_EXPONENT:
        raise ProductOutOfBounds(f"y * ln(x) = {logx_times_y} outside the domain of exp")

    return exp(logx_times_y)


__all__ = [
    "LogExpMathError",
    "XOutOfBounds",
    "YOutOfBounds",
    "ProductOutOfBounds",
    "InvalidExponent",
    "OutOfBounds",
    "MAX_NATURAL_EXPONENT",
    "MIN_NATURAL_EXPONENT",
    "MILD_EXPONENT_BOUND",
    "exp",
    "ln",
    "pow_raw",
]
