"""Linear pool math.

A linear pool holds a main token, its yield-bearing wrapped counterpart and
its own pool share. The main balance is mapped to a "nominal" balance by a
piecewise curve: identity inside [lower_target, upper_target], and a slope
of (1 + fee) below the lower target or (1 - fee) above the upper target.
Trades that push the main balance away from the range pay the fee, trades
that bring it back earn it. The invariant is nominal_main + wrapped, with
the wrapped balance already expressed in main-token value.

Every function works on 18-decimal FixedPoint values. Amounts out round
down, amounts in round up.
"""

from __future__ import annotations

from dataclasses import dataclass

from lyfebloc_pools.math.fixed_point import ONE, ZERO, FixedPoint
from lyfebloc_pools.safe_int import S


@dataclass(frozen=True)
class LinearParams:
    """Curve parameters, all 18-decimal fixed point.

    Attributes:
        fee: Fee charged per unit of main balance outside the target range
        lower_target: Lower bound of the fee-free main balance range
        upper_target: Upper bound of the fee-free main balance range
    """

    fee: FixedPoint
    lower_target: FixedPoint
    upper_target: FixedPoint


def calc_bpt_out_per_main_in(
    main_in: FixedPoint,
    main_balance: FixedPoint,
    wrapped_balance: FixedPoint,
    bpt_supply: FixedPoint,
    params: LinearParams,
) -> FixedPoint:
    # Amount out, so we round down overall
    if bpt_supply == ZERO:
        # Bootstrap: the first shares are minted 1:1 with nominal value
        return to_nominal(main_in, params)

    previous_nominal_main = to_nominal(main_balance, params)
    after_nominal_main = to_nominal(main_balance.add(main_in), params)
    delta_nominal_main = after_nominal_main.sub(previous_nominal_main)
    invariant = _calc_invariant(previous_nominal_main, wrapped_balance)
    return _mul_div_down(bpt_supply, delta_nominal_main, invariant)


def calc_lbpt_in_per_main_out(
    main_out: FixedPoint,
    main_balance: FixedPoint,
    wrapped_balance: FixedPoint,
    bpt_supply: FixedPoint,
    params: LinearParams,
) -> FixedPoint:
    # Amount in, so we round up overall
    previous_nominal_main = to_nominal(main_balance, params)
    after_nominal_main = to_nominal(main_balance.sub(main_out), params)
    delta_nominal_main = previous_nominal_main.sub(after_nominal_main)
    invariant = _calc_invariant(previous_nominal_main, wrapped_balance)
    return _mul_div_up(bpt_supply, delta_nominal_main, invariant)


def calc_wrapped_out_per_main_in(
    main_in: FixedPoint,
    main_balance: FixedPoint,
    params: LinearParams,
) -> FixedPoint:
    # Amount out, so we round down overall
    previous_nominal_main = to_nominal(main_balance, params)
    after_nominal_main = to_nominal(main_balance.add(main_in), params)
    return after_nominal_main.sub(previous_nominal_main)


def calc_wrapped_in_per_main_out(
    main_out: FixedPoint,
    main_balance: FixedPoint,
    params: LinearParams,
) -> FixedPoint:
    # Amount in, so we round up overall
    previous_nominal_main = to_nominal(main_balance, params)
    after_nominal_main = to_nominal(main_balance.sub(main_out), params)
    return previous_nominal_main.sub(after_nominal_main)


def calc_main_in_per_bpt_out(
    bpt_out: FixedPoint,
    main_balance: FixedPoint,
    wrapped_balance: FixedPoint,
    bpt_supply: FixedPoint,
    params: LinearParams,
) -> FixedPoint:
    # Amount in, so we round up overall
    if bpt_supply == ZERO:
        return from_nominal(bpt_out, params)

    previous_nominal_main = to_nominal(main_balance, params)
    invariant = _calc_invariant(previous_nominal_main, wrapped_balance)
    delta_nominal_main = _mul_div_up(invariant, bpt_out, bpt_supply)
    after_nominal_main = previous_nominal_main.add(delta_nominal_main)
    new_main_balance = from_nominal(after_nominal_main, params)
    return new_main_balance.sub(main_balance)


def calc_main_out_per_lbpt_in(
    lbpt_in: FixedPoint,
    main_balance: FixedPoint,
    wrapped_balance: FixedPoint,
    bpt_supply: FixedPoint,
    params: LinearParams,
) -> FixedPoint:
    # Amount out, so we round down overall
    previous_nominal_main = to_nominal(main_balance, params)
    invariant = _calc_invariant(previous_nominal_main, wrapped_balance)
    delta_nominal_main = _mul_div_down(invariant, lbpt_in, bpt_supply)
    after_nominal_main = previous_nominal_main.sub(delta_nominal_main)
    new_main_balance = from_nominal(after_nominal_main, params)
    return main_balance.sub(new_main_balance)


def calc_main_out_per_wrapped_in(
    wrapped_in: FixedPoint,
    main_balance: FixedPoint,
    params: LinearParams,
) -> FixedPoint:
    # Amount out, so we round down overall
    previous_nominal_main = to_nominal(main_balance, params)
    after_nominal_main = previous_nominal_main.sub(wrapped_in)
    new_main_balance = from_nominal(after_nominal_main, params)
    return main_balance.sub(new_main_balance)


def calc_main_in_per_wrapped_out(
    wrapped_out: FixedPoint,
    main_balance: FixedPoint,
    params: LinearParams,
) -> FixedPoint:
    # Amount in, so we round up overall
    previous_nominal_main = to_nominal(main_balance, params)
    after_nominal_main = previous_nominal_main.add(wrapped_out)
    new_main_balance = from_nominal(after_nominal_main, params)
    return new_main_balance.sub(main_balance)


def calc_bpt_out_per_wrapped_in(
    wrapped_in: FixedPoint,
    main_balance: FixedPoint,
    wrapped_balance: FixedPoint,
    bpt_supply: FixedPoint,
    params: LinearParams,
) -> FixedPoint:
    # Amount out, so we round down overall
    if bpt_supply == ZERO:
        return wrapped_in

    nominal_main = to_nominal(main_balance, params)
    previous_invariant = _calc_invariant(nominal_main, wrapped_balance)
    new_wrapped_balance = wrapped_balance.add(wrapped_in)
    new_invariant = _calc_invariant(nominal_main, new_wrapped_balance)
    new_bpt_balance = _mul_div_down(bpt_supply, new_invariant, previous_invariant)
    return new_bpt_balance.sub(bpt_supply)


def calc_lbpt_in_per_wrapped_out(
    wrapped_out: FixedPoint,
    main_balance: FixedPoint,
    wrapped_balance: FixedPoint,
    bpt_supply: FixedPoint,
    params: LinearParams,
) -> FixedPoint:
    # Amount in, so we round up overall
    nominal_main = to_nominal(main_balance, params)
    previous_invariant = _calc_invariant(nominal_main, wrapped_balance)
    new_wrapped_balance = wrapped_balance.sub(wrapped_out)
    new_invariant = _calc_invariant(nominal_main, new_wrapped_balance)
    new_bpt_balance = _mul_div_down(bpt_supply, new_invariant, previous_invariant)
    return bpt_supply.sub(new_bpt_balance)


def calc_wrapped_in_per_bpt_out(
    bpt_out: FixedPoint,
    main_balance: FixedPoint,
    wrapped_balance: FixedPoint,
    bpt_supply: FixedPoint,
    params: LinearParams,
) -> FixedPoint:
    # Amount in, so we round up overall
    if bpt_supply == ZERO:
        return bpt_out

    nominal_main = to_nominal(main_balance, params)
    previous_invariant = _calc_invariant(nominal_main, wrapped_balance)
    new_bpt_balance = bpt_supply.add(bpt_out)
    new_wrapped_balance = _mul_div_up(new_bpt_balance, previous_invariant, bpt_supply).sub(nominal_main)
    return new_wrapped_balance.sub(wrapped_balance)


def calc_wrapped_out_per_lbpt_in(
    lbpt_in: FixedPoint,
    main_balance: FixedPoint,
    wrapped_balance: FixedPoint,
    bpt_supply: FixedPoint,
    params: LinearParams,
) -> FixedPoint:
    # Amount out, so we round down overall
    nominal_main = to_nominal(main_balance, params)
    previous_invariant = _calc_invariant(nominal_main, wrapped_balance)
    new_bpt_balance = bpt_supply.sub(lbpt_in)
    new_wrapped_balance = _mul_div_up(new_bpt_balance, previous_invariant, bpt_supply).sub(nominal_main)
    return wrapped_balance.sub(new_wrapped_balance)


def calc_tokens_out_given_exact_lbpt_in(
    balances: list[FixedPoint],
    lbpt_amount_in: FixedPoint,
    lbpt_total_supply: FixedPoint,
    lbpt_index: int,
) -> list[FixedPoint]:
    """Proportional exit over the pool's registered balances.

    The pool share itself is one of the registered tokens; it is skipped
    and gets a zero amount.
    """
    lbpt_ratio = lbpt_amount_in.div_down(lbpt_total_supply)
    return [
        ZERO if i == lbpt_index else balance.mul_down(lbpt_ratio)
        for i, balance in enumerate(balances)
    ]


def to_nominal(amount: FixedPoint, params: LinearParams) -> FixedPoint:
    """Map a real main balance to its nominal value.

    Fees are always rounded down.
    """
    if amount < params.lower_target:
        fees = params.lower_target.sub(amount).mul_down(params.fee)
        return amount.sub(fees)
    if amount <= params.upper_target:
        return amount
    fees = amount.sub(params.upper_target).mul_down(params.fee)
    return amount.sub(fees)


def from_nominal(nominal: FixedPoint, params: LinearParams) -> FixedPoint:
    """Inverse of to_nominal.

    Since real = nominal + fees, rounding down fees is equivalent to rounding
    down real.
    """
    if nominal < params.lower_target:
        return nominal.add(params.fee.mul_down(params.lower_target)).div_down(ONE.add(params.fee))
    if nominal <= params.upper_target:
        return nominal
    return nominal.sub(params.fee.mul_down(params.upper_target)).div_down(ONE.sub(params.fee))


def _calc_invariant(nominal_main_balance: FixedPoint, wrapped_balance: FixedPoint) -> FixedPoint:
    return nominal_main_balance.add(wrapped_balance)


def _mul_div_down(a: FixedPoint, b: FixedPoint, c: FixedPoint) -> FixedPoint:
    # Plain integer a * b / c, rounded down
    return FixedPoint(((S(a.value) * b.value) // c.value).to_uint256())


def _mul_div_up(a: FixedPoint, b: FixedPoint, c: FixedPoint) -> FixedPoint:
    return FixedPoint((S(a.value) * b.value).ceiling_div(c.value).to_uint256())
