"""Weighted pool math.

Core math functions for weighted product pools. The invariant is
prod(balance_i ^ weight_i) with normalized weights summing to one. Every
function takes and returns 18-decimal FixedPoint values and rounds in the
direction that favours the pool.
"""

from __future__ import annotations

from lyfebloc_pools.constants import (
    MAX_IN_RATIO,
    MAX_INVARIANT_RATIO,
    MAX_OUT_RATIO,
    MIN_INVARIANT_RATIO,
)
from lyfebloc_pools.math.fixed_point import ONE, ZERO, FixedPoint

from .errors import (
    MaxInRatioError,
    MaxOutBptForTokenInError,
    MaxOutRatioError,
    MinBptInForTokenOutError,
    ZeroInvariantError,
)
from .scaling import SwapFeeParams, deduct_swap_fee, gross_up_swap_fee


def calculate_invariant(normalized_weights: list[FixedPoint], balances: list[FixedPoint]) -> FixedPoint:
    """Calculate the weighted product invariant, rounding down.

    invariant = prod(balance_i ^ weight_i)

    An empty token set yields ONE, the identity of the product.

    Raises:
        ZeroInvariantError: If the product rounds to zero
    """
    invariant = ONE
    for weight, balance in zip(normalized_weights, balances, strict=True):
        invariant = invariant.mul_down(balance.pow_down(weight))

    if invariant == ZERO:
        raise ZeroInvariantError("Weighted invariant is zero")
    return invariant


def calc_out_given_in(
    balance_in: FixedPoint,
    weight_in: FixedPoint,
    balance_out: FixedPoint,
    weight_out: FixedPoint,
    amount_in: FixedPoint,
    fee: SwapFeeParams | None = None,
) -> FixedPoint:
    """Calculate output amount for a given input (exact in).

    Formula:
        amount_out = balance_out * (1 - (balance_in / (balance_in + amount_in))^(weight_in / weight_out))

    Args:
        balance_in: Scaled balance of input token
        weight_in: Normalized weight of input token
        balance_out: Scaled balance of output token
        weight_out: Normalized weight of output token
        amount_in: Scaled gross input amount
        fee: If given, the swap fee is deducted from amount_in first

    Returns:
        Scaled output amount, rounded down

    Raises:
        MaxInRatioError: If the net input exceeds 30% of balance_in
    """
    if fee is not None:
        amount_in = deduct_swap_fee(amount_in, fee)

    if amount_in > balance_in.mul_down(FixedPoint(MAX_IN_RATIO)):
        raise MaxInRatioError(f"Input {amount_in.value} exceeds 30% of balance {balance_in.value}")

    # The base is rounded up so that the power, and its complement, favour the pool
    denominator = balance_in.add(amount_in)
    base = balance_in.div_up(denominator)
    exponent = weight_in.div_down(weight_out)
    power = base.pow_up(exponent)

    return balance_out.mul_down(power.complement())


def calc_in_given_out(
    balance_in: FixedPoint,
    weight_in: FixedPoint,
    balance_out: FixedPoint,
    weight_out: FixedPoint,
    amount_out: FixedPoint,
    fee: SwapFeeParams | None = None,
) -> FixedPoint:
    """Calculate input amount for a given output (exact out).

    Formula:
        amount_in = balance_in * ((balance_out / (balance_out - amount_out))^(weight_out / weight_in) - 1)

    Args:
        fee: If given, the swap fee is added on top of the curve's input

    Returns:
        Scaled input amount, rounded up

    Raises:
        MaxOutRatioError: If amount_out exceeds 30% of balance_out
    """
    if amount_out > balance_out.mul_down(FixedPoint(MAX_OUT_RATIO)):
        raise MaxOutRatioError(f"Output {amount_out.value} exceeds 30% of balance {balance_out.value}")

    base = balance_out.div_up(balance_out.sub(amount_out))
    exponent = weight_out.div_up(weight_in)
    power = base.pow_up(exponent)

    amount_in = balance_in.mul_up(power.sub(ONE))
    if fee is not None:
        amount_in = gross_up_swap_fee(amount_in, fee)
    return amount_in


def calc_bpt_out_given_exact_tokens_in(
    balances: list[FixedPoint],
    normalized_weights: list[FixedPoint],
    amounts_in: list[FixedPoint],
    bpt_total_supply: FixedPoint,
    swap_fee_percentage: FixedPoint,
) -> FixedPoint:
    """Pool shares minted for depositing exact amounts of several tokens.

    The part of each deposit that is proportional to the pool's balances is
    fee-free; only the excess above the weighted-average ratio is charged the
    swap fee, as if it had been swapped in.
    """
    balance_ratios_with_fee = []
    invariant_ratio_with_fees = ZERO
    for balance, weight, amount_in in zip(balances, normalized_weights, amounts_in, strict=True):
        ratio = balance.add(amount_in).div_down(balance)
        balance_ratios_with_fee.append(ratio)
        invariant_ratio_with_fees = invariant_ratio_with_fees.add(ratio.mul_down(weight))

    invariant_ratio = ONE
    for balance, weight, amount_in, ratio in zip(
        balances, normalized_weights, amounts_in, balance_ratios_with_fee, strict=True
    ):
        if ratio > invariant_ratio_with_fees:
            non_taxable_amount = balance.mul_down(invariant_ratio_with_fees.sub(ONE))
            taxable_amount = amount_in.sub(non_taxable_amount)
            amount_in_without_fee = non_taxable_amount.add(
                taxable_amount.mul_down(swap_fee_percentage.complement())
            )
        else:
            amount_in_without_fee = amount_in

        balance_ratio = balance.add(amount_in_without_fee).div_down(balance)
        invariant_ratio = invariant_ratio.mul_down(balance_ratio.pow_down(weight))

    if invariant_ratio >= ONE:
        return bpt_total_supply.mul_down(invariant_ratio.sub(ONE))
    return ZERO


def calc_token_in_given_exact_bpt_out(
    balance: FixedPoint,
    normalized_weight: FixedPoint,
    bpt_amount_out: FixedPoint,
    bpt_total_supply: FixedPoint,
    swap_fee_percentage: FixedPoint,
) -> FixedPoint:
    """Amount of one token to deposit to mint an exact amount of pool shares.

    Raises:
        MaxOutBptForTokenInError: If the invariant would grow more than 3x
    """
    invariant_ratio = bpt_total_supply.add(bpt_amount_out).div_up(bpt_total_supply)
    if invariant_ratio > FixedPoint(MAX_INVARIANT_RATIO):
        raise MaxOutBptForTokenInError(f"Invariant ratio {invariant_ratio.value} exceeds 3")

    # The new balance is balance * invariant_ratio ^ (1 / weight)
    balance_ratio = invariant_ratio.pow_up(ONE.div_up(normalized_weight))
    amount_in_without_fee = balance.mul_up(balance_ratio.sub(ONE))

    # The weight of the token itself is fee-free, the rest was swapped in
    taxable_percentage = normalized_weight.complement()
    taxable_amount = amount_in_without_fee.mul_up(taxable_percentage)
    non_taxable_amount = amount_in_without_fee.sub(taxable_amount)

    return non_taxable_amount.add(taxable_amount.div_up(swap_fee_percentage.complement()))


def calc_lbpt_in_given_exact_tokens_out(
    balances: list[FixedPoint],
    normalized_weights: list[FixedPoint],
    amounts_out: list[FixedPoint],
    bpt_total_supply: FixedPoint,
    swap_fee_percentage: FixedPoint,
) -> FixedPoint:
    """Pool shares to burn for withdrawing exact amounts of several tokens.

    Mirror of the exact-tokens-in join: withdrawals beyond the proportional
    share pay the swap fee on the excess.
    """
    balance_ratios_without_fee = []
    invariant_ratio_without_fees = ZERO
    for balance, weight, amount_out in zip(balances, normalized_weights, amounts_out, strict=True):
        ratio = balance.sub(amount_out).div_up(balance)
        balance_ratios_without_fee.append(ratio)
        invariant_ratio_without_fees = invariant_ratio_without_fees.add(ratio.mul_up(weight))

    invariant_ratio = ONE
    for balance, weight, amount_out, ratio in zip(
        balances, normalized_weights, amounts_out, balance_ratios_without_fee, strict=True
    ):
        if invariant_ratio_without_fees > ratio:
            non_taxable_amount = balance.mul_down(invariant_ratio_without_fees.complement())
            taxable_amount = amount_out.sub(non_taxable_amount)
            amount_out_with_fee = non_taxable_amount.add(
                taxable_amount.div_up(swap_fee_percentage.complement())
            )
        else:
            amount_out_with_fee = amount_out

        balance_ratio = balance.sub(amount_out_with_fee).div_down(balance)
        invariant_ratio = invariant_ratio.mul_down(balance_ratio.pow_down(weight))

    return bpt_total_supply.mul_up(invariant_ratio.complement())


def calc_token_out_given_exact_lbpt_in(
    balance: FixedPoint,
    normalized_weight: FixedPoint,
    lbpt_amount_in: FixedPoint,
    bpt_total_supply: FixedPoint,
    swap_fee_percentage: FixedPoint,
) -> FixedPoint:
    """Amount of one token received for burning an exact amount of pool shares.

    Raises:
        MinBptInForTokenOutError: If the invariant would shrink below 0.7x
    """
    invariant_ratio = bpt_total_supply.sub(lbpt_amount_in).div_up(bpt_total_supply)
    if invariant_ratio < FixedPoint(MIN_INVARIANT_RATIO):
        raise MinBptInForTokenOutError(f"Invariant ratio {invariant_ratio.value} below 0.7")

    # The new balance is balance * invariant_ratio ^ (1 / weight)
    balance_ratio = invariant_ratio.pow_up(ONE.div_down(normalized_weight))
    amount_out_without_fee = balance.mul_down(balance_ratio.complement())

    taxable_percentage = normalized_weight.complement()
    taxable_amount = amount_out_without_fee.mul_up(taxable_percentage)
    non_taxable_amount = amount_out_without_fee.sub(taxable_amount)

    return non_taxable_amount.add(taxable_amount.mul_down(swap_fee_percentage.complement()))


def calc_tokens_out_given_exact_lbpt_in(
    balances: list[FixedPoint],
    lbpt_amount_in: FixedPoint,
    total_bpt: FixedPoint,
) -> list[FixedPoint]:
    """Proportional exit: every token in the ratio of shares burned to supply.

    No fee is charged since a proportional withdrawal leaves prices unchanged.
    """
    lbpt_ratio = lbpt_amount_in.div_down(total_bpt)
    return [balance.mul_down(lbpt_ratio) for balance in balances]

