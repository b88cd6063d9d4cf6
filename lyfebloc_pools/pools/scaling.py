"""Scaling and fee helpers.

Functions for scaling token amounts between native decimals and 18-decimal
fixed-point, and for applying swap fees the way the vault does: on the raw
native amount, before upscaling (exact in) or after downscaling (exact out).

A scaling factor is itself an 18-decimal fixed-point value,
10^(18 - decimals) * ONE, optionally multiplied by a token rate. Upscaling
multiplies by it rounding down, downscaling divides by it in the direction
the caller asks for.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from lyfebloc_pools.math.fixed_point import ONE_18, FixedPoint


@dataclass(frozen=True)
class SwapFeeParams:
    """Swap fee to charge on the input leg of a swap.

    Attributes:
        swap_fee_percentage: Fee as 18-decimal fixed point (0.01 * 10^18 for 1%)
        token_in_scaling_factor: Scaling factor of the token paying the fee
    """

    swap_fee_percentage: FixedPoint
    token_in_scaling_factor: FixedPoint


def get_scaling_factor(decimals: int, rate: Decimal | None = None) -> FixedPoint:
    """Scaling factor for a token with `decimals` decimals.

    Args:
        decimals: Token decimals, between 0 and 18
        rate: Optional token rate (e.g. a wrapped token's exchange rate)

    Returns:
        10^(18 - decimals) as 18-decimal fixed point, times rate
    """
    if not 0 <= decimals <= 18:
        raise ValueError(f"Token decimals must be in [0, 18], got {decimals}")
    factor = FixedPoint(10 ** (18 - decimals) * ONE_18)
    if rate is None:
        return factor
    return factor.mul_down(FixedPoint.from_decimal(rate))


def upscale(amount: int, scaling_factor: FixedPoint) -> FixedPoint:
    """Scale raw native amount to 18 decimals for internal math."""
    return FixedPoint(amount).mul_down(scaling_factor)


def downscale_down(amount: FixedPoint, scaling_factor: FixedPoint) -> int:
    """Scale 18-decimal result back to raw native amount, rounding down."""
    return amount.div_down(scaling_factor).value


def downscale_up(amount: FixedPoint, scaling_factor: FixedPoint) -> int:
    """Scale 18-decimal result back to raw native amount, rounding up."""
    return amount.div_up(scaling_factor).value


def subtract_swap_fee_amount(amount: int, swap_fee_percentage: FixedPoint) -> int:
    """Subtract swap fee from a gross input amount.

    Used for exact-input swaps: the fee is deducted before the curve.

    Args:
        amount: Raw input amount before fee
        swap_fee_percentage: Fee as 18-decimal fixed point

    Returns:
        Amount after fee deduction
    """
    amount_fp = FixedPoint(amount)
    fee_amount = amount_fp.mul_up(swap_fee_percentage)
    return amount_fp.sub(fee_amount).value


def add_swap_fee_amount(amount: int, swap_fee_percentage: FixedPoint) -> int:
    """Add swap fee to a net input amount.

    Used for exact-output swaps: after calc_in_given_out computes the raw
    input needed, the fee is added on top.

    Formula: amount_with_fee = amount / (1 - fee)
    """
    return FixedPoint(amount).div_up(swap_fee_percentage.complement()).value


def deduct_swap_fee(amount_in: FixedPoint, fee: SwapFeeParams) -> FixedPoint:
    """Charge the swap fee on an upscaled input amount.

    The amount is taken back to native units (exact, since it was upscaled
    from them), the fee is subtracted there, and the net amount is upscaled
    again.
    """
    raw = downscale_down(amount_in, fee.token_in_scaling_factor)
    net = subtract_swap_fee_amount(raw, fee.swap_fee_percentage)
    return upscale(net, fee.token_in_scaling_factor)


def gross_up_swap_fee(amount_in: FixedPoint, fee: SwapFeeParams) -> FixedPoint:
    """Add the swap fee to an upscaled input amount computed by a curve.

    The amount is downscaled rounding up, grossed up in native units, and
    upscaled again.
    """
    raw = downscale_up(amount_in, fee.token_in_scaling_factor)
    gross = add_swap_fee_amount(raw, fee.swap_fee_percentage)
    return upscale(gross, fee.token_in_scaling_factor)
