"""Stable pool math.

Core math functions for stable (StableSwap/Curve-style) pools.
Uses Newton-Raphson iteration for the invariant and for single balances.

IMPORTANT: All financial calculations use SafeInt for overflow protection
and explicit bounds checking.
"""

from __future__ import annotations

import structlog

from lyfebloc_pools.constants import AMP_PRECISION, STABLE_CONVERGENCE_TOLERANCE, STABLE_MAX_ITERATIONS
from lyfebloc_pools.math.fixed_point import ONE, ZERO, FixedPoint
from lyfebloc_pools.safe_int import S, SafeInt

from .errors import StableGetBalanceDidNotConverge, StableInvariantDidNotConverge, ZeroBalanceError
from .scaling import SwapFeeParams, deduct_swap_fee, gross_up_swap_fee

logger = structlog.get_logger()


def _converged(new: SafeInt, prev: SafeInt) -> bool:
    if new > prev:
        return new - prev <= STABLE_CONVERGENCE_TOLERANCE
    return prev - new <= STABLE_CONVERGENCE_TOLERANCE


def calculate_invariant(amp: int, balances: list[FixedPoint]) -> FixedPoint:
    """Calculate StableSwap invariant D using Newton-Raphson iteration.

    Uses the parameterization where the Newton-Raphson formula uses A*n
    (not A*n^n). The n^n factor is incorporated through the iterative d_p
    calculation.

    Algorithm:
        1. Initial guess: D = sum(balances)
        2. Iterate until |D_new - D_old| <= 1 wei
        3. Max iterations: 255

    Args:
        amp: Amplification parameter (scaled by AMP_PRECISION=1000)
        balances: List of token balances (already scaled to 18 decimals)

    Returns:
        The calculated invariant D; zero when all balances are zero

    Raises:
        StableInvariantDidNotConverge: If iteration doesn't converge
    """
    n_coins = len(balances)
    sum_balances = S(sum(b.value for b in balances))
    if sum_balances == 0:
        return ZERO

    d_prev = sum_balances
    amp_times_n = S(amp) * n_coins

    for _ in range(STABLE_MAX_ITERATIONS):
        # d_p = D^(n+1) / (n^n * prod(balances)), one balance at a time
        d_p = d_prev
        for bal in balances:
            d_p = (d_p * d_prev) // (S(n_coins) * bal.value)

        term1 = (amp_times_n * sum_balances) // AMP_PRECISION
        numerator = (term1 + d_p * n_coins) * d_prev

        term2 = ((amp_times_n - AMP_PRECISION) * d_prev) // AMP_PRECISION
        denominator = term2 + S(n_coins + 1) * d_p

        d_new = numerator // denominator

        if _converged(d_new, d_prev):
            return FixedPoint(d_new.to_uint256())

        d_prev = d_new

    logger.warning(
        "stable_invariant_did_not_converge",
        amp=amp,
        n_coins=n_coins,
        iterations=STABLE_MAX_ITERATIONS,
    )
    raise StableInvariantDidNotConverge(
        f"Stable invariant did not converge after {STABLE_MAX_ITERATIONS} iterations"
    )


def get_token_balance_given_invariant_and_all_other_balances(
    amp: int,
    balances: list[FixedPoint],
    invariant: FixedPoint,
    token_index: int,
) -> FixedPoint:
    """Solve for balance[token_index] given D and all other balances.

    Uses Newton-Raphson iteration to find y (the unknown balance) such that
    the StableSwap invariant is preserved. Every division on the way rounds
    up, so the solved balance is never understated.

    Args:
        amp: Amplification parameter (scaled by AMP_PRECISION=1000)
        balances: List of token balances (the value at token_index is used in c)
        invariant: The invariant D to preserve
        token_index: Index of the token whose balance we're solving for

    Returns:
        The calculated balance

    Raises:
        StableGetBalanceDidNotConverge: If iteration doesn't converge
        IndexError: If token_index is out of range
    """
    n_coins = len(balances)
    if token_index < 0 or token_index >= n_coins:
        raise IndexError(f"token_index {token_index} out of range for {n_coins} tokens")

    d = S(invariant.value)
    amp_times_total = S(amp) * n_coins

    # P_D starts as balance[0] * n; for each further balance j: P_D = P_D * balance[j] * n / D
    sum_balances = S(balances[0].value)
    p_d = S(balances[0].value) * n_coins
    for j in range(1, n_coins):
        p_d = (p_d * balances[j].value * n_coins) // d
        sum_balances = sum_balances + balances[j].value

    sum_others = sum_balances - balances[token_index].value

    inv2 = d * d

    # c = inv2 / (ampTimesTotal * P_D) * AMP_PRECISION * balances[tokenIndex]
    c = inv2.ceiling_div(amp_times_total * p_d) * AMP_PRECISION * balances[token_index].value

    # b = sum_others + invariant / ampTimesTotal * AMP_PRECISION
    b = sum_others + (d // amp_times_total) * AMP_PRECISION

    # Initial guess: (inv2 + c) / (invariant + b)
    token_balance = (inv2 + c).ceiling_div(d + b)

    for _ in range(STABLE_MAX_ITERATIONS):
        prev_token_balance = token_balance

        # tokenBalance = (tokenBalance^2 + c) / (2*tokenBalance + b - invariant)
        numerator = token_balance * token_balance + c
        denominator = S(2) * token_balance + b - d
        token_balance = numerator.ceiling_div(denominator)

        if _converged(token_balance, prev_token_balance):
            return FixedPoint(token_balance.to_uint256())

    logger.warning(
        "stable_get_balance_did_not_converge",
        amp=amp,
        token_index=token_index,
        iterations=STABLE_MAX_ITERATIONS,
    )
    raise StableGetBalanceDidNotConverge(
        f"Stable get_balance did not converge after {STABLE_MAX_ITERATIONS} iterations"
    )


def _validate_indices(n_coins: int, token_index_in: int, token_index_out: int) -> None:
    if token_index_in < 0 or token_index_in >= n_coins:
        raise IndexError(f"token_index_in {token_index_in} out of range for {n_coins} tokens")
    if token_index_out < 0 or token_index_out >= n_coins:
        raise IndexError(f"token_index_out {token_index_out} out of range for {n_coins} tokens")
    if token_index_in == token_index_out:
        raise ValueError("Cannot swap token with itself")


def calc_out_given_in(
    amp: int,
    balances: list[FixedPoint],
    token_index_in: int,
    token_index_out: int,
    amount_in: FixedPoint,
    fee: SwapFeeParams | None = None,
) -> FixedPoint:
    """Calculate output amount for a given input in a stable pool.

    Unlike weighted pools, stable pools do not enforce ratio limits.

    Algorithm:
        1. Deduct the swap fee from amount_in (if fee is given)
        2. Calculate current invariant D
        3. Add amount_in to balances[token_index_in]
        4. Solve for new balances[token_index_out] given D
        5. Return: old_balance_out - new_balance_out - 1 (1 wei rounding protection)

    Raises:
        StableInvariantDidNotConverge: If invariant calculation doesn't converge
        StableGetBalanceDidNotConverge: If balance calculation doesn't converge
        ValueError: If token_index_in == token_index_out
        IndexError: If token indices are out of range
    """
    _validate_indices(len(balances), token_index_in, token_index_out)

    if fee is not None:
        amount_in = deduct_swap_fee(amount_in, fee)

    invariant = calculate_invariant(amp, balances)

    new_balances = list(balances)
    new_balances[token_index_in] = balances[token_index_in].add(amount_in)

    new_balance_out = get_token_balance_given_invariant_and_all_other_balances(
        amp, new_balances, invariant, token_index_out
    )

    # reverts when the solved balance did not decrease
    return FixedPoint((S(balances[token_index_out].value) - new_balance_out.value - 1).value)


def calc_in_given_out(
    amp: int,
    balances: list[FixedPoint],
    token_index_in: int,
    token_index_out: int,
    amount_out: FixedPoint,
    fee: SwapFeeParams | None = None,
) -> FixedPoint:
    """Calculate input amount for a given output in a stable pool.

    Algorithm:
        1. Calculate current invariant D
        2. Subtract amount_out from balances[token_index_out]
        3. Solve for new balances[token_index_in] given D
        4. Input: new_balance_in - old_balance_in + 1 (1 wei rounding protection)
        5. Add the swap fee on top (if fee is given)

    Raises:
        StableInvariantDidNotConverge: If invariant calculation doesn't converge
        StableGetBalanceDidNotConverge: If balance calculation doesn't converge
        ZeroBalanceError: If amount_out >= balance_out
        ValueError: If token_index_in == token_index_out
        IndexError: If token indices are out of range
    """
    _validate_indices(len(balances), token_index_in, token_index_out)

    if amount_out >= balances[token_index_out]:
        raise ZeroBalanceError("amount_out must be less than balance_out")

    invariant = calculate_invariant(amp, balances)

    new_balances = list(balances)
    new_balances[token_index_out] = balances[token_index_out].sub(amount_out)

    new_balance_in = get_token_balance_given_invariant_and_all_other_balances(
        amp, new_balances, invariant, token_index_in
    )

    amount_in = FixedPoint(new_balance_in.value - balances[token_index_in].value + 1)
    if fee is not None:
        amount_in = gross_up_swap_fee(amount_in, fee)
    return amount_in


def _sum(balances: list[FixedPoint]) -> FixedPoint:
    total = ZERO
    for balance in balances:
        total = total.add(balance)
    return total


def calc_bpt_out_given_exact_tokens_in(
    amp: int,
    balances: list[FixedPoint],
    amounts_in: list[FixedPoint],
    bpt_total_supply: FixedPoint,
    swap_fee_percentage: FixedPoint,
) -> FixedPoint:
    """Pool shares minted for depositing exact amounts of several tokens.

    The current weight of a token is its share of the balance sum. The part
    of each deposit above the weighted-average ratio is charged the swap fee;
    shares are minted in proportion to the invariant growth.
    """
    current_invariant = calculate_invariant(amp, balances)
    sum_balances = _sum(balances)

    balance_ratios_with_fee = []
    invariant_ratio_with_fees = ZERO
    for balance, amount_in in zip(balances, amounts_in, strict=True):
        current_weight = balance.div_down(sum_balances)
        ratio = balance.add(amount_in).div_down(balance)
        balance_ratios_with_fee.append(ratio)
        invariant_ratio_with_fees = invariant_ratio_with_fees.add(ratio.mul_down(current_weight))

    new_balances = []
    for balance, amount_in, ratio in zip(balances, amounts_in, balance_ratios_with_fee, strict=True):
        if ratio > invariant_ratio_with_fees:
            non_taxable_amount = balance.mul_down(invariant_ratio_with_fees.sub(ONE))
            taxable_amount = amount_in.sub(non_taxable_amount)
            amount_in_without_fee = non_taxable_amount.add(
                taxable_amount.mul_down(swap_fee_percentage.complement())
            )
        else:
            amount_in_without_fee = amount_in
        new_balances.append(balance.add(amount_in_without_fee))

    new_invariant = calculate_invariant(amp, new_balances)
    invariant_ratio = new_invariant.div_down(current_invariant)

    if invariant_ratio > ONE:
        return bpt_total_supply.mul_down(invariant_ratio.sub(ONE))
    return ZERO


def calc_token_in_given_exact_bpt_out(
    amp: int,
    balances: list[FixedPoint],
    token_index: int,
    bpt_amount_out: FixedPoint,
    bpt_total_supply: FixedPoint,
    swap_fee_percentage: FixedPoint,
) -> FixedPoint:
    """Amount of one token to deposit to mint an exact amount of pool shares."""
    current_invariant = calculate_invariant(amp, balances)
    new_invariant = bpt_total_supply.add(bpt_amount_out).div_up(bpt_total_supply).mul_up(current_invariant)

    new_balance = get_token_balance_given_invariant_and_all_other_balances(
        amp, balances, new_invariant, token_index
    )
    amount_in_without_fee = new_balance.sub(balances[token_index])

    # The token's own share of the pool is fee-free, the rest was swapped in
    current_weight = balances[token_index].div_down(_sum(balances))
    taxable_percentage = current_weight.complement()
    taxable_amount = amount_in_without_fee.mul_up(taxable_percentage)
    non_taxable_amount = amount_in_without_fee.sub(taxable_amount)

    return non_taxable_amount.add(taxable_amount.div_up(swap_fee_percentage.complement()))


def calc_lbpt_in_given_exact_tokens_out(
    amp: int,
    balances: list[FixedPoint],
    amounts_out: list[FixedPoint],
    bpt_total_supply: FixedPoint,
    swap_fee_percentage: FixedPoint,
) -> FixedPoint:
    """Pool shares to burn for withdrawing exact amounts of several tokens."""
    current_invariant = calculate_invariant(amp, balances)
    sum_balances = _sum(balances)

    balance_ratios_without_fee = []
    invariant_ratio_without_fees = ZERO
    for balance, amount_out in zip(balances, amounts_out, strict=True):
        current_weight = balance.div_up(sum_balances)
        ratio = balance.sub(amount_out).div_up(balance)
        balance_ratios_without_fee.append(ratio)
        invariant_ratio_without_fees = invariant_ratio_without_fees.add(ratio.mul_up(current_weight))

    new_balances = []
    for balance, amount_out, ratio in zip(balances, amounts_out, balance_ratios_without_fee, strict=True):
        if invariant_ratio_without_fees > ratio:
            non_taxable_amount = balance.mul_down(invariant_ratio_without_fees.complement())
            taxable_amount = amount_out.sub(non_taxable_amount)
            amount_out_with_fee = non_taxable_amount.add(
                taxable_amount.div_up(swap_fee_percentage.complement())
            )
        else:
            amount_out_with_fee = amount_out
        new_balances.append(balance.sub(amount_out_with_fee))

    new_invariant = calculate_invariant(amp, new_balances)
    invariant_ratio = new_invariant.div_down(current_invariant)

    return bpt_total_supply.mul_up(invariant_ratio.complement())


def calc_token_out_given_exact_lbpt_in(
    amp: int,
    balances: list[FixedPoint],
    token_index: int,
    lbpt_amount_in: FixedPoint,
    bpt_total_supply: FixedPoint,
    swap_fee_percentage: FixedPoint,
) -> FixedPoint:
    """Amount of one token received for burning an exact amount of pool shares."""
    current_invariant = calculate_invariant(amp, balances)
    new_invariant = bpt_total_supply.sub(lbpt_amount_in).div_up(bpt_total_supply).mul_up(current_invariant)

    new_balance = get_token_balance_given_invariant_and_all_other_balances(
        amp, balances, new_invariant, token_index
    )
    amount_out_without_fee = balances[token_index].sub(new_balance)

    current_weight = balances[token_index].div_down(_sum(balances))
    taxable_percentage = current_weight.complement()
    taxable_amount = amount_out_without_fee.mul_up(taxable_percentage)
    non_taxable_amount = amount_out_without_fee.sub(taxable_amount)

    return non_taxable_amount.add(taxable_amount.mul_down(swap_fee_percentage.complement()))


def calc_tokens_out_given_exact_lbpt_in(
    balances: list[FixedPoint],
    lbpt_amount_in: FixedPoint,
    total_bpt: FixedPoint,
) -> list[FixedPoint]:
    """Proportional exit, fee-free."""
    lbpt_ratio = lbpt_amount_in.div_down(total_bpt)
    return [balance.mul_down(lbpt_ratio) for balance in balances]

