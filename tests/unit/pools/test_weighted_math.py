"""Tests for weighted pool math.

This module tests:
- The invariant, including the empty and single-token cases
- Swap curves with and without fee parameters, and ratio limits
- Join and exit formulas

Exact values are wei-level results of the on-chain integer arithmetic.
"""

from decimal import Decimal

import pytest

from lyfebloc_pools.math.fixed_point import ONE, ONE_18, FixedPoint
from lyfebloc_pools.pools import weighted_math
from lyfebloc_pools.pools.errors import (
    MaxInRatioError,
    MaxOutBptForTokenInError,
    MaxOutRatioError,
    MinBptInForTokenOutError,
    ZeroInvariantError,
)
from lyfebloc_pools.pools.scaling import SwapFeeParams, get_scaling_factor


def fp(value: str | int) -> FixedPoint:
    return FixedPoint.from_decimal(Decimal(value))


HALF = fp("0.5")


class TestCalculateInvariant:
    """Tests for calculate_invariant."""

    def test_empty_token_set_is_one(self) -> None:
        """The product over no tokens is the identity."""
        assert weighted_math.calculate_invariant([], []) == ONE

    def test_single_token_is_balance(self) -> None:
        """A single token of weight 1 has its balance as invariant."""
        balance = fp("1234.5678")
        assert weighted_math.calculate_invariant([ONE], [balance]) == balance

    def test_two_tokens(self) -> None:
        """50/50 invariant is the geometric mean of the balances, rounded down."""
        invariant = weighted_math.calculate_invariant([HALF, HALF], [fp(1000), fp(1500)])
        # sqrt(1000 * 1500) = 1224.744871391589049098...
        assert invariant == FixedPoint(1224744871391564553741)

    def test_three_tokens(self) -> None:
        """Each power rounds down, so the product stays below the exact value."""
        invariant = weighted_math.calculate_invariant(
            [fp("0.3"), fp("0.3"), fp("0.4")], [fp(1000), fp(1000), fp(2000)]
        )
        # 1000^0.6 * 2000^0.4 = 1319.507910772894259...
        assert invariant == FixedPoint(1319507910772854670969)

    def test_zero_balance_raises(self) -> None:
        """A zero balance makes the invariant zero."""
        with pytest.raises(ZeroInvariantError):
            weighted_math.calculate_invariant([HALF, HALF], [FixedPoint(0), fp(1000)])


class TestSwapMath:
    """Tests for calc_out_given_in/calc_in_given_out."""

    def test_out_given_in_equal_weights_closed_form(self) -> None:
        """With equal weights the power is the identity."""
        result = weighted_math.calc_out_given_in(fp(1000), HALF, fp(1500), HALF, fp(10))

        base = -(-(1000 * ONE_18 * ONE_18) // (1010 * ONE_18))
        assert result.value == (1500 * ONE_18 * (ONE_18 - base)) // ONE_18

    def test_in_given_out_equal_weights_closed_form(self) -> None:
        """Inverse curve rounds up."""
        result = weighted_math.calc_in_given_out(fp(1000), HALF, fp(1500), HALF, fp(15))

        base = -(-(1500 * ONE_18 * ONE_18) // (1485 * ONE_18))
        assert result.value == -(-(1000 * ONE_18 * (base - ONE_18)) // ONE_18)

    def test_out_given_in_uneven_weights(self) -> None:
        """10 in against 1000/0.4 -> 3000/0.6: 3000 * (1 - (1000 / 1010)^(2/3)), rounded down."""
        out = weighted_math.calc_out_given_in(fp(1000), fp("0.4"), fp(3000), fp("0.6"), fp(10))
        assert out == FixedPoint(19834801360101285000)

    def test_out_given_in_extreme_weights(self) -> None:
        out = weighted_math.calc_out_given_in(fp(1000), fp("0.001"), fp(2000), fp("0.999"), fp(10))
        assert out == FixedPoint(19920483061552000)

    def test_in_given_out_uneven_weights(self) -> None:
        amount_in = weighted_math.calc_in_given_out(fp(1000), fp("0.4"), fp(3000), fp("0.6"), fp(10))
        assert amount_in == FixedPoint(5020914656799390000)

        amount_in = weighted_math.calc_in_given_out(fp(100), fp("0.2"), fp(1000), fp("0.8"), fp(100))
        assert amount_in == FixedPoint(52415790275872581100)

    def test_fee_reduces_output(self) -> None:
        """Charging the fee on the input lowers the output."""
        fee = SwapFeeParams(swap_fee_percentage=fp("0.01"), token_in_scaling_factor=get_scaling_factor(18))
        without_fee = weighted_math.calc_out_given_in(fp(1000), fp("0.4"), fp(3000), fp("0.6"), fp(10))
        with_fee = weighted_math.calc_out_given_in(fp(1000), fp("0.4"), fp(3000), fp("0.6"), fp(10), fee=fee)
        assert with_fee < without_fee

    def test_fee_increases_input(self) -> None:
        """The fee is added on top of the curve's input."""
        fee = SwapFeeParams(swap_fee_percentage=fp("0.01"), token_in_scaling_factor=get_scaling_factor(18))
        without_fee = weighted_math.calc_in_given_out(fp(100), fp("0.2"), fp(1000), fp("0.8"), fp(10))
        with_fee = weighted_math.calc_in_given_out(fp(100), fp("0.2"), fp(1000), fp("0.8"), fp(10), fee=fee)
        assert with_fee > without_fee

    def test_round_trip_uneven_weights(self) -> None:
        """Buying back the quoted output never costs more than the original input.

        The gap is the power's error margin, amplified by 1 / (1 - power).
        """
        amount_in = fp(10)
        out = weighted_math.calc_out_given_in(fp(1000), fp("0.4"), fp(3000), fp("0.6"), amount_in)
        back = weighted_math.calc_in_given_out(fp(1000), fp("0.4"), fp(3000), fp("0.6"), out)
        assert out == FixedPoint(19834801360101285000)
        assert back == FixedPoint(9999999999994949000)

    def test_round_trip_equal_weights(self) -> None:
        """With an exponent of one the round trip is exact to the wei."""
        out = weighted_math.calc_out_given_in(fp(1000), HALF, fp(1500), HALF, fp("9.9"))
        back = weighted_math.calc_in_given_out(fp(1000), HALF, fp(1500), HALF, out)
        assert out == FixedPoint(14704426180809981000)
        assert back == fp("9.9")

    def test_max_in_ratio(self) -> None:
        """Inputs above 30% of the balance are rejected."""
        weighted_math.calc_out_given_in(fp(1000), HALF, fp(1000), HALF, fp(300))
        with pytest.raises(MaxInRatioError):
            weighted_math.calc_out_given_in(fp(1000), HALF, fp(1000), HALF, FixedPoint(300 * ONE_18 + 1))

    def test_max_out_ratio(self) -> None:
        """Outputs above 30% of the balance are rejected."""
        with pytest.raises(MaxOutRatioError):
            weighted_math.calc_in_given_out(fp(1000), HALF, fp(1000), HALF, fp(301))


class TestJoinMath:
    """Tests for the join formulas."""

    def test_proportional_join_is_fee_free(self) -> None:
        """A proportional deposit mints shares in proportion, rounded down."""
        bpt_out = weighted_math.calc_bpt_out_given_exact_tokens_in(
            [fp(1000), fp(1500)], [HALF, HALF], [fp(10), fp(15)], fp(1000), fp("0.01")
        )
        assert bpt_out <= fp(10)
        assert fp(10).value - bpt_out.value < 10**9

    def test_non_proportional_join_mints_fewer(self) -> None:
        """A single-sided deposit of equal value mints fewer shares."""
        balances = [fp(1000), fp(1500)]
        proportional = weighted_math.calc_bpt_out_given_exact_tokens_in(
            balances, [HALF, HALF], [fp(10), fp(15)], fp(1000), fp("0.01")
        )
        # At a spot price of 1.5, 20 of the first token is worth 10 + 15
        single_sided = weighted_math.calc_bpt_out_given_exact_tokens_in(
            balances, [HALF, HALF], [fp(20), fp(0)], fp(1000), fp("0.01")
        )
        assert single_sided < proportional

    def test_exact_tokens_in_known_value(self) -> None:
        bpt_out = weighted_math.calc_bpt_out_given_exact_tokens_in(
            [fp(100), fp(200), fp(300)],
            [fp("0.2"), fp("0.4"), fp("0.4")],
            [fp(50), fp(100), fp(100)],
            fp(1000),
            fp("0.01"),
        )
        assert bpt_out == FixedPoint(430587455423947078000)

    def test_token_in_given_exact_bpt_out(self) -> None:
        """Minting 1% of supply with one 50% token costs about 2% of its balance plus fee."""
        amount_in = weighted_math.calc_token_in_given_exact_bpt_out(fp(1000), HALF, fp(10), fp(1000), fp("0.01"))
        # 1000 * (1.01^2 - 1) = 20.1, half of it taxed at 1%
        assert fp("20.1") < amount_in < fp("20.3")

    def test_token_in_given_exact_bpt_out_known_value(self) -> None:
        amount_in = weighted_math.calc_token_in_given_exact_bpt_out(fp(1000), fp("0.6"), fp(10), fp(1000), fp("0.01"))
        assert amount_in == FixedPoint(16789724984294813770)

    def test_token_in_given_exact_bpt_out_limit(self) -> None:
        """Growing the invariant more than 3x is rejected."""
        with pytest.raises(MaxOutBptForTokenInError):
            weighted_math.calc_token_in_given_exact_bpt_out(fp(1000), HALF, fp(2001), fp(1000), fp("0.01"))


class TestExitMath:
    """Tests for the exit formulas."""

    def test_proportional_exit(self) -> None:
        """Burning 10% of supply returns 10% of every balance."""
        amounts = weighted_math.calc_tokens_out_given_exact_lbpt_in([fp(1000), fp(1500)], fp(100), fp(1000))
        assert amounts == [fp(100), fp(150)]

    def test_proportional_exact_tokens_out_rounds_up(self) -> None:
        """Withdrawing 10% of every balance burns at least 10% of supply."""
        lbpt_in = weighted_math.calc_lbpt_in_given_exact_tokens_out(
            [fp(1000), fp(1500)], [HALF, HALF], [fp(100), fp(150)], fp(1000), fp("0.01")
        )
        assert lbpt_in >= fp(100)
        assert lbpt_in.value - fp(100).value < 10**9

    def test_exact_tokens_out_known_value(self) -> None:
        lbpt_in = weighted_math.calc_lbpt_in_given_exact_tokens_out(
            [fp(100), fp(200), fp(300)],
            [fp("0.2"), fp("0.4"), fp("0.4")],
            [fp(50), fp(100), fp(100)],
            fp(1000),
            fp("0.01"),
        )
        assert lbpt_in == FixedPoint(439475864669111539000)

    def test_proportional_exit_known_value(self) -> None:
        amounts = weighted_math.calc_tokens_out_given_exact_lbpt_in(
            [fp(100), fp(1000), fp(5000)], fp("23.58"), fp(200)
        )
        assert amounts == [fp("11.79"), fp("117.9"), fp("589.5")]

    def test_token_out_given_exact_lbpt_in(self) -> None:
        """Burning 1% of supply for one 50% token returns about 2% of its balance minus fee."""
        amount_out = weighted_math.calc_token_out_given_exact_lbpt_in(fp(1000), HALF, fp(10), fp(1000), fp("0.01"))
        # 1000 * (1 - 0.99^2) = 19.9, half of it taxed at 1%
        assert fp("19.8") < amount_out < fp("19.9")

    def test_token_out_given_exact_lbpt_in_known_value(self) -> None:
        amount_out = weighted_math.calc_token_out_given_exact_lbpt_in(fp(1000), fp("0.3"), fp(10), fp(100), fp("0.01"))
        assert amount_out == FixedPoint(294085130952131443938)

    def test_token_out_given_exact_lbpt_in_limit(self) -> None:
        """Shrinking the invariant below 0.7x is rejected."""
        with pytest.raises(MinBptInForTokenOutError):
            weighted_math.calc_token_out_given_exact_lbpt_in(fp(1000), HALF, fp(301), fp(1000), fp("0.01"))

