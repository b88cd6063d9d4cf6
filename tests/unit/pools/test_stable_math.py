"""Tests for stable pool math.

This module tests:
- Newton-Raphson invariant and single-balance solvers
- Swap curves, rounding protection and fee parameters
- Join/exit formulas with current-weight fee splitting
- Non-convergence reporting

Exact values are wei-level results of the on-chain integer arithmetic.
"""

from decimal import Decimal

import pytest
from structlog.testing import capture_logs

from lyfebloc_pools.math.fixed_point import ZERO, FixedPoint
from lyfebloc_pools.pools import stable_math
from lyfebloc_pools.pools.errors import (
    StableGetBalanceDidNotConverge,
    StableInvariantDidNotConverge,
    ZeroBalanceError,
)
from lyfebloc_pools.pools.scaling import SwapFeeParams, get_scaling_factor
from lyfebloc_pools.safe_int import DivisionByZero, Underflow

AMP = 200 * 1000


def fp(value: str | int) -> FixedPoint:
    return FixedPoint.from_decimal(Decimal(value))


def balanced(n: int = 3, balance: int = 1_000_000) -> list[FixedPoint]:
    return [fp(balance) for _ in range(n)]


class TestCalculateInvariant:
    """Tests for the stable invariant."""

    def test_balanced_pool_invariant_is_sum(self) -> None:
        """For equal balances D equals the sum exactly."""
        assert stable_math.calculate_invariant(AMP, balanced()) == fp(3_000_000)

    def test_zero_sum_is_zero(self) -> None:
        """An empty pool has a zero invariant."""
        assert stable_math.calculate_invariant(AMP, [ZERO, ZERO]) == ZERO

    def test_imbalanced_pool_below_sum(self) -> None:
        """Imbalance lowers D below the sum, but only slightly at high A."""
        invariant = stable_math.calculate_invariant(AMP, [fp(1_000_000), fp(500_000)])
        assert invariant == FixedPoint(1499534015561310279719492)

        invariant = stable_math.calculate_invariant(AMP, [fp(1000), fp(1500)])
        assert invariant == FixedPoint(2499740959277484887686)

    def test_zero_balance_raises(self) -> None:
        """A single zero balance cannot enter the product term."""
        with pytest.raises(DivisionByZero):
            stable_math.calculate_invariant(AMP, [ZERO, fp(1000)])

    def test_did_not_converge(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Running out of iterations logs a warning and raises."""
        monkeypatch.setattr(stable_math, "STABLE_MAX_ITERATIONS", 0)
        with capture_logs() as logs, pytest.raises(StableInvariantDidNotConverge):
            stable_math.calculate_invariant(AMP, balanced())
        assert logs[0]["event"] == "stable_invariant_did_not_converge"
        assert logs[0]["log_level"] == "warning"


class TestGetTokenBalance:
    """Tests for get_token_balance_given_invariant_and_all_other_balances."""

    def test_recovers_balance(self) -> None:
        """Solving at the current invariant returns that balance, rounded up."""
        balances = [fp(1_000_000), fp(500_000), fp(750_000)]
        invariant = stable_math.calculate_invariant(AMP, balances)
        assert invariant == FixedPoint(2249533967437499448396583)
        solved = stable_math.get_token_balance_given_invariant_and_all_other_balances(AMP, balances, invariant, 1)
        assert solved == FixedPoint(500000000000000000001570)

    def test_index_out_of_range(self) -> None:
        """Out-of-range indices are rejected."""
        with pytest.raises(IndexError):
            stable_math.get_token_balance_given_invariant_and_all_other_balances(
                AMP, balanced(), fp(3_000_000), 3
            )

    def test_did_not_converge(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Running out of iterations raises."""
        monkeypatch.setattr(stable_math, "STABLE_MAX_ITERATIONS", 0)
        with pytest.raises(StableGetBalanceDidNotConverge):
            stable_math.get_token_balance_given_invariant_and_all_other_balances(
                AMP, balanced(), fp(3_000_000), 0
            )


class TestSwapMath:
    """Tests for stable swaps."""

    def test_out_given_in_near_parity(self) -> None:
        """A small trade in a balanced pool trades almost 1:1, never above."""
        out = stable_math.calc_out_given_in(AMP, balanced(), 0, 1, fp(1000))
        assert out == FixedPoint(999995024895447954844)

    def test_in_given_out_near_parity(self) -> None:
        """Buying from a balanced pool costs at least the amount bought."""
        amount_in = stable_math.calc_in_given_out(AMP, balanced(), 0, 1, fp(1000))
        assert amount_in == FixedPoint(1000004975154055918334)

    def test_round_trip(self) -> None:
        """Buying back the quoted output costs the input plus the solvers' round-up."""
        out = stable_math.calc_out_given_in(AMP, balanced(), 0, 1, fp(1000))
        back = stable_math.calc_in_given_out(AMP, balanced(), 0, 1, out)
        assert back == FixedPoint(1000000000000000000796)

    def test_fee_params(self) -> None:
        """The fee is charged on the input leg, in native units."""
        fee = SwapFeeParams(swap_fee_percentage=fp("0.01"), token_in_scaling_factor=get_scaling_factor(6))
        without_fee = stable_math.calc_out_given_in(AMP, balanced(), 0, 1, fp(1000))
        with_fee = stable_math.calc_out_given_in(AMP, balanced(), 0, 1, fp(1000), fee=fee)
        assert with_fee < without_fee
        assert fp(989) < with_fee < fp(990)

    def test_zero_amount_reverts(self) -> None:
        """A swap that does not lower the out balance fails like the contract."""
        with pytest.raises(Underflow):
            stable_math.calc_out_given_in(AMP, [fp(1000), fp(1000)], 0, 1, ZERO)

    def test_amount_out_above_balance(self) -> None:
        """Draining a balance is rejected."""
        with pytest.raises(ZeroBalanceError):
            stable_math.calc_in_given_out(AMP, balanced(), 0, 1, fp(1_000_000))

    def test_same_token_rejected(self) -> None:
        """Swapping a token for itself is rejected."""
        with pytest.raises(ValueError):
            stable_math.calc_out_given_in(AMP, balanced(), 1, 1, fp(1))

    def test_index_out_of_range(self) -> None:
        """Out-of-range indices are rejected."""
        with pytest.raises(IndexError):
            stable_math.calc_out_given_in(AMP, balanced(), 0, 5, fp(1))


class TestJoinExitMath:
    """Tests for stable joins and exits."""

    def test_proportional_join(self) -> None:
        """A proportional deposit mints shares in proportion, rounded down."""
        bpt_out = stable_math.calc_bpt_out_given_exact_tokens_in(
            AMP, balanced(), [fp(1000)] * 3, fp(3_000_000), fp("0.0004")
        )
        assert fp("2999.99") < bpt_out <= fp(3000)

    def test_non_proportional_join_mints_fewer(self) -> None:
        """A single-sided deposit of equal value mints fewer shares."""
        proportional = stable_math.calc_bpt_out_given_exact_tokens_in(
            AMP, balanced(), [fp(1000)] * 3, fp(3_000_000), fp("0.0004")
        )
        single_sided = stable_math.calc_bpt_out_given_exact_tokens_in(
            AMP, balanced(), [fp(3000), ZERO, ZERO], fp(3_000_000), fp("0.0004")
        )
        assert single_sided < proportional

    def test_token_in_given_exact_bpt_out(self) -> None:
        """Minting 0.1% of supply with one token costs about 0.1% of D plus fee."""
        amount_in = stable_math.calc_token_in_given_exact_bpt_out(
            AMP, balanced(), 0, fp(3000), fp(3_000_000), fp("0.0004")
        )
        assert fp(3000) < amount_in < fp(3002)

    def test_token_out_given_exact_lbpt_in(self) -> None:
        """Burning 0.1% of supply for one token returns about 0.1% of D minus fee."""
        amount_out = stable_math.calc_token_out_given_exact_lbpt_in(
            AMP, balanced(), 1, fp(3000), fp(3_000_000), fp("0.0004")
        )
        assert fp(2998) < amount_out < fp(3000)

    def test_proportional_exit(self) -> None:
        """Burning 1% of supply returns 1% of every balance."""
        amounts = stable_math.calc_tokens_out_given_exact_lbpt_in(balanced(), fp(30_000), fp(3_000_000))
        assert amounts == [fp(10_000)] * 3

    def test_lbpt_in_given_exact_tokens_out(self) -> None:
        """Withdrawing 0.1% of every balance burns at least 0.1% of supply."""
        lbpt_in = stable_math.calc_lbpt_in_given_exact_tokens_out(
            AMP, balanced(), [fp(1000)] * 3, fp(3_000_000), fp("0.0004")
        )
        assert fp(3000) <= lbpt_in < fp("3000.01")

