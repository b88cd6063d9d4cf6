"""Tests for StablePool."""

import dataclasses
from decimal import Decimal

import pytest

from lyfebloc_pools.pools import (
    InvalidAmplificationError,
    MaxAmpError,
    MaxTokensError,
    MinAmpError,
    MinTokensError,
    StablePool,
    ZeroBalanceError,
)
from tests.helpers import make_stable_pool


class TestValidation:
    """Tests for pool construction."""

    def test_amplification(self, stable_pool: StablePool) -> None:
        """A is stored unscaled, the math works with A * 1000."""
        assert stable_pool.get_amplification_parameter() == 200
        assert stable_pool.amp == 200_000

    def test_amp_recomputed_on_copy(self, stable_pool: StablePool) -> None:
        copy = dataclasses.replace(stable_pool, amplification_parameter=100)
        assert copy.amp == 100_000

    def test_amp_bounds(self) -> None:
        with pytest.raises(MinAmpError):
            make_stable_pool(amplification_parameter=0)
        with pytest.raises(MaxAmpError):
            make_stable_pool(amplification_parameter=5001)

    def test_amp_must_be_integral(self) -> None:
        with pytest.raises(InvalidAmplificationError):
            make_stable_pool(amplification_parameter=Decimal("1.5"))  # type: ignore[arg-type]

    def test_token_count(self) -> None:
        with pytest.raises(MinTokensError):
            make_stable_pool(symbols=("DAI",), balances=("1000",), decimals=(18,))
        symbols = tuple(f"S{i}" for i in range(6))
        with pytest.raises(MaxTokensError):
            make_stable_pool(symbols=symbols, balances=("1000",) * 6, decimals=(18,) * 6)


class TestSwaps:
    """Tests for stable swaps across decimals."""

    def test_swap_given_in(self, stable_pool: StablePool) -> None:
        """1000 DAI buys just under 999.6 USDC after the 0.04% fee."""
        amount_out = stable_pool.swap_given_in("DAI", "USDC", "1000")
        # USDC has 6 decimals, the scaled 999.595028874729622702 is truncated
        assert amount_out == Decimal("999.595028")

    def test_swap_round_trip(self, stable_pool: StablePool) -> None:
        """Buying back the truncated USDC costs less than one USDC unit below the input."""
        amount_out = stable_pool.swap_given_in("DAI", "USDC", "1000")
        amount_in = stable_pool.swap_given_out("DAI", "USDC", amount_out)
        assert amount_in == Decimal("999.999999124911641053")
        assert Decimal(1000) - amount_in < Decimal("0.000001")

    def test_apply_swap(self, stable_pool: StablePool) -> None:
        applied = stable_pool.apply_swap_given_in("USDC", "USDT", "500")
        assert applied.pool.get_token("USDC").balance == Decimal(1_000_500)
        assert applied.pool.get_token("USDT").balance == Decimal(1_000_000) - applied.result
        assert applied.pool.get_invariant() >= stable_pool.get_invariant()

    def test_drain_balance(self, stable_pool: StablePool) -> None:
        with pytest.raises(ZeroBalanceError):
            stable_pool.swap_given_out("DAI", "USDC", "1000000")


class TestJoinsAndExits:
    """Tests for joins and exits."""

    def test_proportional_join(self, stable_pool: StablePool) -> None:
        bpt_out = stable_pool.join_exact_tokens_in_for_bpt_out({"DAI": "1000", "USDC": "1000", "USDT": "1000"})
        assert Decimal("2999.99") < bpt_out <= Decimal(3000)

    def test_single_sided_join_mints_fewer(self, stable_pool: StablePool) -> None:
        proportional = stable_pool.join_exact_tokens_in_for_bpt_out({"DAI": "1000", "USDC": "1000", "USDT": "1000"})
        single_sided = stable_pool.join_exact_tokens_in_for_bpt_out({"DAI": "3000", "USDC": "0", "USDT": "0"})
        assert single_sided < proportional

    def test_token_in_for_exact_bpt_out(self, stable_pool: StablePool) -> None:
        amount_in = stable_pool.join_token_in_for_exact_bpt_out("DAI", "3000")
        assert Decimal(3000) < amount_in < Decimal(3002)

    def test_token_out(self, stable_pool: StablePool) -> None:
        amount_out = stable_pool.exit_exact_lbpt_in_for_token_out("USDC", "3000")
        assert Decimal(2998) < amount_out < Decimal(3000)

    def test_proportional_exit(self, stable_pool: StablePool) -> None:
        amounts = stable_pool.exit_exact_lbpt_in_for_tokens_out("30000")
        assert amounts == {"DAI": Decimal(10000), "USDC": Decimal(10000), "USDT": Decimal(10000)}

    def test_exact_tokens_out(self, stable_pool: StablePool) -> None:
        lbpt_in = stable_pool.exit_lbpt_in_for_exact_tokens_out({"DAI": "1000", "USDC": "1000", "USDT": "1000"})
        assert Decimal(3000) <= lbpt_in < Decimal("3000.01")

    def test_apply_exit(self, stable_pool: StablePool) -> None:
        applied = stable_pool.apply_exit_exact_lbpt_in_for_token_out("USDC", "3000")
        assert applied.pool.lbpt_total_supply == Decimal(2_997_000)
        assert applied.pool.get_token("USDC").balance == Decimal(1_000_000) - applied.result
        assert applied.pool.amp == stable_pool.amp
