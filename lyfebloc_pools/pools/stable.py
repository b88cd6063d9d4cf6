"""Stable pool.

Amplified invariant pool for assets expected to trade near parity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

import structlog

from lyfebloc_pools.constants import AMP_PRECISION
from lyfebloc_pools.math.decimal_utils import to_decimal
from lyfebloc_pools.math.fixed_point import FixedPoint

from . import stable_math
from .base import LiquidityPool, Transition
from .errors import InvalidAmplificationError, MaxAmpError, MinAmpError

logger = structlog.get_logger()


@dataclass(frozen=True, kw_only=True)
class StablePool(LiquidityPool):
    """Stable pool with 2 to 5 tokens.

    Attributes:
        amplification_parameter: The unscaled A parameter (e.g., 200)
        amp: A multiplied by AMP_PRECISION, the value the math works with

    Raises:
        MinTokensError: If the pool has fewer than 2 tokens
        MaxTokensError: If the pool has more than 5 tokens
        MinAmpError: If A is below MIN_AMP
        MaxAmpError: If A is above MAX_AMP
        InvalidAmplificationError: If A is not an integer
    """

    amplification_parameter: int
    amp: int = field(init=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self._validate_token_count(self.limits.stable_min_tokens, self.limits.stable_max_tokens)

        amplification = to_decimal(self.amplification_parameter)
        if amplification != amplification.to_integral_value():
            raise InvalidAmplificationError(f"Amplification parameter must be an integer, got {amplification}")
        amplification_int = int(amplification)

        if amplification_int < self.limits.min_amp:
            logger.debug("stable_pool_amp_too_low", pool_id=self.id, amplification_parameter=amplification_int)
            raise MinAmpError(f"Amplification {amplification_int} below minimum {self.limits.min_amp}")
        if amplification_int > self.limits.max_amp:
            logger.debug("stable_pool_amp_too_high", pool_id=self.id, amplification_parameter=amplification_int)
            raise MaxAmpError(f"Amplification {amplification_int} above maximum {self.limits.max_amp}")

        object.__setattr__(self, "amplification_parameter", amplification_int)
        object.__setattr__(self, "amp", amplification_int * AMP_PRECISION)

    def get_amplification_parameter(self) -> int:
        """The configured A, with the precision divided back out."""
        return self.amp // AMP_PRECISION

    def get_invariant(self) -> FixedPoint:
        """Current invariant D, 18-decimal fixed point."""
        return stable_math.calculate_invariant(self.amp, self.scaled_balances)

    # -------------------------------------------------------------------------
    # Swaps
    # -------------------------------------------------------------------------

    def _swap_given_in(self, token_in: str, token_out: str, amount_in: Decimal) -> Transition[Decimal]:
        index_in, index_out = self._swap_indices(token_in, token_out)
        t_in = self.tokens[index_in]
        t_out = self.tokens[index_out]

        scaled_amount_out = stable_math.calc_out_given_in(
            self.amp,
            self.scaled_balances,
            index_in,
            index_out,
            t_in.upscale(amount_in),
            fee=self._swap_fee_params(t_in),
        )
        amount_out = t_out.downscale_down(scaled_amount_out)

        logger.debug(
            "stable_swap_given_in",
            pool_id=self.id,
            token_in=token_in,
            token_out=token_out,
            amount_in=str(amount_in),
            amount_out=str(amount_out),
        )
        return Transition(
            result=amount_out,
            balance_deltas=self._swap_transition(token_in, amount_in, token_out, amount_out),
        )

    def _swap_given_out(self, token_in: str, token_out: str, amount_out: Decimal) -> Transition[Decimal]:
        index_in, index_out = self._swap_indices(token_in, token_out)
        t_in = self.tokens[index_in]
        t_out = self.tokens[index_out]

        scaled_amount_in = stable_math.calc_in_given_out(
            self.amp,
            self.scaled_balances,
            index_in,
            index_out,
            t_out.upscale(amount_out),
            fee=self._swap_fee_params(t_in),
        )
        amount_in = t_in.downscale_up(scaled_amount_in)

        logger.debug(
            "stable_swap_given_out",
            pool_id=self.id,
            token_in=token_in,
            token_out=token_out,
            amount_out=str(amount_out),
            amount_in=str(amount_in),
        )
        return Transition(
            result=amount_in,
            balance_deltas=self._swap_transition(token_in, amount_in, token_out, amount_out),
        )

    # -------------------------------------------------------------------------
    # Join/exit math
    # -------------------------------------------------------------------------

    def _calc_bpt_out_given_exact_tokens_in(self, amounts_in: list[FixedPoint]) -> FixedPoint:
        return stable_math.calc_bpt_out_given_exact_tokens_in(
            self.amp,
            self.scaled_balances,
            amounts_in,
            self.scaled_lbpt_total_supply,
            self.scaled_swap_fee_percentage,
        )

    def _calc_token_in_given_exact_bpt_out(self, token_index: int, bpt_out: FixedPoint) -> FixedPoint:
        return stable_math.calc_token_in_given_exact_bpt_out(
            self.amp,
            self.scaled_balances,
            token_index,
            bpt_out,
            self.scaled_lbpt_total_supply,
            self.scaled_swap_fee_percentage,
        )

    def _calc_token_out_given_exact_lbpt_in(self, token_index: int, lbpt_in: FixedPoint) -> FixedPoint:
        return stable_math.calc_token_out_given_exact_lbpt_in(
            self.amp,
            self.scaled_balances,
            token_index,
            lbpt_in,
            self.scaled_lbpt_total_supply,
            self.scaled_swap_fee_percentage,
        )

    def _calc_tokens_out_given_exact_lbpt_in(self, lbpt_in: FixedPoint) -> list[FixedPoint]:
        return stable_math.calc_tokens_out_given_exact_lbpt_in(
            self.scaled_balances, lbpt_in, self.scaled_lbpt_total_supply
        )

    def _calc_lbpt_in_given_exact_tokens_out(self, amounts_out: list[FixedPoint]) -> FixedPoint:
        return stable_math.calc_lbpt_in_given_exact_tokens_out(
            self.amp,
            self.scaled_balances,
            amounts_out,
            self.scaled_lbpt_total_supply,
            self.scaled_swap_fee_percentage,
        )
