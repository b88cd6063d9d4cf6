"""Weighted pool.

Constant weighted product pool with 2 to 8 tokens whose normalized weights
sum to exactly one.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

import structlog

from lyfebloc_pools.math.decimal_utils import decimal_eq, decimal_sum
from lyfebloc_pools.math.fixed_point import FixedPoint

from . import weighted_math
from .base import LiquidityPool, Transition, WeightedToken
from .errors import MinWeightError, NormalizedWeightInvariantError

logger = structlog.get_logger()


@dataclass(frozen=True, kw_only=True)
class WeightedPool(LiquidityPool):
    """Weighted pool over WeightedToken values.

    Raises:
        MinTokensError: If the pool has fewer than 2 tokens
        MaxTokensError: If the pool has more than 8 tokens
        MinWeightError: If a weight is below 0.01
        NormalizedWeightInvariantError: If weights do not sum to exactly 1
    """

    tokens: tuple[WeightedToken, ...]

    def __post_init__(self) -> None:
        super().__post_init__()
        self._validate_token_count(self.limits.weighted_min_tokens, self.limits.weighted_max_tokens)

        for token in self.tokens:
            if token.weight < self.limits.min_weight:
                logger.debug("weighted_pool_weight_too_low", pool_id=self.id, token=token.symbol)
                raise MinWeightError(f"Weight of {token.symbol} is {token.weight}, minimum is {self.limits.min_weight}")

        total_weight = decimal_sum([token.weight for token in self.tokens])
        if not decimal_eq(total_weight, Decimal(1)):
            logger.debug("weighted_pool_weights_not_normalized", pool_id=self.id, total_weight=str(total_weight))
            raise NormalizedWeightInvariantError(f"Weights of pool {self.id} sum to {total_weight}, not 1")

    @property
    def normalized_weights(self) -> list[FixedPoint]:
        return [FixedPoint.from_decimal(token.weight) for token in self.tokens]

    def get_invariant(self) -> FixedPoint:
        """Current invariant, 18-decimal fixed point."""
        return weighted_math.calculate_invariant(self.normalized_weights, self.scaled_balances)

    # -------------------------------------------------------------------------
    # Swaps
    # -------------------------------------------------------------------------

    def _swap_given_in(self, token_in: str, token_out: str, amount_in: Decimal) -> Transition[Decimal]:
        index_in, index_out = self._swap_indices(token_in, token_out)
        t_in = self.tokens[index_in]
        t_out = self.tokens[index_out]

        scaled_amount_out = weighted_math.calc_out_given_in(
            t_in.scaled_balance,
            FixedPoint.from_decimal(t_in.weight),
            t_out.scaled_balance,
            FixedPoint.from_decimal(t_out.weight),
            t_in.upscale(amount_in),
            fee=self._swap_fee_params(t_in),
        )
        amount_out = t_out.downscale_down(scaled_amount_out)

        logger.debug(
            "weighted_swap_given_in",
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

        scaled_amount_in = weighted_math.calc_in_given_out(
            t_in.scaled_balance,
            FixedPoint.from_decimal(t_in.weight),
            t_out.scaled_balance,
            FixedPoint.from_decimal(t_out.weight),
            t_out.upscale(amount_out),
            fee=self._swap_fee_params(t_in),
        )
        amount_in = t_in.downscale_up(scaled_amount_in)

        logger.debug(
            "weighted_swap_given_out",
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
        return weighted_math.calc_bpt_out_given_exact_tokens_in(
            self.scaled_balances,
            self.normalized_weights,
            amounts_in,
            self.scaled_lbpt_total_supply,
            self.scaled_swap_fee_percentage,
        )

    def _calc_token_in_given_exact_bpt_out(self, token_index: int, bpt_out: FixedPoint) -> FixedPoint:
        return weighted_math.calc_token_in_given_exact_bpt_out(
            self.tokens[token_index].scaled_balance,
            self.normalized_weights[token_index],
            bpt_out,
            self.scaled_lbpt_total_supply,
            self.scaled_swap_fee_percentage,
        )

    def _calc_token_out_given_exact_lbpt_in(self, token_index: int, lbpt_in: FixedPoint) -> FixedPoint:
        return weighted_math.calc_token_out_given_exact_lbpt_in(
            self.tokens[token_index].scaled_balance,
            self.normalized_weights[token_index],
            lbpt_in,
            self.scaled_lbpt_total_supply,
            self.scaled_swap_fee_percentage,
        )

    def _calc_tokens_out_given_exact_lbpt_in(self, lbpt_in: FixedPoint) -> list[FixedPoint]:
        return weighted_math.calc_tokens_out_given_exact_lbpt_in(
            self.scaled_balances, lbpt_in, self.scaled_lbpt_total_supply
        )

    def _calc_lbpt_in_given_exact_tokens_out(self, amounts_out: list[FixedPoint]) -> FixedPoint:
        return weighted_math.calc_lbpt_in_given_exact_tokens_out(
            self.scaled_balances,
            self.normalized_weights,
            amounts_out,
            self.scaled_lbpt_total_supply,
            self.scaled_swap_fee_percentage,
        )
