"""Linear pool.

Holds a main token and its wrapped (yield-bearing) counterpart. The pool
share (LBPT) is tradeable against both, so every action is a swap between
two of the three: main, wrapped and the share itself, addressed by
``lbpt_symbol``. Swaps involving the share mint or burn it.

The swap fee percentage doubles as the fee of the nominal curve outside
the target range; inside the range every conversion is fee-free.
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

import structlog

from lyfebloc_pools.constants import DEFAULT_LBPT_SYMBOL
from lyfebloc_pools.math.decimal_utils import from_fixed, to_decimal
from lyfebloc_pools.math.fixed_point import FixedPoint

from . import linear_math
from .base import LBPT_DECIMALS, Applied, BasePool, Token, Transition
from .errors import DuplicateTokenSymbolError, InvalidInputError, LowerGreaterThanUpperTargetError
from .linear_math import LinearParams

logger = structlog.get_logger()


class _Leg(enum.Enum):
    MAIN = "main"
    WRAPPED = "wrapped"
    LBPT = "lbpt"


# (leg in, leg out) -> curve; amounts given in
_GIVEN_IN: dict[tuple[_Leg, _Leg], Callable[..., FixedPoint]] = {
    (_Leg.MAIN, _Leg.LBPT): linear_math.calc_bpt_out_per_main_in,
    (_Leg.LBPT, _Leg.MAIN): linear_math.calc_main_out_per_lbpt_in,
    (_Leg.MAIN, _Leg.WRAPPED): linear_math.calc_wrapped_out_per_main_in,
    (_Leg.WRAPPED, _Leg.MAIN): linear_math.calc_main_out_per_wrapped_in,
    (_Leg.WRAPPED, _Leg.LBPT): linear_math.calc_bpt_out_per_wrapped_in,
    (_Leg.LBPT, _Leg.WRAPPED): linear_math.calc_wrapped_out_per_lbpt_in,
}

# (leg in, leg out) -> curve; amounts given out
_GIVEN_OUT: dict[tuple[_Leg, _Leg], Callable[..., FixedPoint]] = {
    (_Leg.MAIN, _Leg.LBPT): linear_math.calc_main_in_per_bpt_out,
    (_Leg.LBPT, _Leg.MAIN): linear_math.calc_lbpt_in_per_main_out,
    (_Leg.MAIN, _Leg.WRAPPED): linear_math.calc_main_in_per_wrapped_out,
    (_Leg.WRAPPED, _Leg.MAIN): linear_math.calc_wrapped_in_per_main_out,
    (_Leg.WRAPPED, _Leg.LBPT): linear_math.calc_wrapped_in_per_bpt_out,
    (_Leg.LBPT, _Leg.WRAPPED): linear_math.calc_lbpt_in_per_wrapped_out,
}

# Curves between main and wrapped only depend on the main balance
_MAIN_BALANCE_ONLY = {
    linear_math.calc_wrapped_out_per_main_in,
    linear_math.calc_main_out_per_wrapped_in,
    linear_math.calc_main_in_per_wrapped_out,
    linear_math.calc_wrapped_in_per_main_out,
}


@dataclass(frozen=True, kw_only=True)
class LinearPool(BasePool):
    """Linear pool over (main token, wrapped token).

    Attributes:
        lower_target: Lower bound of the fee-free main balance range (main native units)
        upper_target: Upper bound of the fee-free main balance range (main native units)
        lbpt_symbol: Symbol addressing the pool share in swaps

    Raises:
        InvalidInputError: If the pool does not hold exactly two tokens
        LowerGreaterThanUpperTargetError: If lower_target > upper_target
        DuplicateTokenSymbolError: If lbpt_symbol collides with a token symbol
    """

    lower_target: Decimal
    upper_target: Decimal
    lbpt_symbol: str = DEFAULT_LBPT_SYMBOL

    def __post_init__(self) -> None:
        super().__post_init__()
        if len(self.tokens) != 2:
            raise InvalidInputError(f"Linear pool needs a main and a wrapped token, got {len(self.tokens)} tokens")
        if self.lbpt_symbol in self.symbols:
            raise DuplicateTokenSymbolError(f"Pool share symbol {self.lbpt_symbol} is also a token symbol")

        lower = to_decimal(self.lower_target)
        upper = to_decimal(self.upper_target)
        if lower > upper:
            logger.debug("linear_pool_targets_inverted", pool_id=self.id, lower=str(lower), upper=str(upper))
            raise LowerGreaterThanUpperTargetError(f"Lower target {lower} above upper target {upper}")
        object.__setattr__(self, "lower_target", lower)
        object.__setattr__(self, "upper_target", upper)
        # Targets must be representable in the main token's decimals
        self.main_token.upscale(lower)
        self.main_token.upscale(upper)

    @property
    def main_token(self) -> Token:
        return self.tokens[0]

    @property
    def wrapped_token(self) -> Token:
        return self.tokens[1]

    @property
    def params(self) -> LinearParams:
        return LinearParams(
            fee=self.scaled_swap_fee_percentage,
            lower_target=self.main_token.upscale(self.lower_target),
            upper_target=self.main_token.upscale(self.upper_target),
        )

    def _leg(self, symbol: str) -> _Leg:
        if symbol == self.lbpt_symbol:
            return _Leg.LBPT
        if symbol == self.main_token.symbol:
            return _Leg.MAIN
        if symbol == self.wrapped_token.symbol:
            return _Leg.WRAPPED
        raise InvalidInputError(f"Token {symbol} not found in pool {self.id}")

    def _upscale(self, leg: _Leg, amount: Decimal) -> FixedPoint:
        if leg is _Leg.LBPT:
            return FixedPoint.from_decimal(amount)
        token = self.main_token if leg is _Leg.MAIN else self.wrapped_token
        return token.upscale(amount)

    def _downscale(self, leg: _Leg, amount: FixedPoint, round_up: bool) -> Decimal:
        if leg is _Leg.LBPT:
            return from_fixed(amount.value, LBPT_DECIMALS)
        token = self.main_token if leg is _Leg.MAIN else self.wrapped_token
        return token.downscale_up(amount) if round_up else token.downscale_down(amount)

    def _calc(self, curve: Callable[..., FixedPoint], amount: FixedPoint) -> FixedPoint:
        main_balance = self.main_token.scaled_balance
        if curve in _MAIN_BALANCE_ONLY:
            return curve(amount, main_balance, self.params)
        return curve(
            amount,
            main_balance,
            self.wrapped_token.scaled_balance,
            self.scaled_lbpt_total_supply,
            self.params,
        )

    def _legs(self, token_in: str, token_out: str) -> tuple[_Leg, _Leg]:
        if token_in == token_out:
            raise InvalidInputError(f"Cannot swap {token_in} for itself")
        return self._leg(token_in), self._leg(token_out)

    def _linear_transition(
        self, token_in: str, amount_in: Decimal, token_out: str, amount_out: Decimal, result: Decimal
    ) -> Transition[Decimal]:
        # A swap has at most one share leg; the share leg moves the supply
        balance_deltas: dict[str, Decimal] = {}
        supply_delta = Decimal(0)
        if token_in == self.lbpt_symbol:
            supply_delta = amount_in.copy_negate()
        else:
            balance_deltas[token_in] = amount_in
        if token_out == self.lbpt_symbol:
            supply_delta = amount_out
        else:
            balance_deltas[token_out] = amount_out.copy_negate()
        return Transition(result=result, balance_deltas=balance_deltas, supply_delta=supply_delta)

    # -------------------------------------------------------------------------
    # Swaps
    # -------------------------------------------------------------------------

    def _swap_given_in(self, token_in: str, token_out: str, amount_in: Decimal) -> Transition[Decimal]:
        leg_in, leg_out = self._legs(token_in, token_out)
        if leg_in is _Leg.LBPT:
            self._validate_lbpt_in(amount_in)

        scaled_amount_out = self._calc(_GIVEN_IN[(leg_in, leg_out)], self._upscale(leg_in, amount_in))
        amount_out = self._downscale(leg_out, scaled_amount_out, round_up=False)

        logger.debug(
            "linear_swap_given_in",
            pool_id=self.id,
            token_in=token_in,
            token_out=token_out,
            amount_in=str(amount_in),
            amount_out=str(amount_out),
        )
        return self._linear_transition(token_in, amount_in, token_out, amount_out, result=amount_out)

    def _swap_given_out(self, token_in: str, token_out: str, amount_out: Decimal) -> Transition[Decimal]:
        leg_in, leg_out = self._legs(token_in, token_out)

        scaled_amount_in = self._calc(_GIVEN_OUT[(leg_in, leg_out)], self._upscale(leg_out, amount_out))
        amount_in = self._downscale(leg_in, scaled_amount_in, round_up=True)
        if leg_in is _Leg.LBPT:
            self._validate_lbpt_in(amount_in)

        logger.debug(
            "linear_swap_given_out",
            pool_id=self.id,
            token_in=token_in,
            token_out=token_out,
            amount_out=str(amount_out),
            amount_in=str(amount_in),
        )
        return self._linear_transition(token_in, amount_in, token_out, amount_out, result=amount_in)

    # -------------------------------------------------------------------------
    # Proportional exit
    # -------------------------------------------------------------------------

    def exit_exact_lbpt_in_for_tokens_out(self, lbpt_in: Decimal | str | int) -> dict[str, Decimal]:
        """Main and wrapped amounts received for burning lbpt_in shares proportionally."""
        return self._exit_exact_lbpt_in_for_tokens_out(to_decimal(lbpt_in)).result

    def apply_exit_exact_lbpt_in_for_tokens_out(
        self, lbpt_in: Decimal | str | int
    ) -> Applied[dict[str, Decimal]]:
        return self._apply(self._exit_exact_lbpt_in_for_tokens_out(to_decimal(lbpt_in)))

    def _exit_exact_lbpt_in_for_tokens_out(self, lbpt_in: Decimal) -> Transition[dict[str, Decimal]]:
        self._validate_lbpt_in(lbpt_in)

        # The share is registered after the two tokens
        lbpt_index = len(self.tokens)
        balances = [*self.scaled_balances, FixedPoint(0)]
        scaled_amounts = linear_math.calc_tokens_out_given_exact_lbpt_in(
            balances, FixedPoint.from_decimal(lbpt_in), self.scaled_lbpt_total_supply, lbpt_index
        )
        amounts_out = {
            token.symbol: token.downscale_down(amount)
            for token, amount in zip(self.tokens, scaled_amounts[:lbpt_index], strict=True)
        }

        logger.debug(
            "linear_exit_exact_lbpt_in_for_tokens_out",
            pool_id=self.id,
            lbpt_in=str(lbpt_in),
            amounts_out={symbol: str(amount) for symbol, amount in amounts_out.items()},
        )
        return Transition(
            result=amounts_out,
            balance_deltas={symbol: amount.copy_negate() for symbol, amount in amounts_out.items()},
            supply_delta=lbpt_in.copy_negate(),
        )
