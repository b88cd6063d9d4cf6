"""Pool and token dataclasses shared by every pool type.

Pools are immutable values. Each public action comes as a pair:

- ``pool.swap_given_in(...)`` returns the quoted amount and nothing else;
- ``pool.apply_swap_given_in(...)`` returns ``Applied(result, pool)`` where
  ``pool`` is a new value with the balances and share supply the action
  leaves behind.

Both run the same private ``_swap_given_in`` which produces a
``Transition``: the result plus the per-token balance deltas. Validation and
computation finish before a new pool is built, so applying is all or nothing.
"""

from __future__ import annotations

import dataclasses
import decimal
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Generic, TypeVar

import structlog

from lyfebloc_pools.config import DEFAULT_POOL_LIMITS, PoolLimits
from lyfebloc_pools.math.decimal_utils import DECIMAL_HIGH_PREC_CONTEXT, from_fixed, to_decimal, to_fixed
from lyfebloc_pools.math.fixed_point import FixedPoint

from .errors import (
    DuplicateTokenSymbolError,
    InvalidInputError,
    LbptInExceedsTotalSupplyError,
    MaxSwapFeePercentageError,
    MaxTokensError,
    MinSwapFeePercentageError,
    MinTokensError,
    NegativeBalanceError,
)
from .scaling import SwapFeeParams, downscale_down, downscale_up, get_scaling_factor, upscale

logger = structlog.get_logger()

R = TypeVar("R")

# Pool shares always have 18 decimals
LBPT_DECIMALS = 18


@dataclass(frozen=True)
class Token:
    """A token held by a pool.

    Attributes:
        address: Token contract address
        symbol: Token symbol, unique within the pool
        balance: Pool balance in the token's native precision
        decimals: Token decimals, between 0 and 18
    """

    address: str
    symbol: str
    balance: Decimal
    decimals: int

    def __post_init__(self) -> None:
        if not 0 <= self.decimals <= 18:
            raise InvalidInputError(f"Token {self.symbol} decimals must be in [0, 18], got {self.decimals}")
        balance = to_decimal(self.balance)
        # Rejects negative and unrepresentable balances
        to_fixed(balance, self.decimals)
        object.__setattr__(self, "balance", balance)

    @property
    def scaling_factor(self) -> FixedPoint:
        return get_scaling_factor(self.decimals)

    def upscale(self, amount: Decimal | str | int) -> FixedPoint:
        """Native amount to 18-decimal fixed point, exact."""
        return upscale(to_fixed(amount, self.decimals), self.scaling_factor)

    def downscale_down(self, amount: FixedPoint) -> Decimal:
        """18-decimal amount to native precision, truncating. For amounts paid out."""
        return from_fixed(downscale_down(amount, self.scaling_factor), self.decimals)

    def downscale_up(self, amount: FixedPoint) -> Decimal:
        """18-decimal amount to native precision, rounding up. For amounts paid in."""
        return from_fixed(downscale_up(amount, self.scaling_factor), self.decimals)

    @property
    def scaled_balance(self) -> FixedPoint:
        return self.upscale(self.balance)


@dataclass(frozen=True)
class WeightedToken(Token):
    """Token of a weighted pool, with its normalized weight."""

    weight: Decimal

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "weight", to_decimal(self.weight))


@dataclass(frozen=True)
class RateToken(Token):
    """Token whose value in terms of a reference asset is rate (wrapped tokens).

    The rate is folded into the scaling factor, so upscaled amounts are
    expressed in the reference asset.
    """

    rate: Decimal = Decimal(1)

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "rate", to_decimal(self.rate))

    @property
    def scaling_factor(self) -> FixedPoint:
        return get_scaling_factor(self.decimals, self.rate)


@dataclass(frozen=True)
class Transition(Generic[R]):
    """Result of an action plus the state change it implies.

    Attributes:
        result: What the action returns to the caller
        balance_deltas: Signed native-unit balance change per token symbol
        supply_delta: Signed change of the pool share supply
    """

    result: R
    balance_deltas: Mapping[str, Decimal] = field(default_factory=dict)
    supply_delta: Decimal = Decimal(0)


@dataclass(frozen=True)
class Applied(Generic[R]):
    """Result of an applied action and the pool it leaves behind."""

    result: R
    pool: BasePool


@dataclass(frozen=True, kw_only=True)
class BasePool(ABC):
    """Fields and plumbing shared by every pool type.

    Attributes:
        id: Pool identifier
        address: Pool contract address
        lbpt_total_supply: Total supply of pool shares (18 decimals)
        swap_fee_percentage: Swap fee as decimal (e.g., 0.003 for 0.3%)
        tokens: Pool tokens, in registration order
        limits: Deployment limits validated at construction
    """

    id: str
    address: str
    lbpt_total_supply: Decimal
    swap_fee_percentage: Decimal
    tokens: tuple[Token, ...]
    limits: PoolLimits = field(default=DEFAULT_POOL_LIMITS, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tokens", tuple(self.tokens))
        supply = to_decimal(self.lbpt_total_supply)
        to_fixed(supply, LBPT_DECIMALS)
        object.__setattr__(self, "lbpt_total_supply", supply)

        fee = to_decimal(self.swap_fee_percentage)
        self._validate_swap_fee_percentage(fee)
        object.__setattr__(self, "swap_fee_percentage", fee)

        symbols = [token.symbol for token in self.tokens]
        if len(set(symbols)) != len(symbols):
            logger.debug("pool_duplicate_token_symbols", pool_id=self.id, symbols=symbols)
            raise DuplicateTokenSymbolError(f"Pool {self.id} has duplicate token symbols: {symbols}")

    def _validate_swap_fee_percentage(self, fee: Decimal) -> None:
        if fee < self.limits.min_swap_fee_percentage:
            logger.debug("pool_swap_fee_too_low", pool_id=self.id, swap_fee_percentage=str(fee))
            raise MinSwapFeePercentageError(
                f"Swap fee {fee} below minimum {self.limits.min_swap_fee_percentage}"
            )
        if fee > self.limits.max_swap_fee_percentage:
            logger.debug("pool_swap_fee_too_high", pool_id=self.id, swap_fee_percentage=str(fee))
            raise MaxSwapFeePercentageError(
                f"Swap fee {fee} above maximum {self.limits.max_swap_fee_percentage}"
            )

    def _validate_token_count(self, min_tokens: int, max_tokens: int) -> None:
        if len(self.tokens) < min_tokens:
            raise MinTokensError(f"Pool {self.id} needs at least {min_tokens} tokens, got {len(self.tokens)}")
        if len(self.tokens) > max_tokens:
            raise MaxTokensError(f"Pool {self.id} allows at most {max_tokens} tokens, got {len(self.tokens)}")

    def with_swap_fee_percentage(self, swap_fee_percentage: Decimal | str) -> BasePool:
        """Return a copy of the pool with a new swap fee.

        Raises:
            MinSwapFeePercentageError: If the fee is below the minimum
            MaxSwapFeePercentageError: If the fee is above the maximum
        """
        return dataclasses.replace(self, swap_fee_percentage=to_decimal(swap_fee_percentage))

    # -------------------------------------------------------------------------
    # Lookup and scaling
    # -------------------------------------------------------------------------

    @property
    def symbols(self) -> tuple[str, ...]:
        return tuple(token.symbol for token in self.tokens)

    def get_token(self, symbol: str) -> Token:
        """Get a token by symbol.

        Raises:
            InvalidInputError: If no token has that symbol
        """
        for token in self.tokens:
            if token.symbol == symbol:
                return token
        raise InvalidInputError(f"Token {symbol} not found in pool {self.id}")

    def index_of(self, symbol: str) -> int:
        for i, token in enumerate(self.tokens):
            if token.symbol == symbol:
                return i
        raise InvalidInputError(f"Token {symbol} not found in pool {self.id}")

    def _swap_indices(self, token_in: str, token_out: str) -> tuple[int, int]:
        if token_in == token_out:
            raise InvalidInputError(f"Cannot swap {token_in} for itself")
        return self.index_of(token_in), self.index_of(token_out)

    def _ordered_amounts(self, amounts: Mapping[str, Decimal | str | int]) -> list[Decimal]:
        """Amounts of a symbol-keyed map in pool token order.

        Raises:
            InvalidInputError: If the keys are not exactly the pool's symbols
        """
        if set(amounts) != set(self.symbols) or len(amounts) != len(self.tokens):
            logger.debug(
                "pool_amounts_mismatch",
                pool_id=self.id,
                expected=list(self.symbols),
                got=list(amounts),
            )
            raise InvalidInputError(
                f"Amounts must cover exactly the tokens {list(self.symbols)}, got {list(amounts)}"
            )
        return [to_decimal(amounts[symbol]) for symbol in self.symbols]

    @property
    def scaled_balances(self) -> list[FixedPoint]:
        return [token.scaled_balance for token in self.tokens]

    @property
    def scaled_swap_fee_percentage(self) -> FixedPoint:
        return FixedPoint.from_decimal(self.swap_fee_percentage)

    @property
    def scaled_lbpt_total_supply(self) -> FixedPoint:
        return FixedPoint.from_decimal(self.lbpt_total_supply)

    def _swap_fee_params(self, token_in: Token) -> SwapFeeParams:
        return SwapFeeParams(
            swap_fee_percentage=self.scaled_swap_fee_percentage,
            token_in_scaling_factor=token_in.scaling_factor,
        )

    def _validate_lbpt_in(self, lbpt_in: Decimal) -> None:
        if lbpt_in > self.lbpt_total_supply:
            logger.debug(
                "pool_lbpt_in_exceeds_supply",
                pool_id=self.id,
                lbpt_in=str(lbpt_in),
                lbpt_total_supply=str(self.lbpt_total_supply),
            )
            raise LbptInExceedsTotalSupplyError(
                f"LBPT in {lbpt_in} exceeds total supply {self.lbpt_total_supply}"
            )

    # -------------------------------------------------------------------------
    # Applying transitions
    # -------------------------------------------------------------------------

    def _apply(self, transition: Transition[R]) -> Applied[R]:
        """Build the pool a transition leaves behind.

        Raises:
            NegativeBalanceError: If a balance or the supply would go negative
            InvalidInputError: If a delta names a token not in the pool
        """
        unknown = set(transition.balance_deltas) - set(self.symbols)
        if unknown:
            raise InvalidInputError(f"Unknown tokens in transition: {sorted(unknown)}")

        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            new_tokens = []
            for token in self.tokens:
                delta = transition.balance_deltas.get(token.symbol, Decimal(0))
                new_balance = token.balance + delta
                if new_balance < 0:
                    raise NegativeBalanceError(f"Balance of {token.symbol} would become {new_balance}")
                new_tokens.append(dataclasses.replace(token, balance=new_balance))

            new_supply = self.lbpt_total_supply + transition.supply_delta
            if new_supply < 0:
                raise NegativeBalanceError(f"LBPT total supply would become {new_supply}")

        pool = dataclasses.replace(self, tokens=tuple(new_tokens), lbpt_total_supply=new_supply)
        logger.debug(
            "pool_transition_applied",
            pool_id=self.id,
            balance_deltas={symbol: str(delta) for symbol, delta in transition.balance_deltas.items()},
            supply_delta=str(transition.supply_delta),
        )
        return Applied(result=transition.result, pool=pool)

    # -------------------------------------------------------------------------
    # Swaps
    # -------------------------------------------------------------------------

    def swap_given_in(self, token_in: str, token_out: str, amount_in: Decimal | str | int) -> Decimal:
        """Amount of token_out received for exactly amount_in of token_in."""
        return self._swap_given_in(token_in, token_out, to_decimal(amount_in)).result

    def apply_swap_given_in(
        self, token_in: str, token_out: str, amount_in: Decimal | str | int
    ) -> Applied[Decimal]:
        return self._apply(self._swap_given_in(token_in, token_out, to_decimal(amount_in)))

    def swap_given_out(self, token_in: str, token_out: str, amount_out: Decimal | str | int) -> Decimal:
        """Amount of token_in needed to receive exactly amount_out of token_out."""
        return self._swap_given_out(token_in, token_out, to_decimal(amount_out)).result

    def apply_swap_given_out(
        self, token_in: str, token_out: str, amount_out: Decimal | str | int
    ) -> Applied[Decimal]:
        return self._apply(self._swap_given_out(token_in, token_out, to_decimal(amount_out)))

    @abstractmethod
    def _swap_given_in(self, token_in: str, token_out: str, amount_in: Decimal) -> Transition[Decimal]:
        """Quote an exact-input swap in native units."""
        ...

    @abstractmethod
    def _swap_given_out(self, token_in: str, token_out: str, amount_out: Decimal) -> Transition[Decimal]:
        """Quote an exact-output swap in native units."""
        ...

    @staticmethod
    def _swap_transition(
        token_in: str, amount_in: Decimal, token_out: str, amount_out: Decimal
    ) -> dict[str, Decimal]:
        return {token_in: amount_in, token_out: amount_out.copy_negate()}


@dataclass(frozen=True, kw_only=True)
class LiquidityPool(BasePool):
    """Pool whose shares are minted and burned through joins and exits.

    Subclasses provide the math through the ``_calc_*`` hooks, which work on
    upscaled balances in pool token order.
    """

    # -------------------------------------------------------------------------
    # Math hooks
    # -------------------------------------------------------------------------

    @abstractmethod
    def _calc_bpt_out_given_exact_tokens_in(self, amounts_in: list[FixedPoint]) -> FixedPoint:
        """Shares minted for upscaled amounts_in."""
        ...

    @abstractmethod
    def _calc_token_in_given_exact_bpt_out(self, token_index: int, bpt_out: FixedPoint) -> FixedPoint:
        ...

    @abstractmethod
    def _calc_token_out_given_exact_lbpt_in(self, token_index: int, lbpt_in: FixedPoint) -> FixedPoint:
        ...

    @abstractmethod
    def _calc_tokens_out_given_exact_lbpt_in(self, lbpt_in: FixedPoint) -> list[FixedPoint]:
        """Proportional exit amounts in pool token order."""
        ...

    @abstractmethod
    def _calc_lbpt_in_given_exact_tokens_out(self, amounts_out: list[FixedPoint]) -> FixedPoint:
        ...

    # -------------------------------------------------------------------------
    # Joins
    # -------------------------------------------------------------------------

    def join_exact_tokens_in_for_bpt_out(self, amounts_in: Mapping[str, Decimal | str | int]) -> Decimal:
        """Pool shares minted for depositing exactly amounts_in (keyed by symbol)."""
        return self._join_exact_tokens_in_for_bpt_out(amounts_in).result

    def apply_join_exact_tokens_in_for_bpt_out(
        self, amounts_in: Mapping[str, Decimal | str | int]
    ) -> Applied[Decimal]:
        return self._apply(self._join_exact_tokens_in_for_bpt_out(amounts_in))

    def join_token_in_for_exact_bpt_out(self, token_in: str, bpt_out: Decimal | str | int) -> Decimal:
        """Amount of token_in to deposit for exactly bpt_out pool shares."""
        return self._join_token_in_for_exact_bpt_out(token_in, to_decimal(bpt_out)).result

    def apply_join_token_in_for_exact_bpt_out(
        self, token_in: str, bpt_out: Decimal | str | int
    ) -> Applied[Decimal]:
        return self._apply(self._join_token_in_for_exact_bpt_out(token_in, to_decimal(bpt_out)))

    def _join_exact_tokens_in_for_bpt_out(
        self, amounts_in: Mapping[str, Decimal | str | int]
    ) -> Transition[Decimal]:
        native_amounts = self._ordered_amounts(amounts_in)
        scaled_amounts = [token.upscale(amount) for token, amount in zip(self.tokens, native_amounts, strict=True)]

        bpt_out = from_fixed(self._calc_bpt_out_given_exact_tokens_in(scaled_amounts).value, LBPT_DECIMALS)

        logger.debug(
            "pool_join_exact_tokens_in_for_bpt_out",
            pool_id=self.id,
            amounts_in={symbol: str(amount) for symbol, amount in zip(self.symbols, native_amounts, strict=True)},
            bpt_out=str(bpt_out),
        )
        return Transition(
            result=bpt_out,
            balance_deltas=dict(zip(self.symbols, native_amounts, strict=True)),
            supply_delta=bpt_out,
        )

    def _join_token_in_for_exact_bpt_out(self, token_in: str, bpt_out: Decimal) -> Transition[Decimal]:
        token_index = self.index_of(token_in)
        token = self.tokens[token_index]
        scaled_bpt_out = FixedPoint.from_decimal(bpt_out)

        amount_in = token.downscale_up(self._calc_token_in_given_exact_bpt_out(token_index, scaled_bpt_out))

        logger.debug(
            "pool_join_token_in_for_exact_bpt_out",
            pool_id=self.id,
            token_in=token_in,
            bpt_out=str(bpt_out),
            amount_in=str(amount_in),
        )
        return Transition(result=amount_in, balance_deltas={token_in: amount_in}, supply_delta=bpt_out)

    # -------------------------------------------------------------------------
    # Exits
    # -------------------------------------------------------------------------

    def exit_exact_lbpt_in_for_token_out(self, token_out: str, lbpt_in: Decimal | str | int) -> Decimal:
        """Amount of token_out received for burning exactly lbpt_in pool shares."""
        return self._exit_exact_lbpt_in_for_token_out(token_out, to_decimal(lbpt_in)).result

    def apply_exit_exact_lbpt_in_for_token_out(
        self, token_out: str, lbpt_in: Decimal | str | int
    ) -> Applied[Decimal]:
        return self._apply(self._exit_exact_lbpt_in_for_token_out(token_out, to_decimal(lbpt_in)))

    def exit_exact_lbpt_in_for_tokens_out(self, lbpt_in: Decimal | str | int) -> dict[str, Decimal]:
        """Amounts of every token received for burning exactly lbpt_in pool shares."""
        return self._exit_exact_lbpt_in_for_tokens_out(to_decimal(lbpt_in)).result

    def apply_exit_exact_lbpt_in_for_tokens_out(
        self, lbpt_in: Decimal | str | int
    ) -> Applied[dict[str, Decimal]]:
        return self._apply(self._exit_exact_lbpt_in_for_tokens_out(to_decimal(lbpt_in)))

    def exit_lbpt_in_for_exact_tokens_out(self, amounts_out: Mapping[str, Decimal | str | int]) -> Decimal:
        """Pool shares burned for withdrawing exactly amounts_out (keyed by symbol)."""
        return self._exit_lbpt_in_for_exact_tokens_out(amounts_out).result

    def apply_exit_lbpt_in_for_exact_tokens_out(
        self, amounts_out: Mapping[str, Decimal | str | int]
    ) -> Applied[Decimal]:
        return self._apply(self._exit_lbpt_in_for_exact_tokens_out(amounts_out))

    def _exit_exact_lbpt_in_for_token_out(self, token_out: str, lbpt_in: Decimal) -> Transition[Decimal]:
        self._validate_lbpt_in(lbpt_in)
        token_index = self.index_of(token_out)
        token = self.tokens[token_index]
        scaled_lbpt_in = FixedPoint.from_decimal(lbpt_in)

        amount_out = token.downscale_down(self._calc_token_out_given_exact_lbpt_in(token_index, scaled_lbpt_in))

        logger.debug(
            "pool_exit_exact_lbpt_in_for_token_out",
            pool_id=self.id,
            token_out=token_out,
            lbpt_in=str(lbpt_in),
            amount_out=str(amount_out),
        )
        return Transition(
            result=amount_out,
            balance_deltas={token_out: amount_out.copy_negate()},
            supply_delta=lbpt_in.copy_negate(),
        )

    def _exit_exact_lbpt_in_for_tokens_out(self, lbpt_in: Decimal) -> Transition[dict[str, Decimal]]:
        self._validate_lbpt_in(lbpt_in)
        scaled_lbpt_in = FixedPoint.from_decimal(lbpt_in)

        scaled_amounts = self._calc_tokens_out_given_exact_lbpt_in(scaled_lbpt_in)
        amounts_out = {
            token.symbol: token.downscale_down(amount)
            for token, amount in zip(self.tokens, scaled_amounts, strict=True)
        }

        logger.debug(
            "pool_exit_exact_lbpt_in_for_tokens_out",
            pool_id=self.id,
            lbpt_in=str(lbpt_in),
            amounts_out={symbol: str(amount) for symbol, amount in amounts_out.items()},
        )
        return Transition(
            result=amounts_out,
            balance_deltas={symbol: amount.copy_negate() for symbol, amount in amounts_out.items()},
            supply_delta=lbpt_in.copy_negate(),
        )

    def _exit_lbpt_in_for_exact_tokens_out(
        self, amounts_out: Mapping[str, Decimal | str | int]
    ) -> Transition[Decimal]:
        native_amounts = self._ordered_amounts(amounts_out)
        scaled_amounts = [token.upscale(amount) for token, amount in zip(self.tokens, native_amounts, strict=True)]

        lbpt_in = from_fixed(self._calc_lbpt_in_given_exact_tokens_out(scaled_amounts).value, LBPT_DECIMALS)

        logger.debug(
            "pool_exit_lbpt_in_for_exact_tokens_out",
            pool_id=self.id,
            amounts_out={symbol: str(amount) for symbol, amount in zip(self.symbols, native_amounts, strict=True)},
            lbpt_in=str(lbpt_in),
        )
        return Transition(
            result=lbpt_in,
            balance_deltas={
                symbol: amount.copy_negate() for symbol, amount in zip(self.symbols, native_amounts, strict=True)
            },
            supply_delta=lbpt_in.copy_negate(),
        )
