"""Pydantic models for pool join and exit intents.

An intent is the typed request a user submits to join or exit a pool. Each
carries the integer kind tag the pool contract dispatches on; an external
encoder serializes ``abi_values()`` against ``abi_types``. Amounts are raw
integers: native units for tokens, 18-decimal fixed point for pool shares.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from decimal import Decimal
from enum import IntEnum
from typing import TYPE_CHECKING, Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, Discriminator, Field, Tag

from lyfebloc_pools.math.decimal_utils import to_fixed
from lyfebloc_pools.models.types import Uint256

if TYPE_CHECKING:
    from lyfebloc_pools.pools.base import LiquidityPool

# Pool shares always have 18 decimals
_SHARE_DECIMALS = 18


class JoinKind(IntEnum):
    """Join kind tags as the pool contract numbers them."""

    EXACT_TOKENS_IN_FOR_BPT_OUT = 1
    TOKEN_IN_FOR_EXACT_BPT_OUT = 2


class ExitKind(IntEnum):
    """Exit kind tags as the pool contract numbers them."""

    EXACT_LBPT_IN_FOR_ONE_TOKEN_OUT = 0
    EXACT_LBPT_IN_FOR_TOKENS_OUT = 1
    LBPT_IN_FOR_EXACT_TOKENS_OUT = 2


class _Intent(BaseModel, ABC):
    model_config = {"populate_by_name": True, "frozen": True}

    abi_types: ClassVar[tuple[str, ...]]

    @abstractmethod
    def abi_values(self) -> list[Any]:
        """Values to encode against abi_types, kind tag first."""
        ...


class ExactTokensInForBptOut(_Intent):
    """Deposit exact token amounts, require at least minimum_bpt shares."""

    abi_types: ClassVar[tuple[str, ...]] = ("uint256", "uint256[]", "uint256")

    kind: Literal["exact_tokens_in_for_bpt_out"] = "exact_tokens_in_for_bpt_out"
    amounts_in: list[Uint256] = Field(alias="amountsIn", description="Raw amounts in pool token order")
    minimum_bpt: Uint256 = Field(alias="minimumBPT")

    @property
    def tag(self) -> JoinKind:
        return JoinKind.EXACT_TOKENS_IN_FOR_BPT_OUT

    def abi_values(self) -> list[Any]:
        return [int(self.tag), list(self.amounts_in), self.minimum_bpt]


class TokenInForExactBptOut(_Intent):
    """Deposit a single token for an exact amount of shares."""

    abi_types: ClassVar[tuple[str, ...]] = ("uint256", "uint256", "uint256")

    kind: Literal["token_in_for_exact_bpt_out"] = "token_in_for_exact_bpt_out"
    bpt_out: Uint256 = Field(alias="bptAmountOut")
    token_in_index: int = Field(alias="enterTokenIndex", ge=0)

    @property
    def tag(self) -> JoinKind:
        return JoinKind.TOKEN_IN_FOR_EXACT_BPT_OUT

    def abi_values(self) -> list[Any]:
        return [int(self.tag), self.bpt_out, self.token_in_index]


class ExactLbptInForTokenOut(_Intent):
    """Burn an exact amount of shares for a single token."""

    abi_types: ClassVar[tuple[str, ...]] = ("uint256", "uint256", "uint256")

    kind: Literal["exact_lbpt_in_for_token_out"] = "exact_lbpt_in_for_token_out"
    lbpt_in: Uint256 = Field(alias="bptAmountIn")
    token_out_index: int = Field(alias="exitTokenIndex", ge=0)

    @property
    def tag(self) -> ExitKind:
        return ExitKind.EXACT_LBPT_IN_FOR_ONE_TOKEN_OUT

    def abi_values(self) -> list[Any]:
        return [int(self.tag), self.lbpt_in, self.token_out_index]


class ExactLbptInForTokensOut(_Intent):
    """Burn an exact amount of shares for every token proportionally."""

    abi_types: ClassVar[tuple[str, ...]] = ("uint256", "uint256")

    kind: Literal["exact_lbpt_in_for_tokens_out"] = "exact_lbpt_in_for_tokens_out"
    lbpt_in: Uint256 = Field(alias="bptAmountIn")

    @property
    def tag(self) -> ExitKind:
        return ExitKind.EXACT_LBPT_IN_FOR_TOKENS_OUT

    def abi_values(self) -> list[Any]:
        return [int(self.tag), self.lbpt_in]


class LbptInForExactTokensOut(_Intent):
    """Withdraw exact token amounts, burning at most maximum_bpt shares."""

    abi_types: ClassVar[tuple[str, ...]] = ("uint256", "uint256[]", "uint256")

    kind: Literal["lbpt_in_for_exact_tokens_out"] = "lbpt_in_for_exact_tokens_out"
    amounts_out: list[Uint256] = Field(alias="amountsOut", description="Raw amounts in pool token order")
    maximum_bpt: Uint256 = Field(alias="maxBPTAmountIn")

    @property
    def tag(self) -> ExitKind:
        return ExitKind.LBPT_IN_FOR_EXACT_TOKENS_OUT

    def abi_values(self) -> list[Any]:
        return [int(self.tag), list(self.amounts_out), self.maximum_bpt]


def _get_intent_kind(v: Any) -> str:
    """Discriminator function for the intent union types."""
    if isinstance(v, dict):
        return str(v.get("kind", ""))
    return str(v.kind)


JoinIntent = Annotated[
    Annotated[ExactTokensInForBptOut, Tag("exact_tokens_in_for_bpt_out")]
    | Annotated[TokenInForExactBptOut, Tag("token_in_for_exact_bpt_out")],
    Discriminator(_get_intent_kind),
]

ExitIntent = Annotated[
    Annotated[ExactLbptInForTokenOut, Tag("exact_lbpt_in_for_token_out")]
    | Annotated[ExactLbptInForTokensOut, Tag("exact_lbpt_in_for_tokens_out")]
    | Annotated[LbptInForExactTokensOut, Tag("lbpt_in_for_exact_tokens_out")],
    Discriminator(_get_intent_kind),
]


# -----------------------------------------------------------------------------
# Builders
# -----------------------------------------------------------------------------


def _raw_amounts(pool: LiquidityPool, amounts: Mapping[str, Decimal | str | int]) -> list[int]:
    native_amounts = pool._ordered_amounts(amounts)
    return [to_fixed(amount, token.decimals) for token, amount in zip(pool.tokens, native_amounts, strict=True)]


def exact_tokens_in_for_bpt_out(
    pool: LiquidityPool,
    amounts_in: Mapping[str, Decimal | str | int],
    minimum_bpt: Decimal | str | int = 0,
) -> ExactTokensInForBptOut:
    """Build a join intent depositing exact native amounts keyed by symbol.

    Raises:
        InvalidInputError: If the keys are not exactly the pool's symbols
        InvalidAmountError: If an amount is not representable in its token's decimals
    """
    return ExactTokensInForBptOut(
        amounts_in=_raw_amounts(pool, amounts_in),
        minimum_bpt=to_fixed(minimum_bpt, _SHARE_DECIMALS),
    )


def token_in_for_exact_bpt_out(
    pool: LiquidityPool, token_in: str, bpt_out: Decimal | str | int
) -> TokenInForExactBptOut:
    return TokenInForExactBptOut(
        bpt_out=to_fixed(bpt_out, _SHARE_DECIMALS),
        token_in_index=pool.index_of(token_in),
    )


def exact_lbpt_in_for_token_out(
    pool: LiquidityPool, token_out: str, lbpt_in: Decimal | str | int
) -> ExactLbptInForTokenOut:
    return ExactLbptInForTokenOut(
        lbpt_in=to_fixed(lbpt_in, _SHARE_DECIMALS),
        token_out_index=pool.index_of(token_out),
    )


def exact_lbpt_in_for_tokens_out(lbpt_in: Decimal | str | int) -> ExactLbptInForTokensOut:
    return ExactLbptInForTokensOut(lbpt_in=to_fixed(lbpt_in, _SHARE_DECIMALS))


def lbpt_in_for_exact_tokens_out(
    pool: LiquidityPool,
    amounts_out: Mapping[str, Decimal | str | int],
    maximum_bpt: Decimal | str | int,
) -> LbptInForExactTokensOut:
    """Build an exit intent withdrawing exact native amounts keyed by symbol.

    Raises:
        InvalidInputError: If the keys are not exactly the pool's symbols
        InvalidAmountError: If an amount is not representable in its token's decimals
    """
    return LbptInForExactTokensOut(
        amounts_out=_raw_amounts(pool, amounts_out),
        maximum_bpt=to_fixed(maximum_bpt, _SHARE_DECIMALS),
    )
