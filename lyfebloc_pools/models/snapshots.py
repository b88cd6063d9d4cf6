"""Pydantic models for pool snapshots.

A snapshot is the pool state as an initializer reads it from the chain:
identifiers, share supply, swap fee, type-specific parameters and the token
list. Field aliases follow the camelCase of the on-chain tooling.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from lyfebloc_pools.constants import DEFAULT_LBPT_SYMBOL
from lyfebloc_pools.models.types import Address, DecimalAmount


class TokenSnapshot(BaseModel):
    """A pool token and its balance."""

    address: Address
    symbol: str = Field(min_length=1)
    balance: DecimalAmount = Field(description="Pool balance in native token precision")
    decimals: int = Field(ge=0, le=18)


class WeightedTokenSnapshot(TokenSnapshot):
    """A weighted pool token with its normalized weight."""

    weight: DecimalAmount = Field(description="Normalized weight, all weights sum to 1")


class PoolSnapshot(BaseModel):
    """Fields shared by all pool snapshots."""

    model_config = {"populate_by_name": True}

    id: str = Field(min_length=1, description="Pool identifier")
    address: Address
    lbpt_total_supply: DecimalAmount = Field(alias="lbptTotalSupply")
    swap_fee_percentage: DecimalAmount = Field(
        alias="swapFeePercentage",
        description="Swap fee as decimal, e.g. 0.003 for 0.3%",
    )


class WeightedPoolSnapshot(PoolSnapshot):
    """Snapshot of a weighted pool."""

    tokens: list[WeightedTokenSnapshot]


class StablePoolSnapshot(PoolSnapshot):
    """Snapshot of a stable pool."""

    amplification_parameter: DecimalAmount = Field(
        alias="amplificationParameter",
        description="Unscaled amplification parameter A",
    )
    tokens: list[TokenSnapshot]


class LinearPoolSnapshot(PoolSnapshot):
    """Snapshot of a linear pool."""

    main_token: TokenSnapshot = Field(alias="mainToken")
    wrapped_token: TokenSnapshot = Field(alias="wrappedToken")
    lower_target: DecimalAmount = Field(alias="lowerTarget")
    upper_target: DecimalAmount = Field(alias="upperTarget")
    wrapped_token_rate: DecimalAmount = Field(
        default=Decimal(1),
        alias="wrappedTokenRate",
        description="Value of one wrapped token in main tokens",
    )
    lbpt_symbol: str = Field(default=DEFAULT_LBPT_SYMBOL, alias="lbptSymbol", min_length=1)
