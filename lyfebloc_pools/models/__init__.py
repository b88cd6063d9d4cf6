"""Pydantic models for pool snapshots and join/exit intents."""

from lyfebloc_pools.models.intents import (
    ExactLbptInForTokenOut,
    ExactLbptInForTokensOut,
    ExactTokensInForBptOut,
    ExitIntent,
    ExitKind,
    JoinIntent,
    JoinKind,
    LbptInForExactTokensOut,
    TokenInForExactBptOut,
)
from lyfebloc_pools.models.snapshots import (
    LinearPoolSnapshot,
    PoolSnapshot,
    StablePoolSnapshot,
    TokenSnapshot,
    WeightedPoolSnapshot,
    WeightedTokenSnapshot,
)
from lyfebloc_pools.models.types import Address, DecimalAmount, Uint256

__all__ = [
    # Types
    "Address",
    "DecimalAmount",
    "Uint256",
    # Snapshots
    "PoolSnapshot",
    "TokenSnapshot",
    "WeightedTokenSnapshot",
    "WeightedPoolSnapshot",
    "StablePoolSnapshot",
    "LinearPoolSnapshot",
    # Intents
    "JoinKind",
    "ExitKind",
    "JoinIntent",
    "ExitIntent",
    "ExactTokensInForBptOut",
    "TokenInForExactBptOut",
    "ExactLbptInForTokenOut",
    "ExactLbptInForTokensOut",
    "LbptInForExactTokensOut",
]
