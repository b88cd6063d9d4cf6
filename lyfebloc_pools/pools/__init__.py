"""Weighted, stable and linear pool implementations.

Pools mirror the on-chain integer arithmetic exactly, so quotes match what
the chain would execute to the last unit.

Pool types supported:
- Weighted (constant product with normalized weights)
- Stable (amplified invariant)
- Linear (main token and its wrapped counterpart)
"""

# Pool dataclasses
from .base import Applied, BasePool, LiquidityPool, RateToken, Token, Transition, WeightedToken

# Errors
from .errors import (
    DuplicateTokenSymbolError,
    InvalidAmplificationError,
    InvalidInputError,
    LbptInExceedsTotalSupplyError,
    LowerGreaterThanUpperTargetError,
    MaxAmpError,
    MaxInRatioError,
    MaxOutBptForTokenInError,
    MaxOutRatioError,
    MaxSwapFeePercentageError,
    MaxTokensError,
    MinAmpError,
    MinBptInForTokenOutError,
    MinSwapFeePercentageError,
    MinTokensError,
    MinWeightError,
    NegativeBalanceError,
    NormalizedWeightInvariantError,
    PoolError,
    PoolMathError,
    PoolValidationError,
    StableGetBalanceDidNotConverge,
    StableInvariantDidNotConverge,
    ZeroBalanceError,
    ZeroInvariantError,
)
from .linear import LinearPool

# Linear math parameters
from .linear_math import LinearParams

# Pool parsing
from .parsing import parse_linear_pool, parse_stable_pool, parse_weighted_pool

# Scaling helpers
from .scaling import (
    SwapFeeParams,
    add_swap_fee_amount,
    downscale_down,
    downscale_up,
    get_scaling_factor,
    subtract_swap_fee_amount,
    upscale,
)
from .stable import StablePool
from .weighted import WeightedPool

__all__ = [
    # Tokens
    "Token",
    "WeightedToken",
    "RateToken",
    # Pools
    "BasePool",
    "LiquidityPool",
    "WeightedPool",
    "StablePool",
    "LinearPool",
    "LinearParams",
    # Actions
    "Transition",
    "Applied",
    # Pool parsing
    "parse_weighted_pool",
    "parse_stable_pool",
    "parse_linear_pool",
    # Scaling helpers
    "SwapFeeParams",
    "get_scaling_factor",
    "upscale",
    "downscale_down",
    "downscale_up",
    # Fee helpers
    "subtract_swap_fee_amount",
    "add_swap_fee_amount",
    # Errors
    "PoolError",
    "PoolValidationError",
    "PoolMathError",
    "InvalidInputError",
    "DuplicateTokenSymbolError",
    "MinSwapFeePercentageError",
    "MaxSwapFeePercentageError",
    "MinTokensError",
    "MaxTokensError",
    "MinWeightError",
    "NormalizedWeightInvariantError",
    "MinAmpError",
    "MaxAmpError",
    "InvalidAmplificationError",
    "LowerGreaterThanUpperTargetError",
    "LbptInExceedsTotalSupplyError",
    "NegativeBalanceError",
    "MaxInRatioError",
    "MaxOutRatioError",
    "MaxOutBptForTokenInError",
    "MinBptInForTokenOutError",
    "ZeroInvariantError",
    "ZeroBalanceError",
    "StableInvariantDidNotConverge",
    "StableGetBalanceDidNotConverge",
]
