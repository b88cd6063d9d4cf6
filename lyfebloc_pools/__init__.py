"""Lyfebloc pools - off-chain quoting for weighted, stable and linear pools."""

from lyfebloc_pools.config import DEFAULT_POOL_LIMITS, PoolLimits
from lyfebloc_pools.math import FixedPoint
from lyfebloc_pools.pools import (
    Applied,
    LinearPool,
    StablePool,
    WeightedPool,
    parse_linear_pool,
    parse_stable_pool,
    parse_weighted_pool,
)

__version__ = "0.1.0"
__all__ = [
    "Applied",
    "DEFAULT_POOL_LIMITS",
    "FixedPoint",
    "LinearPool",
    "PoolLimits",
    "StablePool",
    "WeightedPool",
    "parse_linear_pool",
    "parse_stable_pool",
    "parse_weighted_pool",
    "__version__",
]
