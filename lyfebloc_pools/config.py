"""Deployment limits enforced when a pool is constructed."""

from dataclasses import dataclass
from decimal import Decimal

from lyfebloc_pools.constants import (
    MAX_AMP,
    MAX_STABLE_TOKENS,
    MAX_SWAP_FEE_PERCENTAGE,
    MIN_AMP,
    MIN_SWAP_FEE_PERCENTAGE,
    MIN_WEIGHT,
    STABLE_MIN_TOKENS,
    WEIGHTED_MAX_TOKENS,
    WEIGHTED_MIN_TOKENS,
)


@dataclass(frozen=True)
class PoolLimits:
    """Validation bounds applied by the pool constructors.

    The defaults are the limits of the deployed factories. A different
    deployment (or a fork with other factory settings) can be modelled by
    passing a custom instance to the pool.

    Attributes:
        min_swap_fee_percentage: Lowest accepted swap fee (inclusive)
        max_swap_fee_percentage: Highest accepted swap fee (inclusive)
        weighted_min_tokens: Minimum token count of a weighted pool
        weighted_max_tokens: Maximum token count of a weighted pool
        min_weight: Smallest normalized weight of a weighted pool token
        stable_min_tokens: Minimum token count of a stable pool
        stable_max_tokens: Maximum token count of a stable pool
        min_amp: Smallest amplification parameter (unscaled)
        max_amp: Largest amplification parameter (unscaled)
    """

    min_swap_fee_percentage: Decimal = MIN_SWAP_FEE_PERCENTAGE
    max_swap_fee_percentage: Decimal = MAX_SWAP_FEE_PERCENTAGE

    weighted_min_tokens: int = WEIGHTED_MIN_TOKENS
    weighted_max_tokens: int = WEIGHTED_MAX_TOKENS
    min_weight: Decimal = MIN_WEIGHT

    stable_min_tokens: int = STABLE_MIN_TOKENS
    stable_max_tokens: int = MAX_STABLE_TOKENS
    min_amp: int = MIN_AMP
    max_amp: int = MAX_AMP


DEFAULT_POOL_LIMITS = PoolLimits()
