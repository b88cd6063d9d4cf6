"""Pool parsing.

Functions to build pool objects from snapshots, given either as pydantic
models or as plain dicts (camelCase or snake_case keys).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from lyfebloc_pools.config import DEFAULT_POOL_LIMITS, PoolLimits
from lyfebloc_pools.models.snapshots import (
    LinearPoolSnapshot,
    StablePoolSnapshot,
    TokenSnapshot,
    WeightedPoolSnapshot,
)
from lyfebloc_pools.models.types import normalize_address

from .base import RateToken, Token, WeightedToken
from .linear import LinearPool
from .stable import StablePool
from .weighted import WeightedPool

logger = structlog.get_logger()


def _token(snapshot: TokenSnapshot) -> Token:
    return Token(
        address=normalize_address(snapshot.address),
        symbol=snapshot.symbol,
        balance=snapshot.balance,
        decimals=snapshot.decimals,
    )


def parse_weighted_pool(
    data: WeightedPoolSnapshot | Mapping[str, Any],
    limits: PoolLimits = DEFAULT_POOL_LIMITS,
) -> WeightedPool:
    """Build a WeightedPool from a snapshot.

    Raises:
        pydantic.ValidationError: If the snapshot is malformed
        PoolValidationError: If the pool violates the weighted pool limits
    """
    snapshot = data if isinstance(data, WeightedPoolSnapshot) else WeightedPoolSnapshot.model_validate(data)
    pool = WeightedPool(
        id=snapshot.id,
        address=normalize_address(snapshot.address),
        lbpt_total_supply=snapshot.lbpt_total_supply,
        swap_fee_percentage=snapshot.swap_fee_percentage,
        tokens=tuple(
            WeightedToken(
                address=normalize_address(t.address),
                symbol=t.symbol,
                balance=t.balance,
                decimals=t.decimals,
                weight=t.weight,
            )
            for t in snapshot.tokens
        ),
        limits=limits,
    )
    logger.debug("weighted_pool_parsed", pool_id=pool.id, tokens=list(pool.symbols))
    return pool


def parse_stable_pool(
    data: StablePoolSnapshot | Mapping[str, Any],
    limits: PoolLimits = DEFAULT_POOL_LIMITS,
) -> StablePool:
    """Build a StablePool from a snapshot.

    Raises:
        pydantic.ValidationError: If the snapshot is malformed
        PoolValidationError: If the pool violates the stable pool limits
    """
    snapshot = data if isinstance(data, StablePoolSnapshot) else StablePoolSnapshot.model_validate(data)
    pool = StablePool(
        id=snapshot.id,
        address=normalize_address(snapshot.address),
        lbpt_total_supply=snapshot.lbpt_total_supply,
        swap_fee_percentage=snapshot.swap_fee_percentage,
        tokens=tuple(_token(t) for t in snapshot.tokens),
        amplification_parameter=snapshot.amplification_parameter,
        limits=limits,
    )
    logger.debug(
        "stable_pool_parsed",
        pool_id=pool.id,
        tokens=list(pool.symbols),
        amplification_parameter=pool.get_amplification_parameter(),
    )
    return pool


def parse_linear_pool(
    data: LinearPoolSnapshot | Mapping[str, Any],
    limits: PoolLimits = DEFAULT_POOL_LIMITS,
) -> LinearPool:
    """Build a LinearPool from a snapshot.

    The wrapped token rate is folded into the wrapped token's scaling factor.

    Raises:
        pydantic.ValidationError: If the snapshot is malformed
        PoolValidationError: If the targets are inverted or symbols collide
    """
    snapshot = data if isinstance(data, LinearPoolSnapshot) else LinearPoolSnapshot.model_validate(data)
    wrapped = snapshot.wrapped_token
    pool = LinearPool(
        id=snapshot.id,
        address=normalize_address(snapshot.address),
        lbpt_total_supply=snapshot.lbpt_total_supply,
        swap_fee_percentage=snapshot.swap_fee_percentage,
        tokens=(
            _token(snapshot.main_token),
            RateToken(
                address=normalize_address(wrapped.address),
                symbol=wrapped.symbol,
                balance=wrapped.balance,
                decimals=wrapped.decimals,
                rate=snapshot.wrapped_token_rate,
            ),
        ),
        lower_target=snapshot.lower_target,
        upper_target=snapshot.upper_target,
        lbpt_symbol=snapshot.lbpt_symbol,
        limits=limits,
    )
    logger.debug("linear_pool_parsed", pool_id=pool.id, tokens=list(pool.symbols))
    return pool
