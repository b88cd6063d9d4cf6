"""Pytest configuration and fixtures."""

import pytest

from lyfebloc_pools.pools import LinearPool, StablePool, WeightedPool
from tests.helpers.factories import make_linear_pool, make_stable_pool, make_weighted_pool


@pytest.fixture
def weighted_pool() -> WeightedPool:
    """50/50 WETH/DAI pool with balances 1000/1500 and a 1% fee."""
    return make_weighted_pool()


@pytest.fixture
def stable_pool() -> StablePool:
    """DAI/USDC/USDT pool with 1M of each token and A = 200."""
    return make_stable_pool()


@pytest.fixture
def linear_pool() -> LinearPool:
    """DAI/waDAI pool with the main balance inside the target range."""
    return make_linear_pool()
