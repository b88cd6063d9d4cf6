"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Token and pool addresses
- factories: Pool factory functions
"""

from tests.helpers.constants import DAI, POOL_ADDRESS, POOL_ID, USDC, USDT, WADAI, WBTC, WETH
from tests.helpers.factories import make_linear_pool, make_stable_pool, make_weighted_pool

__all__ = [
    # Constants
    "DAI",
    "POOL_ADDRESS",
    "POOL_ID",
    "USDC",
    "USDT",
    "WADAI",
    "WBTC",
    "WETH",
    # Factories
    "make_linear_pool",
    "make_stable_pool",
    "make_weighted_pool",
]
