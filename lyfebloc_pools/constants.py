"""Protocol constants mirrored from the on-chain pool contracts.

Every value here is part of the arithmetic contract with the chain: changing
one breaks parity with the deployed pools.
"""

from decimal import Decimal

# 18-decimal fixed point
ONE_18 = 10**18

# Swap fee bounds (BasePool)
MIN_SWAP_FEE_PERCENTAGE = Decimal("0.000001")  # 0.0001%
MAX_SWAP_FEE_PERCENTAGE = Decimal("0.1")  # 10%

# Weighted pools
WEIGHTED_MIN_TOKENS = 2
WEIGHTED_MAX_TOKENS = 8
# A minimum normalized weight bounds the weight ratio, which shows up as an
# exponent in the power function.
MIN_WEIGHT = Decimal("0.01")

MAX_IN_RATIO = 3 * 10**17  # 0.3
MAX_OUT_RATIO = 3 * 10**17  # 0.3
MAX_INVARIANT_RATIO = 3 * ONE_18  # 3.0
MIN_INVARIANT_RATIO = 7 * 10**17  # 0.7

# Stable pools
STABLE_MIN_TOKENS = 2
MAX_STABLE_TOKENS = 5
MIN_AMP = 1
MAX_AMP = 5000
AMP_PRECISION = 1000

# Newton-Raphson loops (stable invariant and single balance)
STABLE_MAX_ITERATIONS = 255
STABLE_CONVERGENCE_TOLERANCE = 1

# Linear pools: the pool share is the third token of the pool
DEFAULT_LBPT_SYMBOL = "LBPT"
