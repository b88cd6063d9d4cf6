"""Pool error classes.

Validation errors are raised before any computation and derive from
ValueError. Math errors map to the protocol's revert reasons.
"""


class PoolError(Exception):
    """Base error for pool operations."""

    pass


class PoolValidationError(PoolError, ValueError):
    """Input rejected before any computation."""

    pass


class InvalidInputError(PoolValidationError):
    """Unknown token symbol, self swap, or amount map not covering the pool tokens."""

    pass


class DuplicateTokenSymbolError(PoolValidationError):
    """Two tokens of a pool share a symbol."""

    pass


class MinSwapFeePercentageError(PoolValidationError):
    """Swap fee below the minimum (0.0001%)."""

    pass


class MaxSwapFeePercentageError(PoolValidationError):
    """Swap fee above the maximum (10%)."""

    pass


class MinTokensError(PoolValidationError):
    """Pool has fewer tokens than its type allows."""

    pass


class MaxTokensError(PoolValidationError):
    """Pool has more tokens than its type allows."""

    pass


class MinWeightError(PoolValidationError):
    """Normalized weight below the minimum weight."""

    pass


class NormalizedWeightInvariantError(PoolValidationError):
    """Normalized weights do not sum to exactly 1."""

    pass


class MinAmpError(PoolValidationError):
    """Amplification parameter below MIN_AMP."""

    pass


class MaxAmpError(PoolValidationError):
    """Amplification parameter above MAX_AMP."""

    pass


class InvalidAmplificationError(PoolValidationError):
    """Amplification parameter is not an integer."""

    pass


class LowerGreaterThanUpperTargetError(PoolValidationError):
    """Linear pool lower target exceeds upper target."""

    pass


class LbptInExceedsTotalSupplyError(PoolValidationError):
    """Pool shares to burn exceed the total supply."""

    pass


class NegativeBalanceError(PoolValidationError):
    """Applying an action would leave a balance or the supply negative."""

    pass


class PoolMathError(PoolError):
    """A pool formula rejected its inputs."""

    pass


class MaxInRatioError(PoolMathError):
    """Error 304: Input amount exceeds 30% of balance_in."""

    pass


class MaxOutRatioError(PoolMathError):
    """Error 305: Output amount exceeds 30% of balance_out."""

    pass


class MaxOutBptForTokenInError(PoolMathError):
    """Error 307: Shares minted for a single token would exceed 3x the invariant."""

    pass


class MinBptInForTokenOutError(PoolMathError):
    """Error 308: Shares burned for a single token would drop the invariant below 0.7x."""

    pass


class ZeroInvariantError(PoolMathError):
    """Error 311: Weighted invariant is zero."""

    pass


class StableInvariantDidNotConverge(PoolMathError):
    """Newton-Raphson iteration for stable invariant D did not converge."""

    pass


class StableGetBalanceDidNotConverge(PoolMathError):
    """Newton-Raphson iteration for stable balance Y did not converge."""

    pass


class ZeroBalanceError(PoolMathError):
    """A swap would drain a token balance to zero."""

    pass
