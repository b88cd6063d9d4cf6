"""Shared type definitions for snapshot and intent models."""

from decimal import Decimal
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from lyfebloc_pools.math.decimal_utils import InvalidAmountError, to_decimal
from lyfebloc_pools.safe_int import UINT256_MAX


def validate_decimal_amount(value: Any) -> Decimal:
    """Validate a non-negative decimal amount given as string, int or Decimal.

    Floats are refused, their binary value is not the number that was meant.

    Raises:
        ValueError: If value is a float, not a number, or negative
    """
    try:
        amount = to_decimal(value)
    except InvalidAmountError as err:
        raise ValueError(str(err)) from err
    if amount < 0:
        raise ValueError(f"Amount cannot be negative: {value}")
    return amount


def validate_uint256(value: Any) -> int:
    """Validate a raw on-chain integer given as int or decimal string.

    Raises:
        ValueError: If value is not a non-negative integer within uint256 range
    """
    if isinstance(value, bool):
        raise ValueError(f"Uint256 must be an integer, got {value!r}")
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError as err:
            raise ValueError(f"Uint256 must be a decimal integer string: '{value}'") from err
    if not isinstance(value, int):
        raise ValueError(f"Uint256 must be string or int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"Uint256 cannot be negative: {value}")
    if value > UINT256_MAX:
        raise ValueError(f"Uint256 overflow: {value} > 2^256-1")
    return value


# Ethereum address (40 hex chars after 0x prefix)
Address = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{40}$")]

# Amount in a token's native precision, e.g. "1.5"
DecimalAmount = Annotated[
    Decimal,
    BeforeValidator(validate_decimal_amount),
    Field(description="Non-negative amount in native token precision"),
]

# Raw integer amount (native units or 18-decimal fixed point)
Uint256 = Annotated[
    int,
    BeforeValidator(validate_uint256),
    Field(description="256-bit unsigned integer"),
]


def normalize_address(address: str) -> str:
    """Normalize an Ethereum address to lowercase with 0x prefix."""
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr
    return addr
