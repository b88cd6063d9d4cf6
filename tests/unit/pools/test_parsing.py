"""Tests for building pools from snapshots."""

from decimal import Decimal
from typing import Any

import pytest
from pydantic import ValidationError
from structlog.testing import capture_logs

from lyfebloc_pools.models import WeightedPoolSnapshot
from lyfebloc_pools.pools import (
    NormalizedWeightInvariantError,
    RateToken,
    parse_linear_pool,
    parse_stable_pool,
    parse_weighted_pool,
)
from tests.helpers import DAI, POOL_ADDRESS, POOL_ID, USDC, WADAI, WETH


def weighted_data(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": POOL_ID,
        "address": POOL_ADDRESS.upper().replace("0X", "0x"),
        "lbptTotalSupply": "1000",
        "swapFeePercentage": "0.003",
        "tokens": [
            {"address": WETH, "symbol": "WETH", "balance": "100", "decimals": 18, "weight": "0.8"},
            {"address": USDC, "symbol": "USDC", "balance": "50000", "decimals": 6, "weight": "0.2"},
        ],
    }
    data.update(overrides)
    return data


def linear_data(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": POOL_ID,
        "address": POOL_ADDRESS,
        "lbptTotalSupply": "2000",
        "swapFeePercentage": "0.0002",
        "mainToken": {"address": DAI, "symbol": "DAI", "balance": "1500", "decimals": 18},
        "wrappedToken": {"address": WADAI, "symbol": "waDAI", "balance": "500", "decimals": 18},
        "lowerTarget": "1000",
        "upperTarget": "2000",
    }
    data.update(overrides)
    return data


class TestParseWeightedPool:
    """Tests for parse_weighted_pool."""

    def test_camel_case_dict(self) -> None:
        pool = parse_weighted_pool(weighted_data())
        assert pool.symbols == ("WETH", "USDC")
        assert pool.lbpt_total_supply == Decimal(1000)
        assert pool.swap_fee_percentage == Decimal("0.003")
        assert pool.get_token("USDC").weight == Decimal("0.2")

    def test_address_normalized(self) -> None:
        pool = parse_weighted_pool(weighted_data())
        assert pool.address == POOL_ADDRESS

    def test_snapshot_model(self) -> None:
        snapshot = WeightedPoolSnapshot.model_validate(weighted_data())
        assert parse_weighted_pool(snapshot).symbols == ("WETH", "USDC")

    def test_float_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_weighted_pool(weighted_data(lbptTotalSupply=1000.0))

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_weighted_pool(weighted_data(swapFeePercentage="-0.003"))

    def test_bad_address_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_weighted_pool(weighted_data(address="0x1234"))

    def test_pool_validation_propagates(self) -> None:
        data = weighted_data()
        data["tokens"][1]["weight"] = "0.3"
        with pytest.raises(NormalizedWeightInvariantError):
            parse_weighted_pool(data)

    def test_logs_parsed_pool(self) -> None:
        with capture_logs() as logs:
            parse_weighted_pool(weighted_data())
        parsed = [log for log in logs if log["event"] == "weighted_pool_parsed"]
        assert len(parsed) == 1
        assert parsed[0]["log_level"] == "debug"
        assert parsed[0]["pool_id"] == POOL_ID
        assert parsed[0]["tokens"] == ["WETH", "USDC"]


class TestParseStablePool:
    """Tests for parse_stable_pool."""

    def test_parse(self) -> None:
        pool = parse_stable_pool(
            {
                "id": POOL_ID,
                "address": POOL_ADDRESS,
                "lbpt_total_supply": "2000000",
                "swap_fee_percentage": "0.0001",
                "amplification_parameter": "500",
                "tokens": [
                    {"address": DAI, "symbol": "DAI", "balance": "1000000", "decimals": 18},
                    {"address": USDC, "symbol": "USDC", "balance": "1000000", "decimals": 6},
                ],
            }
        )
        assert pool.get_amplification_parameter() == 500
        assert pool.get_invariant().to_decimal() == Decimal(2_000_000)


class TestParseLinearPool:
    """Tests for parse_linear_pool."""

    def test_defaults(self) -> None:
        pool = parse_linear_pool(linear_data())
        assert pool.lbpt_symbol == "LBPT"
        assert pool.main_token.symbol == "DAI"
        assert isinstance(pool.wrapped_token, RateToken)
        assert pool.wrapped_token.rate == Decimal(1)

    def test_wrapped_token_rate(self) -> None:
        pool = parse_linear_pool(linear_data(wrappedTokenRate="1.02", lbptSymbol="bb-a-DAI"))
        assert isinstance(pool.wrapped_token, RateToken)
        assert pool.wrapped_token.rate == Decimal("1.02")
        assert pool.lbpt_symbol == "bb-a-DAI"
        # One waDAI is worth 1.02 DAI
        assert pool.swap_given_in("DAI", "waDAI", "102") == Decimal(100)
