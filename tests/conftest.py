"""
Shared fixtures for pipeline tests (classifier, router, formatter, handler).
"""
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import httpx
import pytest

from defiquery.config import DefiQueryConfig, load_config
from defiquery.query import QueryClassifier, ResponseFormatter
from defiquery.toolkits.data import GeckoTerminalToolkit


def _pool_attributes(index: int) -> Dict[str, Any]:
    return {
        "address": "0x" + f"{index:040x}",
        "name": f"TOKEN{index} / USDC",
        "base_token_price_usd": str(index * 1.5),
        "reserve_in_usd": str(index * 100_000),
        "fdv_usd": str(index * 1_000_000),
        "volume_usd": {"h24": str(index * 10_000)},
        "price_change_percentage": {"h24": str(index - 3)},
        "transactions": {"h24": {"buys": index * 10, "sells": index * 5}},
        "pool_created_at": "2024-05-01T12:00:00Z",
    }


@pytest.fixture
def config() -> DefiQueryConfig:
    """Default configuration without request spacing, so tests never wait."""
    return load_config(overrides={"transport": {"rate_limit": {"min_interval_seconds": 0}}})


@pytest.fixture
def classifier(config) -> QueryClassifier:
    return QueryClassifier.from_config(config)


@pytest.fixture
def formatter(config) -> ResponseFormatter:
    return ResponseFormatter(networks=config.networks)


@pytest.fixture
def mock_toolkit():
    """GeckoTerminalToolkit double; every catalog method is an AsyncMock."""
    return AsyncMock(spec=GeckoTerminalToolkit)


@pytest.fixture
def pool_records():
    """Factory for flattened pool records as the adapter returns them."""
    def _make(count: int) -> List[Dict[str, Any]]:
        return [
            {"id": f"base_{i}", "type": "pool", "dex_id": "aerodrome-base", **_pool_attributes(i)}
            for i in range(1, count + 1)
        ]
    return _make


@pytest.fixture
def pools_payload():
    """Factory for upstream JSON:API pool list bodies."""
    def _make(count: int) -> Dict[str, Any]:
        return {
            "data": [
                {
                    "id": f"base_{i}",
                    "type": "pool",
                    "attributes": _pool_attributes(i),
                    "relationships": {"dex": {"data": {"id": "aerodrome-base", "type": "dex"}}},
                }
                for i in range(1, count + 1)
            ]
        }
    return _make


@pytest.fixture
def response_factory():
    def _make(status_code: int = 200, json_body: Optional[Any] = None) -> httpx.Response:
        request = httpx.Request("GET", "https://api.geckoterminal.com/api/v2/test")
        return httpx.Response(status_code, json=json_body if json_body is not None else {}, request=request)
    return _make


@pytest.fixture
def mock_httpx_client(response_factory):
    mock_client = AsyncMock()
    mock_client.get.return_value = response_factory(200, {"data": []})
    mock_client.aclose = AsyncMock()
    return mock_client
