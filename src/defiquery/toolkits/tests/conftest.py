"""
Shared fixtures and configuration for toolkit tests.
This file provides fake clocks, mock HTTP clients and sample GeckoTerminal
payloads used across the transport and adapter tests.
"""
import asyncio
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest


# ============================================================================
# SHARED MOCKS AND PATCHES
# ============================================================================

@pytest.fixture(autouse=True)
def mock_logger():
    """Auto-use fixture to mock logger across all toolkit tests."""
    with patch('defiquery.toolkits.utils.http_client.logger') as mock_http_log, \
         patch('defiquery.toolkits.utils.rate_limiter.logger') as mock_limiter_log, \
         patch('defiquery.toolkits.data.geckoterminal_toolkit.logger') as mock_gecko_log:
        yield {
            'http': mock_http_log,
            'limiter': mock_limiter_log,
            'geckoterminal': mock_gecko_log,
        }


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_sleep(fake_clock):
    """Sleep that advances the fake clock instead of waiting; records durations."""
    calls: List[float] = []

    async def _sleep(seconds: float) -> None:
        calls.append(seconds)
        fake_clock.advance(seconds)
        await asyncio.sleep(0)

    _sleep.calls = calls
    return _sleep


def make_response(status_code: int = 200,
                  json_body: Optional[Any] = None,
                  content: Optional[bytes] = None,
                  path: str = "/test") -> httpx.Response:
    """Real httpx.Response bound to a request so raise_for_status works."""
    request = httpx.Request("GET", f"https://api.geckoterminal.com/api/v2{path}")
    if content is not None:
        return httpx.Response(status_code, content=content, request=request)
    return httpx.Response(status_code, json=json_body if json_body is not None else {}, request=request)


@pytest.fixture
def mock_httpx_client():
    """Mock httpx.AsyncClient returning an empty JSON:API list."""
    mock_client = AsyncMock()
    mock_client.get.return_value = make_response(200, {"data": []})
    mock_client.aclose = AsyncMock()
    return mock_client


@pytest.fixture
def mock_transport():
    """Mock CachedTransport for adapter tests (records path + params)."""
    transport = Mock()
    transport.base_url = "https://api.geckoterminal.com/api/v2"
    transport.get = AsyncMock(return_value={"data": []})
    return transport


# ============================================================================
# SAMPLE GECKOTERMINAL PAYLOADS
# ============================================================================

def make_pool(address: str,
              name: str,
              volume: str,
              reserve: str,
              price: str = "1.0",
              change: str = "0",
              dex_id: Optional[str] = None) -> Dict[str, Any]:
    attributes = {
        "address": address,
        "name": name,
        "base_token_price_usd": price,
        "reserve_in_usd": reserve,
        "fdv_usd": "1000000",
        "volume_usd": {"h24": volume},
        "price_change_percentage": {"h24": change},
        "transactions": {"h24": {"buys": 10, "sells": 5}},
        "pool_created_at": "2024-01-01T00:00:00Z",
    }
    if dex_id is not None:
        attributes["dex_id"] = dex_id
    return {
        "id": f"base_{address}",
        "type": "pool",
        "attributes": attributes,
        "relationships": {"dex": {"data": {"id": "aerodrome-base", "type": "dex"}}},
    }


@pytest.fixture
def sample_pools_payload():
    """Three pools in upstream (volume-descending) order."""
    return {
        "data": [
            make_pool("0x" + "1" * 40, "WETH / USDC", volume="5000000", reserve="2000000", price="3200.5", change="2.5"),
            make_pool("0x" + "2" * 40, "DEGEN / WETH", volume="3000000", reserve="9000000", price="0.0123", change="-4.5"),
            make_pool("0x" + "3" * 40, "cbBTC / USDC", volume="1000000", reserve="5000000", price="65000", change="0"),
        ]
    }


@pytest.fixture
def sample_token_payload():
    return {
        "data": {
            "id": "base_0x833589fcd6edb6e08f4c7c32d4f71b54bda02913",
            "type": "token",
            "attributes": {
                "address": "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913",
                "name": "USD Coin",
                "symbol": "USDC",
                "price_usd": "0.9998",
                "market_cap_usd": "3500000000",
                "volume_usd": {"h24": "125000000"},
                "price_change_percentage": {"h24": "-0.01"},
            },
        }
    }


@pytest.fixture
def sample_ohlcv_payload():
    return {
        "data": {
            "id": "ohlcv",
            "type": "ohlcv_request_response",
            "attributes": {
                "ohlcv_list": [
                    [1700003600, 1.0, 1.2, 0.9, 1.1, 5000.0],
                    [1700000000, 0.95, 1.05, 0.9, 1.0, 4200.0],
                ]
            },
        }
    }


@pytest.fixture
def response_factory():
    """Factory fixture for real httpx.Response objects."""
    return make_response


@pytest.fixture
def pool_factory():
    """Factory fixture for JSON:API pool resources."""
    return make_pool
