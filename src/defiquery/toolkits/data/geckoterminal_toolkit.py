from __future__ import annotations

"""GeckoTerminal DEX Market Data Toolkit
=======================================

Typed catalog of GeckoTerminal public API operations. Each method builds one
endpoint path plus its query parameters and delegates to the shared
``CachedTransport``; there is no business logic here beyond path templating
and unwrapping the JSON:API envelope.

## Supported Data Types

**Pools (`networks/{network}/pools`, `trending_pools`, `new_pools`)**
- Paginated top pools per network, ordered upstream by 24h volume
- Global and per-network trending / newly created pools
- Single and multi-pool lookups by address
- DEX-scoped pool lists

**Tokens (`networks/{network}/tokens/{address}`)**
- Token metadata, price, market cap and 24h volume
- Pools trading a given token
- Simple USD price lookups for one or more contract addresses

**Charts (`pools/{address}/ohlcv/{timeframe}`)**
- OHLCV candles by day / hour / minute with aggregation

## Response Shape

Upstream bodies look like ``{"data": [{"id", "type", "attributes", "relationships"}]}``.
Every method returns flattened records instead: ``{"id", "type", **attributes}``
with ``dex_id`` lifted out of ``relationships`` when the attributes omit it.
No other layer needs to know the upstream envelope.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union
from urllib.parse import quote

from loguru import logger

from defiquery.toolkits.utils import CachedTransport

__all__ = ["GeckoTerminalToolkit", "Timeframe", "OhlcvCurrency"]


class Timeframe(str, Enum):
    """Candle granularity for OHLCV requests."""
    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"


class OhlcvCurrency(str, Enum):
    """Denomination of OHLCV prices."""
    USD = "usd"
    TOKEN = "token"


# API endpoint mappings
_API_ENDPOINTS = {
    "networks": "/networks",
    "trending_pools": "/networks/trending_pools",
    "new_pools": "/networks/new_pools",
    "network_pools": "/networks/{network}/pools",
    "network_trending_pools": "/networks/{network}/trending_pools",
    "network_new_pools": "/networks/{network}/new_pools",
    "pool": "/networks/{network}/pools/{address}",
    "pools_multi": "/networks/{network}/pools/multi/{addresses}",
    "token": "/networks/{network}/tokens/{address}",
    "tokens_multi": "/networks/{network}/tokens/multi/{addresses}",
    "token_pools": "/networks/{network}/tokens/{address}/pools",
    "token_price": "/simple/networks/{network}/token_price/{addresses}",
    "network_dexes": "/networks/{network}/dexes",
    "dex_pools": "/networks/{network}/dexes/{dex}/pools",
    "pool_ohlcv": "/networks/{network}/pools/{address}/ohlcv/{timeframe}",
    "pool_trades": "/networks/{network}/pools/{address}/trades",
}


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _join(values: Union[str, Sequence[str]]) -> str:
    if isinstance(values, str):
        return values
    return ",".join(values)


class GeckoTerminalToolkit:
    """GeckoTerminal operation catalog on top of a ``CachedTransport``.

    Example:
        ```python
        transport = CachedTransport(base_url="https://api.geckoterminal.com/api/v2")
        toolkit = GeckoTerminalToolkit(transport)

        pools = await toolkit.get_network_pools("base")
        deepest = await toolkit.get_top_pools_by_liquidity("base", limit=5)  # same cached page
        ```
    """

    def __init__(self, transport: CachedTransport):
        self._transport = transport
        logger.debug(f"Initialized GeckoTerminalToolkit on {transport.base_url}")

    @property
    def transport(self) -> CachedTransport:
        return self._transport

    # =========================================================================
    # Request + envelope helpers
    # =========================================================================

    @staticmethod
    def _build_path(endpoint: str, **segments: Any) -> str:
        template = _API_ENDPOINTS[endpoint]
        quoted = {name: quote(str(value), safe=",") for name, value in segments.items()}
        return template.format(**quoted)

    async def _request(self, endpoint: str, params: Optional[Dict[str, Any]] = None, **segments: Any) -> Any:
        path = self._build_path(endpoint, **segments)
        return await self._transport.get(path, params=params or {})

    @staticmethod
    def _flatten(item: Dict[str, Any]) -> Dict[str, Any]:
        """Turn one JSON:API resource into a flat record."""
        record: Dict[str, Any] = {"id": item.get("id"), "type": item.get("type")}
        record.update(item.get("attributes") or {})

        if not record.get("dex_id"):
            dex = ((item.get("relationships") or {}).get("dex") or {}).get("data") or {}
            if dex.get("id"):
                record["dex_id"] = dex["id"]
        return record

    @classmethod
    def _unwrap_list(cls, payload: Any) -> List[Dict[str, Any]]:
        data = (payload or {}).get("data") or []
        return [cls._flatten(item) for item in data if isinstance(item, dict)]

    @classmethod
    def _unwrap_one(cls, payload: Any) -> Dict[str, Any]:
        data = (payload or {}).get("data") or {}
        return cls._flatten(data)

    # =========================================================================
    # Networks / DEXes
    # =========================================================================

    async def get_networks(self, page: int = 1) -> List[Dict[str, Any]]:
        """List networks supported upstream."""
        payload = await self._request("networks", {"page": page})
        return self._unwrap_list(payload)

    async def get_network_dexes(self, network: str, page: int = 1) -> List[Dict[str, Any]]:
        """List DEXes indexed on ``network``."""
        payload = await self._request("network_dexes", {"page": page}, network=network)
        return self._unwrap_list(payload)

    # =========================================================================
    # Pools
    # =========================================================================

    async def get_trending_pools(self, network: Optional[str] = None) -> List[Dict[str, Any]]:
        """Trending pools, across all networks when ``network`` is None."""
        if network:
            payload = await self._request("network_trending_pools", network=network)
        else:
            payload = await self._request("trending_pools")
        return self._unwrap_list(payload)

    async def get_new_pools(self, network: Optional[str] = None) -> List[Dict[str, Any]]:
        """Newly created pools, across all networks when ``network`` is None."""
        if network:
            payload = await self._request("network_new_pools", network=network)
        else:
            payload = await self._request("new_pools")
        return self._unwrap_list(payload)

    async def get_network_pools(self, network: str, page: int = 1) -> List[Dict[str, Any]]:
        """Top pools on ``network`` (upstream order: 24h volume, descending)."""
        payload = await self._request("network_pools", {"page": page}, network=network)
        return self._unwrap_list(payload)

    async def get_pool(self, network: str, pool_address: str) -> Dict[str, Any]:
        """Single pool by address."""
        payload = await self._request("pool", network=network, address=pool_address)
        return self._unwrap_one(payload)

    async def get_multiple_pools(self, network: str, pool_addresses: Union[str, Sequence[str]]) -> List[Dict[str, Any]]:
        """Several pools by address in one call."""
        payload = await self._request("pools_multi", network=network, addresses=_join(pool_addresses))
        return self._unwrap_list(payload)

    async def get_dex_pools(self, network: str, dex: str, page: int = 1) -> List[Dict[str, Any]]:
        """Top pools of one DEX on ``network``."""
        payload = await self._request("dex_pools", {"page": page}, network=network, dex=dex)
        return self._unwrap_list(payload)

    async def get_pool_ohlcv(
        self,
        network: str,
        pool_address: str,
        timeframe: Union[Timeframe, str] = Timeframe.HOUR,
        aggregate: int = 1,
        limit: int = 100,
        currency: Union[OhlcvCurrency, str] = OhlcvCurrency.USD,
        before_timestamp: Optional[int] = None,
    ) -> List[List[float]]:
        """OHLCV candles for a pool.

        Args:
            network: Upstream network id
            pool_address: Pool contract address
            timeframe: "day", "hour" or "minute"
            aggregate: Candle aggregation factor (e.g. 4 with "hour" = 4h candles)
            limit: Number of candles
            currency: "usd" or "token"
            before_timestamp: Only candles before this unix timestamp

        Returns:
            list: ``[timestamp, open, high, low, close, volume]`` rows

        Raises:
            ValueError: If ``timeframe`` or ``currency`` is not supported
        """
        timeframe = Timeframe(timeframe.lower() if isinstance(timeframe, str) else timeframe)
        currency = OhlcvCurrency(currency.lower() if isinstance(currency, str) else currency)

        params = {
            "aggregate": aggregate,
            "limit": limit,
            "currency": currency.value,
            "before_timestamp": before_timestamp,
        }
        payload = await self._request(
            "pool_ohlcv", params,
            network=network, address=pool_address, timeframe=timeframe.value,
        )
        record = self._unwrap_one(payload)
        return list(record.get("ohlcv_list") or [])

    async def get_pool_trades(self, network: str, pool_address: str) -> List[Dict[str, Any]]:
        """Recent trades in a pool."""
        payload = await self._request("pool_trades", network=network, address=pool_address)
        return self._unwrap_list(payload)

    # =========================================================================
    # Tokens
    # =========================================================================

    async def get_token(self, network: str, token_address: str) -> Dict[str, Any]:
        """Token metadata and market data."""
        payload = await self._request("token", network=network, address=token_address)
        return self._unwrap_one(payload)

    async def get_multiple_tokens(self, network: str, token_addresses: Union[str, Sequence[str]]) -> List[Dict[str, Any]]:
        payload = await self._request("tokens_multi", network=network, addresses=_join(token_addresses))
        return self._unwrap_list(payload)

    async def get_token_pools(self, network: str, token_address: str, page: int = 1) -> List[Dict[str, Any]]:
        """Pools trading ``token_address`` on ``network``."""
        payload = await self._request("token_pools", {"page": page}, network=network, address=token_address)
        return self._unwrap_list(payload)

    async def get_token_price(self, network: str, token_addresses: Union[str, Sequence[str]]) -> Dict[str, str]:
        """USD prices keyed by contract address."""
        payload = await self._request("token_price", network=network, addresses=_join(token_addresses))
        record = self._unwrap_one(payload)
        return dict(record.get("token_prices") or {})

    # =========================================================================
    # Convenience compositions (share cache keys with the calls they build on)
    # =========================================================================

    async def get_top_pools_by_volume(self, network: str, limit: int = 10) -> List[Dict[str, Any]]:
        """First page of network pools sorted by 24h volume, truncated to ``limit``."""
        pools = await self.get_network_pools(network, page=1)
        ranked = sorted(pools, key=lambda p: _to_float((p.get("volume_usd") or {}).get("h24")), reverse=True)
        return ranked[:limit]

    async def get_top_pools_by_liquidity(self, network: str, limit: int = 10) -> List[Dict[str, Any]]:
        """First page of network pools sorted by reserve (USD), truncated to ``limit``."""
        pools = await self.get_network_pools(network, page=1)
        ranked = sorted(pools, key=lambda p: _to_float(p.get("reserve_in_usd")), reverse=True)
        return ranked[:limit]

    async def search_pools_by_token(self, network: str, token_address: str) -> List[Dict[str, Any]]:
        return await self.get_token_pools(network, token_address, page=1)
