from __future__ import annotations

"""Query Router
==============

Dispatches a ``TypedQuery`` to the adapter operation(s) that answer it and
wraps the records in the matching raw-result type. Missing or unresolvable
parameters fail fast here, before any upstream call is made.
"""

from typing import Awaitable, Callable, Dict, Mapping, Optional

from loguru import logger

from defiquery.config import DefiQueryConfig, NetworkConfig
from defiquery.exceptions import MissingParameterError, UnrecognizedQueryError
from defiquery.toolkits.data import GeckoTerminalToolkit
from defiquery.types import (
    ChartResult,
    OperationKind,
    PoolDetailsResult,
    PoolListResult,
    RawResult,
    TokenInfoResult,
    TypedQuery,
)

__all__ = ["QueryRouter"]

_FOCUS_BY_KIND = {
    OperationKind.POOL_DETAILS: "generic",
    OperationKind.VOLUME: "volume",
    OperationKind.LIQUIDITY: "liquidity",
}


class QueryRouter:
    """Maps operation kinds to adapter calls.

    Args:
        toolkit: GeckoTerminal operation catalog
        networks: Network key → ``NetworkConfig`` (for upstream ids)
        default_limit: Pool count when the query carries none
        chart_timeframe: OHLCV timeframe for chart questions
        chart_limit: OHLCV candle count for chart questions
    """

    def __init__(
        self,
        toolkit: GeckoTerminalToolkit,
        networks: Mapping[str, NetworkConfig],
        default_limit: int = 10,
        chart_timeframe: str = "hour",
        chart_limit: int = 168,
    ):
        self._toolkit = toolkit
        self._networks = dict(networks)
        self._default_limit = default_limit
        self._chart_timeframe = chart_timeframe
        self._chart_limit = chart_limit

        self._handlers: Dict[OperationKind, Callable[[TypedQuery, str], Awaitable[RawResult]]] = {
            OperationKind.TOP_POOLS: self._top_pools,
            OperationKind.TRENDING_POOLS: self._trending_pools,
            OperationKind.NEW_POOLS: self._new_pools,
            OperationKind.POOLS_TRADING: self._pools_trading,
            OperationKind.POOL_DETAILS: self._pool_details,
            OperationKind.VOLUME: self._pool_details,
            OperationKind.LIQUIDITY: self._pool_details,
            OperationKind.CHART: self._chart,
            OperationKind.PRICE_CHART: self._chart,
            OperationKind.TOKEN_PRICE: self._token_info,
            OperationKind.TOKEN_INFO: self._token_info,
            OperationKind.DEX_POOLS: self._dex_pools,
            OperationKind.UNISWAP_POOLS: self._dex_pools,
        }

    @classmethod
    def from_config(cls, toolkit: GeckoTerminalToolkit, config: DefiQueryConfig) -> "QueryRouter":
        return cls(
            toolkit=toolkit,
            networks=config.networks,
            default_limit=config.query.default_pool_limit,
            chart_timeframe=config.query.chart_timeframe,
            chart_limit=config.query.chart_limit,
        )

    def upstream_id(self, network: str) -> str:
        """Upstream network identifier for a network key (unknown keys pass through)."""
        config = self._networks.get(network)
        return config.id if config else network

    async def route(self, query: TypedQuery) -> RawResult:
        """Run the adapter call(s) for ``query``.

        Raises:
            UnrecognizedQueryError: ``query.kind`` has no route (including UNKNOWN)
            MissingParameterError: A required token address could not be resolved
            TransportError: Any upstream failure, unchanged
        """
        handler = self._handlers.get(query.kind)
        if handler is None:
            raise UnrecognizedQueryError(kind=query.kind.value)

        # Per-kind override beats the network detected anywhere in the question
        network = query.params.get("network") or query.network
        logger.debug(f"Routing {query.kind.value} on {network}")
        return await handler(query, network)

    @staticmethod
    def _require_token_address(query: TypedQuery) -> str:
        address = query.params.get("token_address")
        if not address:
            raise MissingParameterError.unrecognized_token(query.params.get("token"))
        return address

    # =========================================================================
    # Pool lists
    # =========================================================================

    async def _top_pools(self, query: TypedQuery, network: str) -> PoolListResult:
        limit = query.params.get("limit") or self._default_limit
        pools = await self._toolkit.get_network_pools(self.upstream_id(network), page=1)
        return PoolListResult(pools=pools[:limit], network=network)

    async def _trending_pools(self, query: TypedQuery, network: str) -> PoolListResult:
        override: Optional[str] = query.params.get("network")
        pools = await self._toolkit.get_trending_pools(self.upstream_id(override) if override else None)
        return PoolListResult(pools=pools, network=override, is_trending=True)

    async def _new_pools(self, query: TypedQuery, network: str) -> PoolListResult:
        override: Optional[str] = query.params.get("network")
        pools = await self._toolkit.get_new_pools(self.upstream_id(override) if override else None)
        return PoolListResult(pools=pools, network=override, is_new=True)

    async def _pools_trading(self, query: TypedQuery, network: str) -> PoolListResult:
        address = self._require_token_address(query)
        pools = await self._toolkit.get_token_pools(self.upstream_id(network), address)
        return PoolListResult(pools=pools, network=network, token=query.params.get("token"))

    async def _dex_pools(self, query: TypedQuery, network: str) -> PoolListResult:
        dex = query.params.get("dex")
        if not dex:
            raise MissingParameterError("dex", "Please name the DEX, e.g. \"pools on aerodrome dex\".")

        upstream = self.upstream_id(network)
        pools = await self._toolkit.get_dex_pools(upstream, f"{dex}-{upstream}")
        return PoolListResult(pools=pools, network=network, dex=dex)

    # =========================================================================
    # Single pool / token
    # =========================================================================

    async def _pool_details(self, query: TypedQuery, network: str) -> PoolDetailsResult:
        pool = await self._toolkit.get_pool(self.upstream_id(network), query.params["pool_address"])
        return PoolDetailsResult(pool=pool, network=network, focus=_FOCUS_BY_KIND[query.kind])

    async def _chart(self, query: TypedQuery, network: str) -> ChartResult:
        address = query.params["pool_address"]
        ohlcv = await self._toolkit.get_pool_ohlcv(
            self.upstream_id(network),
            address,
            timeframe=self._chart_timeframe,
            limit=self._chart_limit,
        )
        return ChartResult(ohlcv=ohlcv, pool_address=address, network=network, timeframe=self._chart_timeframe)

    async def _token_info(self, query: TypedQuery, network: str) -> TokenInfoResult:
        address = self._require_token_address(query)
        token = await self._toolkit.get_token(self.upstream_id(network), address)
        return TokenInfoResult(token=token, network=network)
