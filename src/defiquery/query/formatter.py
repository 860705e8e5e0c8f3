from __future__ import annotations

"""Response Formatter
====================

Pure conversion of router results into ``ResponseEnvelope`` objects. No I/O.

Numeric rendering is shared by every result kind:

- ``format_large_number``: ``1.23B`` / ``4.56M`` / ``7.89K`` / ``999.00``
- ``format_price``: two decimals (thousands separated) at or above 1,
  up to eight decimals below 1
- ``format_change``: up/down marker, ``+`` for non-negative, two decimals, ``%``
- ``safe_number``: anything missing, unparseable or non-finite becomes ``0``
"""

import math
from typing import Any, Dict, List, Mapping, Optional

from defiquery.config import NetworkConfig
from defiquery.toolkits.utils import ResponseBuilder
from defiquery.types import (
    ChartResult,
    ErrorInfo,
    ErrorResult,
    PoolDetailsResult,
    PoolListResult,
    RawResult,
    ResponseEnvelope,
    TokenInfoResult,
    TypedQuery,
)

__all__ = [
    "ResponseFormatter",
    "NO_POOLS_MESSAGE",
    "safe_number",
    "format_large_number",
    "format_price",
    "format_change",
]

NO_POOLS_MESSAGE = "No pools found matching your criteria."

UP_MARKER = "🟢"
DOWN_MARKER = "🔴"

_FOCUS_MARKERS = {"volume": "💵", "liquidity": "💧"}

_TIMEFRAME_ADJECTIVES = {"day": "daily", "hour": "hourly", "minute": "minute"}
_TIMEFRAME_MINUTES = {"day": 1440, "hour": 60, "minute": 1}


def safe_number(value: Any) -> float:
    """Coerce ``value`` to a finite float, ``0.0`` otherwise."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        num = float(value)
    except (TypeError, ValueError):
        return 0.0
    return num if math.isfinite(num) else 0.0


def format_large_number(value: Any) -> str:
    num = safe_number(value)
    if num >= 1_000_000_000:
        return f"{num / 1_000_000_000:.2f}B"
    if num >= 1_000_000:
        return f"{num / 1_000_000:.2f}M"
    if num >= 1_000:
        return f"{num / 1_000:.2f}K"
    return f"{num:.2f}"


def format_price(value: Any) -> str:
    """Price with two decimals, or up to eight for sub-unit prices.

    Example:
        >>> format_price(1234.5)
        '1,234.50'
        >>> format_price(0.000123)
        '0.000123'
    """
    num = safe_number(value)
    if num >= 1:
        return f"{num:,.2f}"
    whole, _, fraction = f"{num:.8f}".rstrip("0").partition(".")
    return f"{whole}.{fraction.ljust(2, '0')}"


def format_change(value: Any) -> str:
    num = safe_number(value)
    if num == 0:
        num = 0.0  # drop the sign of -0.0
    if num >= 0:
        return f"{UP_MARKER} +{num:.2f}%"
    return f"{DOWN_MARKER} {num:.2f}%"


def _capitalize(value: Optional[str]) -> str:
    if not value:
        return ""
    return value[0].upper() + value[1:]


class ResponseFormatter:
    """Builds envelopes for every raw-result kind.

    Args:
        networks: Network key → ``NetworkConfig`` for display names
        digest_size: Number of pools listed in a pool-list message
        chart_limit: Candle count the router requests, used to describe chart spans
        builder: Envelope factory
    """

    def __init__(
        self,
        networks: Optional[Mapping[str, NetworkConfig]] = None,
        digest_size: int = 5,
        chart_limit: int = 168,
        builder: Optional[ResponseBuilder] = None,
    ):
        self._networks = dict(networks or {})
        self._digest_size = digest_size
        self._chart_limit = chart_limit
        self._builder = builder or ResponseBuilder()

    def format(self, result: RawResult, query: Optional[TypedQuery] = None) -> ResponseEnvelope:
        """Convert one router result into an envelope.

        Raises:
            TypeError: ``result`` is not one of the raw-result types
        """
        if isinstance(result, ErrorResult):
            return self._format_error(result)
        if isinstance(result, PoolListResult):
            return self._format_pool_list(result)
        if isinstance(result, PoolDetailsResult):
            return self._format_pool_details(result)
        if isinstance(result, ChartResult):
            return self._format_chart(result)
        if isinstance(result, TokenInfoResult):
            return self._format_token_info(result)
        raise TypeError(f"Unsupported result type: {type(result).__name__}")

    def network_label(self, network: Optional[str]) -> str:
        config = self._networks.get(network) if network else None
        return config.name if config else _capitalize(network)

    # =========================================================================
    # Pool lists
    # =========================================================================

    @staticmethod
    def pool_row(pool: Mapping[str, Any]) -> Dict[str, Any]:
        """Table row for one flattened pool record."""
        return {
            "name": pool.get("name"),
            "address": pool.get("address"),
            "priceUsd": safe_number(pool.get("base_token_price_usd")),
            "priceChange24h": safe_number((pool.get("price_change_percentage") or {}).get("h24")),
            "volume24h": safe_number((pool.get("volume_usd") or {}).get("h24")),
            "liquidity": safe_number(pool.get("reserve_in_usd")),
            "fdv": safe_number(pool.get("fdv_usd")),
            "txns24h": (pool.get("transactions") or {}).get("h24"),
            "poolCreatedAt": pool.get("pool_created_at"),
            "dex": pool.get("dex_id"),
        }

    def _pool_list_title(self, result: PoolListResult, count: int) -> str:
        suffix = f" on {self.network_label(result.network)}" if result.network else ""
        if result.is_trending:
            return f"Trending Pools{suffix}"
        if result.is_new:
            return f"Newest Pools{suffix}"
        if result.token:
            return f"Pools Trading {result.token.upper()}"
        if result.dex:
            return f"Top Pools on {_capitalize(result.dex)}"
        return f"Top {count} Pools on {self.network_label(result.network)}"

    def _pool_digest(self, rows: List[Dict[str, Any]]) -> str:
        lines = []
        for rank, row in enumerate(rows[:self._digest_size], start=1):
            lines.append(
                f"#{rank} {row['name']} - ${format_price(row['priceUsd'])}\n"
                f"Vol: ${format_large_number(row['volume24h'])} | "
                f"Liq: ${format_large_number(row['liquidity'])} | "
                f"{format_change(row['priceChange24h'])}"
            )
        return "\n\n".join(lines)

    @staticmethod
    def _pool_summary(rows: List[Dict[str, Any]]) -> Dict[str, float]:
        # Aggregates cover every returned pool, not only the digest
        count = len(rows)
        return {
            "count": count,
            "totalVolume": sum(row["volume24h"] for row in rows),
            "totalLiquidity": sum(row["liquidity"] for row in rows),
            "avgPriceChange": sum(row["priceChange24h"] for row in rows) / count if count else 0.0,
        }

    def _format_pool_list(self, result: PoolListResult) -> ResponseEnvelope:
        if not result.pools:
            return self._builder.error_response(message=NO_POOLS_MESSAGE)

        rows = [self.pool_row(pool) for pool in result.pools]
        return self._builder.success_response(
            data=rows,
            visualization="table",
            title=self._pool_list_title(result, len(rows)),
            message=self._pool_digest(rows),
            summary=self._pool_summary(rows),
        )

    # =========================================================================
    # Single pool / chart / token
    # =========================================================================

    def _format_pool_details(self, result: PoolDetailsResult) -> ResponseEnvelope:
        pool = result.pool
        marker = _FOCUS_MARKERS.get(result.focus, "📊")
        txns = (pool.get("transactions") or {}).get("h24") or {}

        message = (
            f"{marker} **{pool.get('name')}**\n\n"
            f"Network: {self.network_label(result.network)}\n"
            f"Price: ${format_price(pool.get('base_token_price_usd'))}\n"
            f"24h Volume: ${format_large_number((pool.get('volume_usd') or {}).get('h24'))}\n"
            f"Liquidity: ${format_large_number(pool.get('reserve_in_usd'))}\n"
            f"24h Change: {format_change((pool.get('price_change_percentage') or {}).get('h24'))}\n"
            f"DEX: {pool.get('dex_id')}\n"
            f"Transactions (24h): {txns.get('buys', 0)} buys / {txns.get('sells', 0)} sells"
        )

        return self._builder.success_response(
            data=self.pool_row(pool),
            visualization="card",
            title=pool.get("name"),
            message=message,
            highlight_field=result.focus,
        )

    def _chart_span(self, timeframe: str) -> str:
        minutes = self._chart_limit * _TIMEFRAME_MINUTES.get(timeframe, 60)
        adjective = _TIMEFRAME_ADJECTIVES.get(timeframe, timeframe)
        if minutes >= 1440:
            return f"{round(minutes / 1440)}-day {adjective}"
        return adjective

    def _format_chart(self, result: ChartResult) -> ResponseEnvelope:
        candles = [
            {
                "timestamp": row[0],
                "open": row[1],
                "high": row[2],
                "low": row[3],
                "close": row[4],
                "volume": row[5],
            }
            for row in result.ohlcv
            if len(row) >= 6
        ]

        return self._builder.success_response(
            data={
                "ohlcv": candles,
                "poolAddress": result.pool_address,
                "network": result.network,
            },
            visualization="chart",
            title="Pool Price Chart",
            message=(
                f"Here's the {self._chart_span(result.timeframe)} price chart "
                f"for the pool on {self.network_label(result.network)}"
            ),
        )

    def _format_token_info(self, result: TokenInfoResult) -> ResponseEnvelope:
        token = result.token
        title = f"{token.get('name')} ({token.get('symbol')})"
        message = (
            f"**{title}**\n\n"
            f"Price: ${format_price(token.get('price_usd'))}\n"
            f"Market Cap: ${format_large_number(token.get('market_cap_usd'))}\n"
            f"24h Volume: ${format_large_number((token.get('volume_usd') or {}).get('h24'))}\n"
            f"24h Change: {format_change((token.get('price_change_percentage') or {}).get('h24'))}\n"
            f"Network: {self.network_label(result.network)}"
        )

        return self._builder.success_response(
            data=dict(token),
            visualization="card",
            title=title,
            message=message,
        )

    def _format_error(self, result: ErrorResult) -> ResponseEnvelope:
        error = ErrorInfo(**result.error) if result.error else None
        return self._builder.error_response(message=result.message, error=error)
