"""
Default configurations for the defiquery pipeline.

These values reproduce the behavior of the public GeckoTerminal API client:
one request in flight, two seconds between dispatches, and a short cache so
repeated questions inside half a minute never hit the upstream twice.
"""

from typing import Dict, Any

DEFAULT_BASE_URL = "https://api.geckoterminal.com/api/v2"

# Public GeckoTerminal allows ~30 calls/minute; stay well under it
DEFAULT_RATE_LIMIT_CONFIG = {
    "max_concurrent": 1,
    "min_interval_seconds": 2.0,
}

DEFAULT_CACHE_CONFIG = {
    "enabled": True,
    "ttl_seconds": 30.0,
    "check_period_seconds": 60.0,
}

DEFAULT_TRANSPORT_CONFIG = {
    "base_url": DEFAULT_BASE_URL,
    "timeout_seconds": 30.0,
    "headers": {"Accept": "application/json"},
}

# Keyed by the word users type; `id` is the upstream network identifier
DEFAULT_NETWORKS: Dict[str, Dict[str, Any]] = {
    "base": {
        "id": "base",
        "name": "Base",
        "chain_id": 8453,
        "native_token": "ETH",
        "aliases": [],
    },
    "ethereum": {
        "id": "eth",
        "name": "Ethereum",
        "chain_id": 1,
        "native_token": "ETH",
        "aliases": ["mainnet"],
    },
    "arbitrum": {
        "id": "arbitrum",
        "name": "Arbitrum",
        "chain_id": 42161,
        "native_token": "ETH",
        "aliases": ["arb"],
    },
    "solana": {
        "id": "solana",
        "name": "Solana",
        "chain_id": None,
        "native_token": "SOL",
        "aliases": [],
    },
    "polygon": {
        "id": "polygon_pos",
        "name": "Polygon",
        "chain_id": 137,
        "native_token": "MATIC",
        "aliases": ["matic"],
    },
}

# Token symbols resolvable without a contract address (Base mainnet)
DEFAULT_TOKENS: Dict[str, str] = {
    "ETH": "0x4200000000000000000000000000000000000006",
    "USDC": "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913",
    "DEGEN": "0x4ed4e862860bed51a9570b96d89af5e1b0efefed",
    "cbBTC": "0xcbb7c0000ab88b473b1f5afd9ef808440eed33bf",
}

DEFAULT_QUERY_CONFIG = {
    "default_network": "base",
    "default_pool_limit": 10,
    "max_question_length": 500,
    "chart_timeframe": "hour",
    "chart_limit": 168,           # 7 days of hourly candles
    "digest_size": 5,
}

DEFAULT_LOGGING_CONFIG = {
    "level": "INFO",
    "enable_console": True,
    "enable_file": False,
    "file_path": None,
    "file_rotation": "10 MB",
    "file_retention": 3,
}
