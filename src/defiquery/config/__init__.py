"""
Configuration module for defiquery.

Exports:
    - DefiQueryConfig: The main pydantic model for all configuration settings.
    - TransportConfig, RateLimitConfig, CacheConfig, NetworkConfig, QueryConfig,
      LoggingConfig: Sub-models for specific configuration sections.
    - load_config: Build configuration from defaults, a YAML file and overrides.
"""
from .config import (
    DefiQueryConfig,
    TransportConfig,
    RateLimitConfig,
    CacheConfig,
    NetworkConfig,
    QueryConfig,
    LoggingConfig,
    load_config,
)

__all__ = [
    "DefiQueryConfig",
    "TransportConfig",
    "RateLimitConfig",
    "CacheConfig",
    "NetworkConfig",
    "QueryConfig",
    "LoggingConfig",
    "load_config",
]
