"""
Configuration system for the defiquery pipeline.

This module provides a pydantic-validated configuration that can be built from:
- Built-in defaults
- YAML files
- Python dictionaries
- Programmatic configuration

Nothing here reads environment variables; the surrounding application is
responsible for deciding where a configuration file lives.
"""

import re
from pathlib import Path
from typing import Optional, Dict, Any, List, Union

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from loguru import logger

from .defaults import (
    DEFAULT_RATE_LIMIT_CONFIG,
    DEFAULT_CACHE_CONFIG,
    DEFAULT_TRANSPORT_CONFIG,
    DEFAULT_NETWORKS,
    DEFAULT_TOKENS,
    DEFAULT_QUERY_CONFIG,
    DEFAULT_LOGGING_CONFIG,
)

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_VALID_TIMEFRAMES = ("day", "hour", "minute")


class RateLimitConfig(BaseModel):
    """Throttling applied to every upstream dispatch."""
    max_concurrent: int = DEFAULT_RATE_LIMIT_CONFIG["max_concurrent"]
    min_interval_seconds: float = DEFAULT_RATE_LIMIT_CONFIG["min_interval_seconds"]

    @field_validator('max_concurrent')
    @classmethod
    def validate_concurrency(cls, v):
        if v < 1:
            raise ValueError('max_concurrent must be at least 1')
        return v

    @field_validator('min_interval_seconds')
    @classmethod
    def validate_interval(cls, v):
        if v < 0:
            raise ValueError('min_interval_seconds cannot be negative')
        return v


class CacheConfig(BaseModel):
    """Configuration for the response cache."""
    enabled: bool = DEFAULT_CACHE_CONFIG["enabled"]
    ttl_seconds: float = DEFAULT_CACHE_CONFIG["ttl_seconds"]
    check_period_seconds: Optional[float] = DEFAULT_CACHE_CONFIG["check_period_seconds"]

    @field_validator('ttl_seconds')
    @classmethod
    def validate_ttl(cls, v):
        if v <= 0:
            raise ValueError('ttl_seconds must be positive')
        return v


class TransportConfig(BaseModel):
    """Configuration for the cached, rate-limited HTTP transport."""
    base_url: str = DEFAULT_TRANSPORT_CONFIG["base_url"]
    timeout_seconds: float = DEFAULT_TRANSPORT_CONFIG["timeout_seconds"]
    headers: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_TRANSPORT_CONFIG["headers"]))
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip('/')

    @field_validator('timeout_seconds')
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError('timeout_seconds must be positive')
        return v


class NetworkConfig(BaseModel):
    """A chain the classifier recognizes and the upstream API serves."""
    id: str
    name: str
    chain_id: Optional[int] = None
    native_token: str = ""
    aliases: List[str] = Field(default_factory=list)

    def all_names(self, key: str) -> List[str]:
        """Every lower-cased word that refers to this network."""
        names = [key, self.name, self.id, *self.aliases]
        seen: List[str] = []
        for name in names:
            lowered = name.lower()
            if lowered not in seen:
                seen.append(lowered)
        return seen


class QueryConfig(BaseModel):
    """Classification, routing and formatting knobs."""
    default_network: str = DEFAULT_QUERY_CONFIG["default_network"]
    default_pool_limit: int = DEFAULT_QUERY_CONFIG["default_pool_limit"]
    max_question_length: int = DEFAULT_QUERY_CONFIG["max_question_length"]
    chart_timeframe: str = DEFAULT_QUERY_CONFIG["chart_timeframe"]
    chart_limit: int = DEFAULT_QUERY_CONFIG["chart_limit"]
    digest_size: int = DEFAULT_QUERY_CONFIG["digest_size"]

    @field_validator('chart_timeframe')
    @classmethod
    def validate_timeframe(cls, v):
        if v.lower() not in _VALID_TIMEFRAMES:
            raise ValueError(f'chart_timeframe must be one of: {list(_VALID_TIMEFRAMES)}')
        return v.lower()

    @field_validator('default_pool_limit', 'max_question_length', 'chart_limit', 'digest_size')
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError('value must be at least 1')
        return v


class LoggingConfig(BaseModel):
    """Configuration for logging."""
    level: str = DEFAULT_LOGGING_CONFIG["level"]
    format: str = "<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | <level>{message}</level>"
    enable_console: bool = DEFAULT_LOGGING_CONFIG["enable_console"]
    enable_file: bool = DEFAULT_LOGGING_CONFIG["enable_file"]
    file_path: Optional[str] = DEFAULT_LOGGING_CONFIG["file_path"]
    file_rotation: str = DEFAULT_LOGGING_CONFIG["file_rotation"]
    file_retention: int = DEFAULT_LOGGING_CONFIG["file_retention"]

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        valid_levels = ['TRACE', 'DEBUG', 'INFO', 'SUCCESS', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Log level must be one of: {valid_levels}')
        return v.upper()

    def get_log_file_path(self) -> Optional[Path]:
        """Get the log file path."""
        if self.file_path:
            return Path(self.file_path)
        return Path("logs") / "defiquery.log"


def _default_networks() -> Dict[str, NetworkConfig]:
    return {key: NetworkConfig(**value) for key, value in DEFAULT_NETWORKS.items()}


class DefiQueryConfig(BaseModel):
    """Top-level configuration for the whole pipeline."""
    transport: TransportConfig = Field(default_factory=TransportConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    networks: Dict[str, NetworkConfig] = Field(default_factory=_default_networks)
    tokens: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_TOKENS))

    @field_validator('networks')
    @classmethod
    def lowercase_network_keys(cls, v):
        if not v:
            raise ValueError('at least one network must be configured')
        return {key.lower(): value for key, value in v.items()}

    @field_validator('tokens')
    @classmethod
    def validate_token_addresses(cls, v):
        for symbol, address in v.items():
            if not _ADDRESS_RE.match(address):
                raise ValueError(f"Token '{symbol}' has an invalid contract address: {address}")
        return v

    @model_validator(mode="after")
    def check_default_network(self) -> "DefiQueryConfig":
        default = self.query.default_network.lower()
        if default not in self.networks:
            raise ValueError(
                f"default_network '{default}' is not configured. "
                f"Available: {list(self.networks.keys())}"
            )
        self.query.default_network = default
        return self

    def token_table(self) -> Dict[str, str]:
        """Lower-cased symbol → lower-cased contract address."""
        return {symbol.lower(): address.lower() for symbol, address in self.tokens.items()}

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "DefiQueryConfig":
        """
        Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file

        Returns:
            DefiQueryConfig instance

        Raises:
            FileNotFoundError: If the config file doesn't exist
            yaml.YAMLError: If the YAML is invalid
        """
        return cls.from_dict(_read_yaml(path))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DefiQueryConfig":
        """Create configuration from a dictionary."""
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()

    def merge_with(self, overlay: Dict[str, Any]) -> "DefiQueryConfig":
        """
        Merge this configuration with a (partial) dictionary, the dictionary taking precedence.

        Args:
            overlay: Partial configuration dictionary

        Returns:
            New DefiQueryConfig with merged values
        """
        return DefiQueryConfig.from_dict(_deep_merge(self.to_dict(), overlay))


def _read_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    logger.info(f"Loaded configuration from {path}")
    return data or {}


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge dictionaries."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(
    config_file: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> DefiQueryConfig:
    """
    Load configuration using the standard precedence:
    1. Default configuration
    2. Configuration file (if provided)
    3. Explicit overrides (if provided)

    Args:
        config_file: Optional path to YAML configuration file
        overrides: Optional partial configuration dictionary

    Returns:
        DefiQueryConfig instance
    """
    config = DefiQueryConfig()

    if config_file:
        config = config.merge_with(_read_yaml(config_file))

    if overrides:
        config = config.merge_with(overrides)

    logger.debug(
        f"Config ready: base_url={config.transport.base_url}, "
        f"default_network={config.query.default_network}, "
        f"cache_ttl={config.transport.cache.ttl_seconds}s"
    )
    return config
