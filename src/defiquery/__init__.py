"""
defiquery - natural-language DeFi market questions answered from GeckoTerminal.

Quick start:
    from defiquery import create_query_handler

    async with create_query_handler() as handler:
        envelope = await handler.handle_query("trending pools on base")
        print(envelope.to_dict())
"""

__version__ = "0.1.0"

from .config import DefiQueryConfig, load_config
from .core import setup_logging
from .exceptions import (
    DefiQueryError,
    TransportError,
    RateLimitedError,
    NotFoundError,
    BadRequestError,
    UpstreamError,
    NetworkError,
    QueryError,
    UnrecognizedQueryError,
    MissingParameterError,
    InvalidQuestionError,
)
from .types import (
    OperationKind,
    TypedQuery,
    PoolListResult,
    PoolDetailsResult,
    ChartResult,
    TokenInfoResult,
    ErrorResult,
    ErrorInfo,
    ResponseEnvelope,
)
from .query import (
    QueryClassifier,
    QueryRouter,
    ResponseFormatter,
    QueryHandler,
    create_query_handler,
)
from .toolkits import CachedTransport, GeckoTerminalToolkit

__all__ = [
    "__version__",
    "DefiQueryConfig",
    "load_config",
    "setup_logging",
    "DefiQueryError",
    "TransportError",
    "RateLimitedError",
    "NotFoundError",
    "BadRequestError",
    "UpstreamError",
    "NetworkError",
    "QueryError",
    "UnrecognizedQueryError",
    "MissingParameterError",
    "InvalidQuestionError",
    "OperationKind",
    "TypedQuery",
    "PoolListResult",
    "PoolDetailsResult",
    "ChartResult",
    "TokenInfoResult",
    "ErrorResult",
    "ErrorInfo",
    "ResponseEnvelope",
    "QueryClassifier",
    "QueryRouter",
    "ResponseFormatter",
    "QueryHandler",
    "create_query_handler",
    "CachedTransport",
    "GeckoTerminalToolkit",
]
