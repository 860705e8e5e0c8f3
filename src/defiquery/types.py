from __future__ import annotations

"""Core data types for the question → envelope pipeline.

`TypedQuery` is what the classifier produces, the `*Result` dataclasses are
the tagged union flowing from the router to the formatter, and
`ResponseEnvelope` is the contract handed back to the calling UI layer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

__all__ = [
    "OperationKind",
    "TypedQuery",
    "PoolListResult",
    "PoolDetailsResult",
    "ChartResult",
    "TokenInfoResult",
    "ErrorResult",
    "RawResult",
    "ErrorInfo",
    "ResponseEnvelope",
    "Visualization",
]


class OperationKind(str, Enum):
    """Closed set of operations a question can be classified into."""
    POOL_DETAILS = "pool_details"
    PRICE_CHART = "price_chart"
    CHART = "chart"
    VOLUME = "volume"
    LIQUIDITY = "liquidity"
    DEX_POOLS = "dex_pools"
    UNISWAP_POOLS = "uniswap_pools"
    POOLS_TRADING = "pools_trading"
    TOP_POOLS = "top_pools"
    TRENDING_POOLS = "trending_pools"
    NEW_POOLS = "new_pools"
    TOKEN_PRICE = "token_price"
    TOKEN_INFO = "token_info"
    UNKNOWN = "unknown"


@dataclass
class TypedQuery:
    """Structured result of classifying one free-text question."""
    kind: OperationKind
    network: str
    params: Dict[str, Any] = field(default_factory=dict)
    original_query: str = ""


# Router → Formatter tagged union. `type` is the discriminator; the provenance
# flags only drive title/message construction in the formatter.

@dataclass
class PoolListResult:
    type: ClassVar[str] = "poolList"
    pools: List[Dict[str, Any]]
    network: Optional[str] = None
    is_trending: bool = False
    is_new: bool = False
    token: Optional[str] = None
    dex: Optional[str] = None


@dataclass
class PoolDetailsResult:
    type: ClassVar[str] = "poolDetails"
    pool: Dict[str, Any]
    network: str
    focus: str = "generic"


@dataclass
class ChartResult:
    type: ClassVar[str] = "chart"
    ohlcv: List[List[float]]
    pool_address: str
    network: str
    timeframe: str = "hour"


@dataclass
class TokenInfoResult:
    type: ClassVar[str] = "tokenInfo"
    token: Dict[str, Any]
    network: str


@dataclass
class ErrorResult:
    type: ClassVar[str] = "error"
    message: Optional[str] = None
    error: Optional[Dict[str, Any]] = None


RawResult = Union[PoolListResult, PoolDetailsResult, ChartResult, TokenInfoResult, ErrorResult]

Visualization = Literal["table", "card", "chart"]


class ErrorInfo(BaseModel):
    """Serializable projection of a pipeline error."""
    error_type: str
    error_code: str
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)


class ResponseEnvelope(BaseModel):
    """Uniform output contract consumed by the presentation layer.

    Invariants:
        - ``success=False`` implies ``data`` is absent and ``message`` explains why.
        - ``success=True`` implies ``data`` is present.
    """
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    title: Optional[str] = None
    message: Optional[str] = None
    summary: Optional[Dict[str, float]] = None
    data: Optional[Any] = None
    visualization: Optional[Visualization] = None
    highlight_field: Optional[str] = Field(default=None, alias="highlightField")
    error: Optional[ErrorInfo] = None

    @model_validator(mode="after")
    def check_success_invariants(self) -> "ResponseEnvelope":
        if self.success:
            if self.data is None:
                raise ValueError("successful envelope must carry data")
        else:
            if self.data is not None:
                raise ValueError("failed envelope must not carry data")
            if not self.message:
                raise ValueError("failed envelope must carry a message")
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Dump with the wire field names, omitting absent fields."""
        return self.model_dump(exclude_none=True, by_alias=True)
