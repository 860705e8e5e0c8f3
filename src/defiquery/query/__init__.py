"""
Question pipeline: classifier → router → formatter, fronted by QueryHandler.
"""

from .classifier import (
    ClassifierRule,
    CLASSIFIER_RULES,
    QueryClassifier,
    extract_contract_address,
    has_contract_address,
)
from .router import QueryRouter
from .formatter import (
    ResponseFormatter,
    NO_POOLS_MESSAGE,
    safe_number,
    format_large_number,
    format_price,
    format_change,
)
from .handler import QueryHandler, create_query_handler

__all__ = [
    "ClassifierRule",
    "CLASSIFIER_RULES",
    "QueryClassifier",
    "extract_contract_address",
    "has_contract_address",
    "QueryRouter",
    "ResponseFormatter",
    "NO_POOLS_MESSAGE",
    "safe_number",
    "format_large_number",
    "format_price",
    "format_change",
    "QueryHandler",
    "create_query_handler",
]
