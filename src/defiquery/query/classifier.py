from __future__ import annotations

"""Query Classifier
==================

Turns a free-text DeFi question into a ``TypedQuery``.

Classification is an explicit, ordered list of ``ClassifierRule`` entries. The
lower-cased, trimmed question is tested against each rule in order and the
first match wins. Several patterns overlap ("top pools trading usdc" also
reads as "top pools"), so the more specific rule is always listed first and
``CLASSIFIER_RULES`` itself is part of the public contract.

``classify`` never raises: a question no rule matches yields
``OperationKind.UNKNOWN`` with empty params. Token symbols that have no
configured contract address are kept with ``token_address=None``; whether
that is an error is decided by the router.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Pattern, Tuple

from loguru import logger

from defiquery.config import DefiQueryConfig, NetworkConfig
from defiquery.types import OperationKind, TypedQuery

__all__ = [
    "ClassifierRule",
    "CLASSIFIER_RULES",
    "QueryClassifier",
    "extract_contract_address",
    "has_contract_address",
]

_ADDR = r"(0x[a-f0-9]{40})"
_CONTRACT_ADDRESS_RE = re.compile(r"0x[a-fA-F0-9]{40}")

Extractor = Callable[["QueryClassifier", "re.Match[str]"], Dict[str, Any]]


@dataclass(frozen=True)
class ClassifierRule:
    """One (kind, pattern, extractor) entry of the ordered rule list."""
    kind: OperationKind
    pattern: Pattern[str]
    extract: Extractor
    example: str


# =============================================================================
# Extractors
# =============================================================================

def _pool_address(classifier: "QueryClassifier", match: "re.Match[str]") -> Dict[str, Any]:
    return {"pool_address": match.group(1)}


def _dex(classifier: "QueryClassifier", match: "re.Match[str]") -> Dict[str, Any]:
    return {"dex": match.group(1)}


def _uniswap(classifier: "QueryClassifier", match: "re.Match[str]") -> Dict[str, Any]:
    return {"dex": "uniswap-v3", "network": classifier.resolve_network(match.group(1))}


def _token(classifier: "QueryClassifier", match: "re.Match[str]") -> Dict[str, Any]:
    return classifier.resolve_token(match.group(1))


def _top_pools(classifier: "QueryClassifier", match: "re.Match[str]") -> Dict[str, Any]:
    return {
        "limit": classifier.parse_limit(match.group(1)),
        "network": classifier.resolve_network(match.group(2)),
    }


def _network_override(classifier: "QueryClassifier", match: "re.Match[str]") -> Dict[str, Any]:
    # Only a network actually named in the question selects the per-network endpoint
    network = classifier.resolve_network(match.group(1)) or classifier.detect_network(match.string)
    return {"network": network}


def _token_price(classifier: "QueryClassifier", match: "re.Match[str]") -> Dict[str, Any]:
    params = classifier.resolve_token(match.group(1))
    params["network"] = classifier.resolve_network(match.group(2))
    return params


# =============================================================================
# Ordered rules (first match wins; more specific rules come first)
# =============================================================================

CLASSIFIER_RULES: Tuple[ClassifierRule, ...] = (
    ClassifierRule(
        OperationKind.POOL_DETAILS,
        re.compile(r"(?:pool|liquidity)\s+(?:details?|info|data)\s+(?:for\s+)?" + _ADDR),
        _pool_address,
        "pool details for 0x" + "a" * 40,
    ),
    ClassifierRule(
        OperationKind.PRICE_CHART,
        re.compile(r"price\s+chart\s+(?:for\s+)?(?:pool\s+)?" + _ADDR),
        _pool_address,
        "price chart for 0x" + "a" * 40,
    ),
    ClassifierRule(
        OperationKind.CHART,
        re.compile(r"chart\s+(?:for\s+)?(?:pool\s+)?" + _ADDR),
        _pool_address,
        "chart for pool 0x" + "a" * 40,
    ),
    ClassifierRule(
        OperationKind.VOLUME,
        re.compile(r"(?:trading\s+)?volume\s+(?:for\s+)?(?:pool\s+)?" + _ADDR),
        _pool_address,
        "trading volume for 0x" + "a" * 40,
    ),
    ClassifierRule(
        OperationKind.LIQUIDITY,
        re.compile(r"liquidity\s+(?:in\s+|for\s+)?(?:pool\s+)?" + _ADDR),
        _pool_address,
        "liquidity in pool 0x" + "a" * 40,
    ),
    ClassifierRule(
        OperationKind.DEX_POOLS,
        re.compile(r"pools?\s+on\s+(\w[\w-]*)\s+(?:dex|exchange)"),
        _dex,
        "pools on aerodrome dex",
    ),
    ClassifierRule(
        OperationKind.UNISWAP_POOLS,
        re.compile(r"uniswap\s+pools?(?:\s+(?:on\s+)?(\w+))?"),
        _uniswap,
        "uniswap pools on base",
    ),
    ClassifierRule(
        OperationKind.POOLS_TRADING,
        re.compile(r"pools?\s+(?:trading|with|for)\s+(\w+)"),
        _token,
        "pools trading usdc",
    ),
    ClassifierRule(
        OperationKind.TOP_POOLS,
        re.compile(r"top\s+(?:(\d+)\s+)?pools?(?:\s+(?:on\s+)?(\w+))?"),
        _top_pools,
        "top 5 pools on base",
    ),
    ClassifierRule(
        OperationKind.TRENDING_POOLS,
        re.compile(r"trending\s+pools?(?:\s+(?:on\s+)?(\w+))?"),
        _network_override,
        "trending pools on ethereum",
    ),
    ClassifierRule(
        OperationKind.NEW_POOLS,
        re.compile(r"new(?:est)?\s+pools?(?:\s+(?:on\s+)?(\w+))?"),
        _network_override,
        "newest pools on solana",
    ),
    ClassifierRule(
        OperationKind.TOKEN_PRICE,
        re.compile(r"(?:price|value)\s+(?:of\s+)?(\w+)(?:\s+on\s+(\w+))?"),
        _token_price,
        "price of usdc",
    ),
    ClassifierRule(
        OperationKind.TOKEN_INFO,
        re.compile(r"(?:info|information|data)\s+(?:about|for)\s+(\w+)"),
        _token,
        "info about degen",
    ),
)


# =============================================================================
# Address helpers
# =============================================================================

def extract_contract_address(text: str) -> Optional[str]:
    """Return the first 0x-prefixed 40-hex-digit address in ``text``, if any."""
    match = _CONTRACT_ADDRESS_RE.search(text or "")
    return match.group(0) if match else None


def has_contract_address(text: str) -> bool:
    return _CONTRACT_ADDRESS_RE.search(text or "") is not None


class QueryClassifier:
    """Ordered-rule classifier for DeFi market questions.

    Args:
        networks: Network key → ``NetworkConfig`` of recognizable chains
        tokens: Symbol → contract address table (case-insensitive symbols)
        default_network: Network key used when the question names none
        default_limit: Pool count used when the question gives no usable number
        rules: Rule list override, ``CLASSIFIER_RULES`` by default
    """

    def __init__(
        self,
        networks: Mapping[str, NetworkConfig],
        tokens: Mapping[str, str],
        default_network: str = "base",
        default_limit: int = 10,
        rules: Iterable[ClassifierRule] = CLASSIFIER_RULES,
    ):
        self._networks = dict(networks)
        self._tokens = {symbol.lower(): address.lower() for symbol, address in tokens.items()}
        self._default_network = default_network
        self._default_limit = default_limit
        self._rules = tuple(rules)

        # word → network key, for every key / name / upstream id / alias
        self._network_words: Dict[str, str] = {}
        for key, network in self._networks.items():
            for word in network.all_names(key):
                self._network_words.setdefault(word, key)

        # Free-text detection skips upstream ids ("eth" is also a token symbol)
        detectable = {
            word
            for key, network in self._networks.items()
            for word in (key, network.name.lower(), *(a.lower() for a in network.aliases))
        }
        names = sorted(detectable, key=len, reverse=True)
        self._network_re = re.compile(r"\b(" + "|".join(re.escape(n) for n in names) + r")\b")

    @classmethod
    def from_config(cls, config: DefiQueryConfig) -> "QueryClassifier":
        return cls(
            networks=config.networks,
            tokens=config.token_table(),
            default_network=config.query.default_network,
            default_limit=config.query.default_pool_limit,
        )

    @property
    def rules(self) -> Tuple[ClassifierRule, ...]:
        return self._rules

    @property
    def default_network(self) -> str:
        return self._default_network

    def detect_network(self, text: str) -> Optional[str]:
        """Network key of the first configured chain named as a whole word in ``text``."""
        match = self._network_re.search(text.lower())
        return self._network_words[match.group(1)] if match else None

    def resolve_network(self, word: Optional[str]) -> Optional[str]:
        """Map a captured word to a network key; unknown words resolve to None."""
        if not word:
            return None
        return self._network_words.get(word.lower())

    def resolve_token(self, symbol: Optional[str]) -> Dict[str, Any]:
        symbol = (symbol or "").lower() or None
        return {
            "token": symbol,
            "token_address": self._tokens.get(symbol) if symbol else None,
        }

    def parse_limit(self, raw: Optional[str]) -> int:
        try:
            limit = int(raw)
        except (TypeError, ValueError):
            return self._default_limit
        return limit if limit >= 1 else self._default_limit

    def classify(self, question: str) -> TypedQuery:
        """Classify ``question``; never raises.

        Returns:
            TypedQuery whose ``network`` is the detected chain or the default,
            and whose ``params`` come from the first matching rule.
        """
        normalized = (question or "").lower().strip()
        network = self.detect_network(normalized) or self._default_network

        for rule in self._rules:
            match = rule.pattern.search(normalized)
            if match is None:
                continue
            params = rule.extract(self, match)
            logger.debug(f"Classified {normalized!r} as {rule.kind.value} (network={network}, params={params})")
            return TypedQuery(kind=rule.kind, network=network, params=params, original_query=question)

        logger.debug(f"No rule matched {normalized!r}")
        return TypedQuery(kind=OperationKind.UNKNOWN, network=network, params={}, original_query=question)
