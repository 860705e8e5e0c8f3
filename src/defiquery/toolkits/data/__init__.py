from __future__ import annotations
from .geckoterminal_toolkit import GeckoTerminalToolkit, Timeframe, OhlcvCurrency

__all__ = [
    "GeckoTerminalToolkit",
    "Timeframe",
    "OhlcvCurrency",
]
