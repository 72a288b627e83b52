"""
News context providers for sentiment analysis.
"""

from typing import Protocol


class NewsProvider(Protocol):
    """Supplies the text that gets sent to the sentiment tier."""

    def fetch_context(self, symbol: str) -> str:
        ...


class StaticNewsProvider:
    """Returns a fixed momentum blurb for any symbol.

    Stands in for a real news feed when running the agent locally.
    """

    TEMPLATE = (
        "{symbol} shows strong momentum. Institutional investors are accumulating. "
        "Technical indicators suggest breakout potential. Volume increasing significantly."
    )

    def fetch_context(self, symbol: str) -> str:
        return self.TEMPLATE.format(symbol=symbol)
