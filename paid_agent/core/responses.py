"""
Typed service responses.

Each paid tier returns its own payload shape. Payloads are validated here so
the decision logic never works on half-formed data.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

TRENDS = ("bullish", "bearish", "neutral")
SENTIMENTS = ("positive", "negative", "neutral")


class MalformedResponse(ValueError):
    """Raised when a service payload is missing fields or out of range."""


def _section(payload: Any, key: str, tier: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise MalformedResponse(f"{tier} response must be an object")
    value = payload.get(key)
    if not isinstance(value, Mapping):
        raise MalformedResponse(f"{tier} response missing '{key}' object")
    return value


def _number(data: Mapping[str, Any], key: str, tier: str) -> float:
    value = data.get(key)
    # bool is an int subclass but never a valid measurement
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResponse(f"{tier} field '{key}' must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise MalformedResponse(f"{tier} field '{key}' must be finite, got {value}")
    return float(value)


def _unit_interval(data: Mapping[str, Any], key: str, tier: str) -> float:
    value = _number(data, key, tier)
    if not 0.0 <= value <= 1.0:
        raise MalformedResponse(f"{tier} field '{key}' must be within [0, 1], got {value}")
    return value


def _label(data: Mapping[str, Any], key: str, allowed, tier: str) -> str:
    value = data.get(key)
    if value not in allowed:
        raise MalformedResponse(f"{tier} field '{key}' must be one of {list(allowed)}, got {value!r}")
    return value


@dataclass(frozen=True)
class MarketSignal:
    """Cheap market-intelligence tier."""
    symbol: str
    price: float
    trend: str
    strength: float
    volatility: float
    volume: float

    @classmethod
    def from_payload(cls, symbol: str, payload: Any) -> "MarketSignal":
        data = _section(payload, "data", "market signal")
        signals = _section(data, "signals", "market signal")
        return cls(
            symbol=symbol,
            price=_number(data, "price", "market signal"),
            trend=_label(signals, "trend", TRENDS, "market signal"),
            strength=_unit_interval(signals, "strength", "market signal"),
            volatility=_number(signals, "volatility", "market signal"),
            volume=_number(data, "volume", "market signal"),
        )


@dataclass(frozen=True)
class SentimentResult:
    """Mid-cost sentiment tier."""
    sentiment: str
    score: float

    @classmethod
    def from_payload(cls, payload: Any) -> "SentimentResult":
        data = _section(payload, "data", "sentiment")
        return cls(
            sentiment=_label(data, "sentiment", SENTIMENTS, "sentiment"),
            score=_number(data, "score", "sentiment"),
        )


@dataclass(frozen=True)
class PricePrediction:
    """Expensive prediction tier.

    ``percent_change`` is expressed in percent (``5.0`` means +5%).
    """
    current_price: float
    predicted_price: float
    percent_change: float
    confidence: float

    @classmethod
    def from_payload(cls, payload: Any) -> "PricePrediction":
        data = _section(payload, "data", "prediction")
        meta = _section(payload, "_meta", "prediction")
        return cls(
            current_price=_number(data, "currentPrice", "prediction"),
            predicted_price=_number(data, "predictedPrice", "prediction"),
            percent_change=_number(data, "change", "prediction"),
            confidence=_unit_interval(meta, "confidence", "prediction"),
        )


@dataclass(frozen=True)
class ResearchResult:
    """Research-paper search tier."""
    papers: List[Dict[str, Any]]
    total: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ResearchResult":
        if not isinstance(payload, Mapping):
            raise MalformedResponse("research response must be an object")
        papers = payload.get("data")
        if not isinstance(papers, list):
            raise MalformedResponse("research response missing 'data' list")
        meta = payload.get("_meta") or {}
        if not isinstance(meta, Mapping):
            meta = {}
        total = int(_number(meta, "total", "research")) if meta.get("total") is not None else None
        return cls(
            papers=[dict(paper) for paper in papers if isinstance(paper, Mapping)],
            total=total,
        )
