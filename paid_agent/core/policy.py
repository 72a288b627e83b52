"""
Decision policy.

Pure functions mapping tier responses to escalation choices and trade
actions. No side effects, no network access.

Thresholds:
- Signal bands: weak < 0.5 <= medium < 0.8 <= strong
- Deep analysis escalates to sentiment when strength > 0.7
- Batch escalates to deep analysis when strength > 0.8
- BUY/SELL need |change| > 5% and confidence > 0.7 (strict)
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

WEAK_SIGNAL_CEILING = 0.5
STRONG_SIGNAL_FLOOR = 0.8

DEEP_ANALYSIS_THRESHOLD = 0.7
BATCH_ESCALATION_THRESHOLD = 0.8
BATCH_STOP_RATIO = Decimal("0.9")

MIN_PERCENT_CHANGE = 5.0
MIN_CONFIDENCE = 0.7


class SignalBand(Enum):
    """Strength band of a market signal."""
    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"


class Action(Enum):
    """Outcome of one workflow invocation for one symbol."""
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"
    PASS = "PASS"
    SKIP = "SKIP"
    ERROR = "ERROR"


@dataclass(frozen=True)
class Decision:
    """Terminal result of a workflow for a single symbol."""
    symbol: str
    action: Action
    total_spent: Decimal
    reason: Optional[str] = None
    confidence: Optional[float] = None
    error: Optional[str] = None
    states: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        result = {
            "symbol": self.symbol,
            "decision": self.action.value,
            "totalSpent": float(self.total_spent),
        }
        if self.reason is not None:
            result["reason"] = self.reason
        if self.confidence is not None:
            result["confidence"] = self.confidence
        if self.error is not None:
            result["error"] = self.error
        return result


def classify_signal(strength: float) -> SignalBand:
    """Band a signal strength. Boundary values belong to the higher band."""
    if strength < WEAK_SIGNAL_CEILING:
        return SignalBand.WEAK
    if strength < STRONG_SIGNAL_FLOOR:
        return SignalBand.MEDIUM
    return SignalBand.STRONG


def confirms_signal(sentiment_label: Optional[str], trend_label: str) -> bool:
    """True iff the sentiment label equals the trend label.

    Sentiment labels (positive/negative/neutral) and trend labels
    (bullish/bearish/neutral) only coincide on "neutral".
    """
    return sentiment_label == trend_label


def final_decision(
    percent_change: float,
    confidence: float,
    sentiment_label: Optional[str]
) -> Action:
    """Map a price prediction to a trade action.

    Args:
        percent_change: Predicted change in percent
        confidence: Prediction confidence in [0, 1]
        sentiment_label: Sentiment label, or None when sentiment was skipped

    Returns:
        BUY, SELL or HOLD. Ties on either threshold fall to HOLD.
    """
    if (percent_change > MIN_PERCENT_CHANGE and confidence > MIN_CONFIDENCE
            and sentiment_label == "positive"):
        return Action.BUY
    if percent_change < -MIN_PERCENT_CHANGE and confidence > MIN_CONFIDENCE:
        return Action.SELL
    return Action.HOLD
