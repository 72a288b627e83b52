"""
Shared fixtures: canned service payloads and a scripted executor.
"""

from decimal import Decimal

import pytest

from paid_agent.config.loader import AgentConfig
from paid_agent.core.orchestrator import TradingAgent
from paid_agent.sdk.http_executor import CallResult, TransportError
from paid_agent.sdk.news import StaticNewsProvider

SIGNAL_ENDPOINT = "/api/v1/data/market-intelligence"
SENTIMENT_ENDPOINT = "/api/v1/models/sentiment-analysis"
PREDICTION_ENDPOINT = "/api/v1/models/price-prediction"
RESEARCH_ENDPOINT = "/api/v1/data/research-papers"

C1 = Decimal("0.005")
C2 = Decimal("0.02")
C3 = Decimal("0.10")


def signal_payload(strength, trend="bullish", price=100.0, volume=1000.0, volatility=0.2):
    return {
        "data": {
            "price": price,
            "volume": volume,
            "signals": {"trend": trend, "strength": strength, "volatility": volatility},
        }
    }


def sentiment_payload(sentiment="positive", score=0.8):
    return {"data": {"sentiment": sentiment, "score": score}}


def prediction_payload(change=7.5, confidence=0.9, current=100.0):
    return {
        "data": {
            "currentPrice": current,
            "predictedPrice": current * (1 + change / 100),
            "change": change,
        },
        "_meta": {"confidence": confidence},
    }


class ScriptedExecutor:
    """Executor returning queued payloads per endpoint and logging every call.

    Queue an Exception instance to make that call fail.
    """

    def __init__(self):
        self.responses = {}
        self.calls = []

    def queue(self, endpoint, *payloads):
        self.responses.setdefault(endpoint, []).extend(payloads)
        return self

    def call(self, endpoint, cost, method="GET", payload=None):
        self.calls.append((endpoint, cost, method, payload))
        queued = self.responses.get(endpoint)
        if not queued:
            raise TransportError(endpoint, cost, f"no scripted response for {endpoint}")
        response = queued.pop(0)
        if isinstance(response, Exception):
            raise response
        return CallResult(data=response, request_id=f"req-{len(self.calls)}", duration_ms=12)

    def endpoints_called(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def executor():
    return ScriptedExecutor()


@pytest.fixture
def make_agent(executor):
    """Build an agent over the scripted executor with a given budget."""
    def _make(budget="5.0", news_provider=StaticNewsProvider()):
        config = AgentConfig(name="TestAgent", budget=Decimal(budget))
        return TradingAgent(config, executor, news_provider=news_provider)
    return _make
