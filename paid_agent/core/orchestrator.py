"""
Budget-aware multi-tier orchestration.

Drives the paid workflows for a trading agent. Every workflow climbs the
service tiers cheapest first and only escalates when the cheaper tier
justifies the next spend:

    market signal (C1) -> sentiment (C2) -> price prediction (C3)

Each paid call passes through a single gate:
1. Reserve - hold the cost on the ledger, refusing if it cannot be covered
2. Executor call - one network round trip
3. Settle - charge the hold on success, release it on failure; both are logged
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from paid_agent.config.loader import AgentConfig, ServiceConfig
from paid_agent.sdk.http_executor import PaidCallExecutor
from paid_agent.sdk.news import NewsProvider
from .ledger import SpendLedger
from .policy import (
    BATCH_ESCALATION_THRESHOLD,
    BATCH_STOP_RATIO,
    DEEP_ANALYSIS_THRESHOLD,
    Action,
    Decision,
    SignalBand,
    classify_signal,
    confirms_signal,
    final_decision,
)
from .responses import MarketSignal, PricePrediction, ResearchResult, SentimentResult

logger = logging.getLogger("paid_agent.orchestrator")

PREDICTION_TIMEFRAME = "24h"


class ConfigurationError(Exception):
    """Raised when a workflow is missing a required collaborator input."""


class WorkflowState(Enum):
    """States a single-symbol workflow moves through."""
    SIGNAL_FETCHED = "signal_fetched"
    SENTIMENT_FETCHED = "sentiment_fetched"
    PREDICTION_FETCHED = "prediction_fetched"
    TERMINATED = "terminated"


@dataclass
class _WorkflowRun:
    """Spend and state trail of one workflow invocation."""
    symbol: str
    spent: Decimal = Decimal("0")
    states: List[WorkflowState] = field(default_factory=list)

    def advance(self, state: WorkflowState, cost: Decimal) -> None:
        self.spent += cost
        self.states.append(state)

    def terminate(
        self,
        action: Action,
        reason: Optional[str] = None,
        confidence: Optional[float] = None
    ) -> Decision:
        self.states.append(WorkflowState.TERMINATED)
        return Decision(
            symbol=self.symbol,
            action=action,
            total_spent=self.spent,
            reason=reason,
            confidence=confidence,
            states=tuple(state.value for state in self.states),
        )


class TradingAgent:
    """Autonomous agent that buys data and inference under a hard budget.

    The agent owns nothing global: its spend lives in the ledger handed to
    it (or created from ``config.budget``), and every paid call goes through
    ``executor``.
    """

    def __init__(
        self,
        config: AgentConfig,
        executor: PaidCallExecutor,
        news_provider: Optional[NewsProvider] = None,
        ledger: Optional[SpendLedger] = None
    ):
        self.config = config
        self.name = config.name
        self.services = config.services
        self.executor = executor
        self.news_provider = news_provider
        self.ledger = ledger if ledger is not None else SpendLedger(cap=config.budget)

    # Paid call gate

    def _paid_call(
        self,
        service: ServiceConfig,
        method: str = "GET",
        payload: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Execute one paid call with budget check and bookkeeping.

        The cost is reserved on the ledger before the executor runs, so
        agents sharing a ledger cannot jointly overspend it.

        Raises:
            BudgetExceeded: If the ledger cannot cover the cost; the executor
                is never called and nothing is recorded
            TransportError: If the executor fails; recorded uncharged. Any
                other executor exception is recorded the same way and re-raised.
        """
        reservation = self.ledger.reserve(service.endpoint, service.cost)

        try:
            result = self.executor.call(service.endpoint, service.cost, method, payload)
        except Exception as e:
            self.ledger.settle_failure(reservation, str(e) or type(e).__name__)
            logger.error("[%s] Payment failed: %s (%s)", self.name, service.endpoint, e)
            raise

        self.ledger.settle_success(reservation, result.duration_ms, result.request_id)
        logger.info(
            "[%s] Payment successful: %s cost=%s USDC remaining=%s USDC",
            self.name, service.endpoint, service.cost, self.ledger.remaining
        )
        return result.data

    def _fetch_signal(self, symbol: str) -> MarketSignal:
        data = self._paid_call(self.services.market_signal, "GET", {"symbol": symbol})
        signal = MarketSignal.from_payload(symbol, data)
        logger.info(
            "[%s] Market data for %s: price=%s trend=%s strength=%.2f",
            self.name, symbol, signal.price, signal.trend, signal.strength
        )
        return signal

    def _fetch_sentiment(self, symbol: str) -> SentimentResult:
        if self.news_provider is None:
            raise ConfigurationError("Sentiment analysis requires a news provider")
        text = self.news_provider.fetch_context(symbol)
        if not text or not text.strip():
            raise ConfigurationError(f"News provider returned no text for {symbol}")

        data = self._paid_call(self.services.sentiment, "POST", {"text": text})
        sentiment = SentimentResult.from_payload(data)
        logger.info(
            "[%s] Sentiment for %s: %s (score=%s)",
            self.name, symbol, sentiment.sentiment, sentiment.score
        )
        return sentiment

    def _fetch_prediction(self, symbol: str, features: Optional[Dict[str, float]] = None) -> PricePrediction:
        payload: Dict[str, Any] = {"symbol": symbol, "timeframe": PREDICTION_TIMEFRAME}
        if features is not None:
            payload["features"] = features

        data = self._paid_call(self.services.prediction, "POST", payload)
        prediction = PricePrediction.from_payload(data)
        logger.info(
            "[%s] Price prediction for %s: %s -> %s (%.2f%%, confidence %.1f%%)",
            self.name, symbol, prediction.current_price, prediction.predicted_price,
            prediction.percent_change, prediction.confidence * 100
        )
        return prediction

    # Workflows

    def deep_analysis(self, symbol: str, signal: Optional[MarketSignal] = None) -> Decision:
        """Single-symbol analysis escalating through every tier.

        Sentiment is bought only for signals stronger than 0.7, and the
        prediction only when sentiment is positive and the trend bullish.

        Args:
            symbol: Asset symbol to analyze
            signal: Market signal already paid for by the caller. When given,
                the signal tier is not bought again but its cost still counts
                towards this decision's spend.

        Returns:
            Decision with the spend of every tier actually executed
        """
        logger.info("[%s] Starting market analysis for %s", self.name, symbol)
        run = _WorkflowRun(symbol)

        if signal is None:
            signal = self._fetch_signal(symbol)
        run.advance(WorkflowState.SIGNAL_FETCHED, self.services.market_signal.cost)

        if signal.strength <= DEEP_ANALYSIS_THRESHOLD:
            return run.terminate(Action.HOLD, "Signal not strong enough for deep analysis")

        sentiment = self._fetch_sentiment(symbol)
        run.advance(WorkflowState.SENTIMENT_FETCHED, self.services.sentiment.cost)

        if sentiment.sentiment != "positive" or signal.trend != "bullish":
            return run.terminate(Action.HOLD, "Sentiment and trend not favorable for prediction")

        prediction = self._fetch_prediction(symbol, features={
            "sentiment": sentiment.score,
            "volume": signal.volume,
            "volatility": signal.volatility,
        })
        run.advance(WorkflowState.PREDICTION_FETCHED, self.services.prediction.cost)

        action = final_decision(prediction.percent_change, prediction.confidence, sentiment.sentiment)
        return run.terminate(action, confidence=prediction.confidence)

    def smart_analysis(self, symbol: str) -> Decision:
        """Adaptive analysis that spends according to the signal band.

        - weak: stop after the signal (PASS)
        - medium: buy sentiment, predict only if it confirms the trend
        - strong: skip sentiment, go straight to prediction
        """
        run = _WorkflowRun(symbol)
        signal = self._fetch_signal(symbol)
        run.advance(WorkflowState.SIGNAL_FETCHED, self.services.market_signal.cost)

        band = classify_signal(signal.strength)
        if band == SignalBand.WEAK:
            return run.terminate(Action.PASS, "Weak signal, not worth deeper analysis")

        sentiment_label = None
        if band == SignalBand.MEDIUM:
            sentiment = self._fetch_sentiment(symbol)
            run.advance(WorkflowState.SENTIMENT_FETCHED, self.services.sentiment.cost)

            if not confirms_signal(sentiment.sentiment, signal.trend):
                logger.debug(
                    "[%s] Sentiment %r does not match trend %r for %s",
                    self.name, sentiment.sentiment, signal.trend, symbol
                )
                return run.terminate(Action.HOLD, "Sentiment does not confirm signal")
            sentiment_label = sentiment.sentiment

        prediction = self._fetch_prediction(symbol)
        run.advance(WorkflowState.PREDICTION_FETCHED, self.services.prediction.cost)

        action = final_decision(prediction.percent_change, prediction.confidence, sentiment_label)
        return run.terminate(action, confidence=prediction.confidence)

    def analyze_batch(self, symbols: Sequence[str]) -> List[Decision]:
        """Cost-optimized analysis of many symbols.

        Only symbols whose cheap signal is stronger than 0.8 get a deep
        analysis. Processing stops once 90% of the budget is spent; the
        decisions made so far are returned. A failing symbol becomes an
        ERROR entry and the batch moves on.
        """
        logger.info("[%s] Starting batch analysis for %d symbols", self.name, len(symbols))
        results: List[Decision] = []

        for symbol in symbols:
            try:
                signal = self._fetch_signal(symbol)
                if signal.strength > BATCH_ESCALATION_THRESHOLD:
                    results.append(self.deep_analysis(symbol, signal=signal))
                else:
                    results.append(Decision(
                        symbol=symbol,
                        action=Action.SKIP,
                        total_spent=self.services.market_signal.cost,
                        reason="weak signal",
                        states=(WorkflowState.SIGNAL_FETCHED.value, WorkflowState.TERMINATED.value),
                    ))
            except Exception as e:
                logger.error("[%s] Failed to analyze %s: %s", self.name, symbol, e)
                results.append(Decision(
                    symbol=symbol,
                    action=Action.ERROR,
                    total_spent=Decimal("0"),
                    error=str(e),
                ))

            if self.ledger.spent_today >= self.ledger.cap * BATCH_STOP_RATIO:
                logger.warning(
                    "[%s] Approaching budget limit (%s of %s USDC), stopping batch analysis",
                    self.name, self.ledger.spent_today, self.ledger.cap
                )
                break

        return results

    def research_topic(self, topic: str, limit: int = 5) -> ResearchResult:
        """Buy a research-paper search for a topic."""
        if not topic or not topic.strip():
            raise ValueError("topic is required and cannot be empty")
        logger.info("[%s] Researching topic: %s", self.name, topic)

        data = self._paid_call(self.services.research, "GET", {"query": topic, "limit": limit})
        result = ResearchResult.from_payload(data)
        logger.info(
            "[%s] Research papers retrieved: count=%d total=%s",
            self.name, len(result.papers), result.total
        )
        return result
