"""
Tests for the CLI interface.
"""
import json
import os
import tempfile
from unittest.mock import patch

import pytest
import yaml
from typer.testing import CliRunner

from conftest import (
    PREDICTION_ENDPOINT,
    RESEARCH_ENDPOINT,
    SIGNAL_ENDPOINT,
    ScriptedExecutor,
    prediction_payload,
    signal_payload,
)
from paid_agent.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL
from paid_agent.core.orchestrator import TradingAgent
from paid_agent.sdk.news import StaticNewsProvider

runner = CliRunner()


@pytest.fixture
def scripted():
    """Route the CLI's agent through a scripted executor."""
    executor = ScriptedExecutor()

    def _build(config):
        return TradingAgent(config, executor, news_provider=StaticNewsProvider())

    with patch('paid_agent.cli.main._build_agent', side_effect=_build):
        yield executor


class TestCLI:
    """Test CLI commands."""

    def test_services_lists_tiers(self):
        result = runner.invoke(app, ["services"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "market_signal" in result.output
        assert "0.135" in result.output

    def test_analyze_smart(self, scripted):
        scripted.queue(SIGNAL_ENDPOINT, signal_payload(0.9))
        scripted.queue(PREDICTION_ENDPOINT, prediction_payload(change=-9.0))

        result = runner.invoke(app, ["analyze", "BTC"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "SELL" in result.output
        assert "Spending Report" in result.output

    def test_analyze_json_report(self, scripted):
        scripted.queue(SIGNAL_ENDPOINT, signal_payload(0.2))

        result = runner.invoke(app, ["analyze", "BTC", "--mode", "deep", "--json", "--budget", "2"])

        assert result.exit_code == EXIT_CODE_PASS
        output = json.loads(result.output[result.output.index("{\n"):])
        assert output["decisions"] == [{
            "symbol": "BTC",
            "decision": "HOLD",
            "totalSpent": 0.005,
            "reason": "Signal not strong enough for deep analysis",
        }]
        assert output["report"]["budget"]["cap"] == 2.0
        assert output["report"]["budget"]["spent"] == 0.005
        assert output["report"]["transactions"]["total"] == 1

    def test_analyze_unknown_mode(self, scripted):
        result = runner.invoke(app, ["analyze", "BTC", "--mode", "yolo"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert scripted.calls == []

    def test_analyze_budget_exceeded(self, scripted):
        result = runner.invoke(app, ["analyze", "BTC", "--budget", "0.001"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Insufficient budget" in result.output
        assert scripted.calls == []

    def test_analyze_transport_failure(self, scripted):
        result = runner.invoke(app, ["analyze", "BTC"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Analysis failed" in result.output

    def test_batch(self, scripted):
        scripted.queue(SIGNAL_ENDPOINT, signal_payload(0.3), signal_payload(0.4))

        result = runner.invoke(app, ["batch", "ETH", "SOL", "AVAX"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Analyzed 3 of 3 symbols" in result.output
        assert "SKIP" in result.output
        assert "ERROR" in result.output

    def test_research(self, scripted):
        scripted.queue(RESEARCH_ENDPOINT, {"data": [{"title": "Liquidity mining"}]})

        result = runner.invoke(app, ["research", "DeFi", "--limit", "1"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Liquidity mining" in result.output
        assert scripted.calls[0][3] == {"query": "DeFi", "limit": 1}

    def test_config_file_used(self, scripted):
        with tempfile.TemporaryDirectory() as temp_dir:
            path = os.path.join(temp_dir, "agent.yaml")
            with open(path, 'w', encoding='utf-8') as f:
                yaml.dump({"agent": {"name": "AlphaTrader-001", "budget": 3}}, f)
            scripted.queue(SIGNAL_ENDPOINT, signal_payload(0.1))

            result = runner.invoke(app, ["analyze", "BTC", "--config", path])

        assert result.exit_code == EXIT_CODE_PASS
        assert "AlphaTrader-001" in result.output
        assert "PASS" in result.output

    def test_invalid_config_file(self):
        result = runner.invoke(app, ["analyze", "BTC", "--config", "/nonexistent/agent.yaml"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Invalid configuration" in result.output

    @pytest.mark.parametrize("budget", ["nan", "inf"])
    def test_non_finite_budget_option(self, scripted, budget):
        result = runner.invoke(app, ["analyze", "BTC", "--budget", budget])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Invalid configuration" in result.output
        assert scripted.calls == []
