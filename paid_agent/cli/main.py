"""
CLI interface for the paid agent.

Runs the agent workflows against live paid services and prints decisions
together with a spending report.
"""

import json
import logging
import sys
from dataclasses import replace
from decimal import Decimal
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from paid_agent.config.loader import AgentConfig, TransportConfig, load_agent_config
from paid_agent.core.ledger import BudgetExceeded
from paid_agent.core.orchestrator import ConfigurationError, TradingAgent
from paid_agent.core.report import SpendingReport, build_report
from paid_agent.sdk.http_executor import HttpPaidCallExecutor, TransportError
from paid_agent.sdk.news import StaticNewsProvider

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

DEFAULT_AGENT_NAME = "TradingAgent-1"
DEFAULT_BUDGET = Decimal("10.0")

ConfigOption = typer.Option(None, "--config", "-c", help="Path to agent YAML config")
BaseUrlOption = typer.Option(None, "--base-url", help="Override the services base URL")
BudgetOption = typer.Option(None, "--budget", "-b", help="Override the budget cap (USDC)")
JsonOption = typer.Option(False, "--json", help="Print decisions and the spending report as JSON")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(
    config_path: Optional[str],
    base_url: Optional[str],
    budget: Optional[float]
) -> AgentConfig:
    """Build the agent config from file and command-line overrides."""
    if config_path:
        config = load_agent_config(config_path)
    else:
        config = AgentConfig(name=DEFAULT_AGENT_NAME, budget=DEFAULT_BUDGET)

    if base_url:
        config = replace(config, transport=TransportConfig(
            base_url=base_url,
            timeout_seconds=config.transport.timeout_seconds
        ))
    if budget is not None:
        config = replace(config, budget=Decimal(str(budget)))
    return config


def _build_agent(config: AgentConfig) -> TradingAgent:
    executor = HttpPaidCallExecutor(
        base_url=config.transport.base_url,
        timeout=config.transport.timeout_seconds
    )
    return TradingAgent(config, executor, news_provider=StaticNewsProvider())


def _agent_from_options(config_path, base_url, budget) -> TradingAgent:
    try:
        return _build_agent(_load_config(config_path, base_url, budget))
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Invalid configuration:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
):
    """Budget-aware paid trading agent CLI."""
    _configure_logging(verbose)
    if ctx.invoked_subcommand is None:
        console.print("Paid Agent - Use --help to see available commands")


@app.command()
def services(config_path: Optional[str] = ConfigOption):
    """Show the configured paid service tiers."""
    try:
        config = _load_config(config_path, None, None)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Invalid configuration:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    table = Table(title="Paid Services")
    table.add_column("Tier")
    table.add_column("Endpoint")
    table.add_column("Cost (USDC)", justify="right")
    for name, service in config.services.as_dict().items():
        table.add_row(name, service.endpoint, str(service.cost))
    console.print(table)
    console.print(f"Total per full pass: {config.services.total_cost} USDC")


@app.command()
def analyze(
    symbol: str = typer.Argument(..., help="Symbol to analyze"),
    mode: str = typer.Option("smart", "--mode", "-m", help="Workflow: deep or smart"),
    config_path: Optional[str] = ConfigOption,
    base_url: Optional[str] = BaseUrlOption,
    budget: Optional[float] = BudgetOption,
    as_json: bool = JsonOption
):
    """Analyze a single symbol and print the trade decision."""
    if mode not in ("deep", "smart"):
        console.print(f"[red]Unknown mode:[/] {mode} (expected 'deep' or 'smart')")
        sys.exit(EXIT_CODE_FAIL)

    agent = _agent_from_options(config_path, base_url, budget)
    try:
        if mode == "deep":
            decision = agent.deep_analysis(symbol)
        else:
            decision = agent.smart_analysis(symbol)
    except (BudgetExceeded, TransportError, ConfigurationError, ValueError) as e:
        console.print(f"[red]Analysis failed:[/] {str(e)}")
        _display_report(build_report(agent.ledger, agent.name), as_json)
        sys.exit(EXIT_CODE_FAIL)

    _display_report(build_report(agent.ledger, agent.name), as_json, [decision])
    sys.exit(EXIT_CODE_PASS)


@app.command()
def batch(
    symbols: List[str] = typer.Argument(..., help="Symbols to analyze"),
    config_path: Optional[str] = ConfigOption,
    base_url: Optional[str] = BaseUrlOption,
    budget: Optional[float] = BudgetOption,
    as_json: bool = JsonOption
):
    """Cost-optimized analysis of several symbols."""
    agent = _agent_from_options(config_path, base_url, budget)
    decisions = agent.analyze_batch(symbols)

    console.print(f"Analyzed {len(decisions)} of {len(symbols)} symbols")
    _display_report(build_report(agent.ledger, agent.name), as_json, decisions)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def research(
    topic: str = typer.Argument(..., help="Research topic"),
    limit: int = typer.Option(5, "--limit", "-l", help="Maximum papers to return"),
    config_path: Optional[str] = ConfigOption,
    base_url: Optional[str] = BaseUrlOption,
    budget: Optional[float] = BudgetOption,
    as_json: bool = JsonOption
):
    """Buy a research-paper search for a topic."""
    agent = _agent_from_options(config_path, base_url, budget)
    try:
        result = agent.research_topic(topic, limit=limit)
    except (BudgetExceeded, TransportError, ValueError) as e:
        console.print(f"[red]Research failed:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(f"\n[bold]Papers found:[/bold] {len(result.papers)}")
    for paper in result.papers:
        console.print(f"- {paper.get('title', '(untitled)')}")
    _display_report(build_report(agent.ledger, agent.name), as_json)
    sys.exit(EXIT_CODE_PASS)


def _format_currency(amount: Decimal) -> str:
    """Format a USDC amount."""
    return f"${amount:,.3f}"


def _display_decisions(decisions) -> None:
    table = Table(title="Decisions")
    table.add_column("Symbol")
    table.add_column("Decision")
    table.add_column("Spent", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Note")
    for decision in decisions:
        confidence = f"{decision.confidence * 100:.1f}%" if decision.confidence is not None else "-"
        table.add_row(
            decision.symbol,
            decision.action.value,
            _format_currency(decision.total_spent),
            confidence,
            decision.error or decision.reason or ""
        )
    console.print(table)


def _display_report(report: SpendingReport, as_json: bool = False, decisions=None) -> None:
    """Display the spending report in a clean, financial format."""
    if as_json:
        output = {"report": report.to_dict()}
        if decisions is not None:
            output["decisions"] = [decision.to_dict() for decision in decisions]
        console.print_json(json.dumps(output))
        return

    if decisions:
        _display_decisions(decisions)

    console.print(f"\n[bold]Spending Report[/bold] - {report.agent}")
    console.print("-" * 40)
    console.print(
        f"Budget: {_format_currency(report.budget.spent)} of "
        f"{_format_currency(report.budget.cap)} "
        f"({report.budget.utilization_percent:.1f}% used, "
        f"{_format_currency(report.budget.remaining)} remaining)"
    )
    console.print(
        f"Transactions: {report.transactions.total} "
        f"({report.transactions.successful} ok, {report.transactions.failed} failed, "
        f"{report.transactions.success_rate_percent:.1f}% success)"
    )

    if not report.endpoints:
        return

    table = Table()
    table.add_column("Endpoint")
    table.add_column("Calls", justify="right")
    table.add_column("Total cost", justify="right")
    for endpoint, usage in report.endpoints.items():
        table.add_row(endpoint, str(usage.count), _format_currency(usage.total_cost))
    console.print(table)


if __name__ == "__main__":
    app()
