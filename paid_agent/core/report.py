"""
Spending reports.

Read-only aggregation of a spend ledger. Reports are never stored; build a
new one whenever a fresh view is needed.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from .ledger import SpendLedger


@dataclass(frozen=True)
class BudgetSummary:
    cap: Decimal
    spent: Decimal
    remaining: Decimal
    utilization_percent: float


@dataclass(frozen=True)
class TransactionSummary:
    total: int
    successful: int
    failed: int
    success_rate_percent: float


@dataclass(frozen=True)
class EndpointUsage:
    count: int
    total_cost: Decimal


@dataclass(frozen=True)
class SpendingReport:
    """Snapshot of an agent's spend at one point in time."""
    agent: str
    budget: BudgetSummary
    transactions: TransactionSummary
    endpoints: Dict[str, EndpointUsage]
    timestamp: datetime

    def to_dict(self) -> dict:
        """Plain, JSON-ready view of the report."""
        return {
            "agent": self.agent,
            "budget": {
                "cap": float(self.budget.cap),
                "spent": float(self.budget.spent),
                "remaining": float(self.budget.remaining),
                "utilizationPercent": round(self.budget.utilization_percent, 1),
            },
            "transactions": {
                "total": self.transactions.total,
                "successful": self.transactions.successful,
                "failed": self.transactions.failed,
                "successRatePercent": round(self.transactions.success_rate_percent, 1),
            },
            "endpoints": {
                endpoint: {"count": usage.count, "totalCost": float(usage.total_cost)}
                for endpoint, usage in self.endpoints.items()
            },
            "timestamp": self.timestamp.isoformat(),
        }


def build_report(
    ledger: SpendLedger,
    agent: str,
    timestamp: Optional[datetime] = None
) -> SpendingReport:
    """Aggregate ledger state into a spending report.

    Endpoint usage only counts successful calls, since failed calls are
    never charged. Endpoints appear in order of their first charged call.

    Args:
        ledger: Ledger to summarize
        agent: Agent identifier shown on the report
        timestamp: Report time (defaults to now)

    Returns:
        SpendingReport snapshot
    """
    transactions = ledger.transactions
    spent = ledger.spent_today

    successful = sum(1 for t in transactions if t.succeeded)
    failed = len(transactions) - successful
    success_rate = (successful / len(transactions) * 100) if transactions else 0.0

    endpoints: Dict[str, EndpointUsage] = {}
    for t in transactions:
        if not t.succeeded:
            continue
        usage = endpoints.get(t.endpoint, EndpointUsage(0, Decimal("0")))
        endpoints[t.endpoint] = EndpointUsage(usage.count + 1, usage.total_cost + t.cost)

    return SpendingReport(
        agent=agent,
        budget=BudgetSummary(
            cap=ledger.cap,
            spent=spent,
            remaining=ledger.cap - spent,
            utilization_percent=float(spent / ledger.cap * 100),
        ),
        transactions=TransactionSummary(
            total=len(transactions),
            successful=successful,
            failed=failed,
            success_rate_percent=success_rate,
        ),
        endpoints=endpoints,
        timestamp=timestamp or datetime.now(),
    )
