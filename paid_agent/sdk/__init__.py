"""
SDK for the paid agent.

Transport and news collaborators the orchestrator calls out to.
"""

from .http_executor import CallResult, HttpPaidCallExecutor, PaidCallExecutor, TransportError
from .news import NewsProvider, StaticNewsProvider

__all__ = [
    "CallResult",
    "HttpPaidCallExecutor",
    "NewsProvider",
    "PaidCallExecutor",
    "StaticNewsProvider",
    "TransportError",
]
