"""
Paid call executors.

An executor performs exactly one network call against a paid endpoint and
either returns the decoded payload or raises TransportError. Budget checks
and bookkeeping belong to the caller.
"""

import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional, Protocol

import requests

logger = logging.getLogger("paid_agent.http")

DEFAULT_TIMEOUT_SECONDS = 30.0


class TransportError(Exception):
    """Raised when a paid call fails in transit or is rejected remotely."""
    def __init__(
        self,
        endpoint: str,
        cost: Decimal,
        message: str,
        status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.endpoint = endpoint
        self.cost = cost
        self.status_code = status_code


@dataclass(frozen=True)
class CallResult:
    """Decoded response of one successful paid call."""
    data: Any
    request_id: Optional[str] = None
    duration_ms: int = 0


class PaidCallExecutor(Protocol):
    """Anything that can perform a single paid call."""

    def call(
        self,
        endpoint: str,
        cost: Decimal,
        method: str = "GET",
        payload: Optional[Dict[str, Any]] = None
    ) -> CallResult:
        ...


class HttpPaidCallExecutor:
    """Executor that calls paid services over HTTP.

    GET payloads are sent as query parameters, POST payloads as JSON. Any
    non-2xx answer, including 402 Payment Required, is a TransportError.
    Payment settlement itself is left to whatever sits behind ``headers``
    (an API key, a payment proxy token, ...).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None
    ):
        """Initialize the executor.

        Args:
            base_url: Service root, e.g. ``http://localhost:3000``
            timeout: Per-call timeout in seconds
            headers: Extra headers sent with every call
            session: Pre-configured session (defaults to a new one)

        Raises:
            ValueError: If base_url is empty or timeout is not positive
        """
        if not base_url or not base_url.strip():
            raise ValueError("base_url is required and cannot be empty")
        if timeout <= 0:
            raise ValueError("timeout must be > 0")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": "paid-agent/0.1"})
        if headers:
            self.session.headers.update(headers)

    def call(
        self,
        endpoint: str,
        cost: Decimal,
        method: str = "GET",
        payload: Optional[Dict[str, Any]] = None
    ) -> CallResult:
        method = method.upper()
        if method not in ("GET", "POST"):
            raise TransportError(endpoint, cost, f"Unsupported method: {method}")

        url = f"{self.base_url}{endpoint}"
        started = time.monotonic()
        try:
            if method == "GET":
                resp = self.session.get(url, params=payload, timeout=self.timeout)
            else:
                resp = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(endpoint, cost, f"{method} {endpoint} failed: {e}") from e

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.debug("%s %s -> %s in %dms", method, endpoint, resp.status_code, duration_ms)

        if resp.status_code == 402:
            raise TransportError(endpoint, cost, f"Payment required for {endpoint}", status_code=402)
        if not resp.ok:
            raise TransportError(
                endpoint, cost,
                f"{method} {endpoint} returned HTTP {resp.status_code}",
                status_code=resp.status_code
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise TransportError(
                endpoint, cost, f"{endpoint} returned invalid JSON",
                status_code=resp.status_code
            ) from e

        return CallResult(
            data=data,
            request_id=resp.headers.get("x-request-id"),
            duration_ms=duration_ms
        )
