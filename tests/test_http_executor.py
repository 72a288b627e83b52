"""
Unit tests for the HTTP paid call executor.

The requests session is mocked; no network traffic is made.
"""

from decimal import Decimal
from unittest.mock import Mock

import pytest
import requests

from paid_agent.sdk.http_executor import HttpPaidCallExecutor, TransportError


def _response(status_code=200, json_data=None, headers=None):
    resp = Mock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.headers = headers or {}
    if isinstance(json_data, Exception):
        resp.json.side_effect = json_data
    else:
        resp.json.return_value = json_data
    return resp


class TestHttpPaidCallExecutor:
    """Test HttpPaidCallExecutor request and error mapping."""

    def setup_method(self):
        """Set up a mocked session."""
        self.session = Mock()
        self.session.headers = {}
        self.executor = HttpPaidCallExecutor(
            "http://localhost:3000/", timeout=5, session=self.session
        )

    def test_init_validation(self):
        with pytest.raises(ValueError, match="base_url is required"):
            HttpPaidCallExecutor("")
        with pytest.raises(ValueError, match="timeout must be > 0"):
            HttpPaidCallExecutor("http://x", timeout=0, session=self.session)

    def test_extra_headers(self):
        executor = HttpPaidCallExecutor("http://x", headers={"X-Api-Key": "k"}, session=self.session)
        assert executor.session.headers["X-Api-Key"] == "k"

    def test_get_sends_query_params(self):
        """Test GET payload travels as query parameters."""
        self.session.get.return_value = _response(
            json_data={"data": {}}, headers={"x-request-id": "abc"}
        )

        result = self.executor.call("/api/v1/data/market-intelligence", Decimal("0.005"),
                                    "GET", {"symbol": "BTC"})

        self.session.get.assert_called_once_with(
            "http://localhost:3000/api/v1/data/market-intelligence",
            params={"symbol": "BTC"},
            timeout=5
        )
        assert result.data == {"data": {}}
        assert result.request_id == "abc"
        assert result.duration_ms >= 0

    def test_post_sends_json(self):
        self.session.post.return_value = _response(json_data={"ok": True})

        result = self.executor.call("/sentiment", Decimal("0.02"), "post", {"text": "hi"})

        self.session.post.assert_called_once_with(
            "http://localhost:3000/sentiment", json={"text": "hi"}, timeout=5
        )
        assert result.request_id is None

    def test_payment_required(self):
        """Test a 402 answer is a transport error."""
        self.session.get.return_value = _response(status_code=402, json_data={})

        with pytest.raises(TransportError) as excinfo:
            self.executor.call("/paid", Decimal("0.005"))

        assert excinfo.value.status_code == 402
        assert excinfo.value.endpoint == "/paid"
        assert excinfo.value.cost == Decimal("0.005")
        assert "Payment required" in str(excinfo.value)

    def test_server_error(self):
        self.session.get.return_value = _response(status_code=503)

        with pytest.raises(TransportError, match="HTTP 503"):
            self.executor.call("/paid", Decimal("0.005"))

    def test_network_error_wrapped(self):
        self.session.get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(TransportError, match="refused"):
            self.executor.call("/paid", Decimal("0.005"))

    def test_invalid_json(self):
        self.session.get.return_value = _response(json_data=ValueError("bad json"))

        with pytest.raises(TransportError, match="invalid JSON"):
            self.executor.call("/paid", Decimal("0.005"))

    def test_unsupported_method(self):
        with pytest.raises(TransportError, match="Unsupported method"):
            self.executor.call("/paid", Decimal("0.005"), "DELETE")
        self.session.get.assert_not_called()
        self.session.post.assert_not_called()
