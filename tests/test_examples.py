# ============================================================================
# EXAMPLE PROBES TESTS
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Tests - Sample probe implementations
# PURPOSE: Verify the shipped example probes against mocked and local targets
# CREATED: 19 OCT 2026
# ============================================================================
"""
Example Probes Tests

HTTP probes are exercised with httpx.Client / httpx.AsyncClient patched
out; the TCP probe runs against a real socket on localhost.

Run with:
    pytest tests/test_examples.py -v
"""

import asyncio
import socket
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from core.contracts import OutcomeKind
from probes import FunctionProbe, ProbeContext, ProbeError
from probes.examples import always_healthy, http_ok, http_ok_async, tcp_connect
from supervisor import ProbeSupervisor


URL = "http://orders.internal/healthz"


# ============================================================================
# HELPERS
# ============================================================================

def _ctx(**env):
    return ProbeContext.create(5, env=env)


def _response(status_code=200, text="ok"):
    resp = MagicMock()
    resp.status_code = status_code
    resp.is_success = 200 <= status_code < 300
    resp.text = text
    return resp


@pytest.fixture
def mock_client():
    """Patch httpx.Client inside the examples module; yields the client."""
    with patch("probes.examples.httpx.Client") as client_cls:
        client = MagicMock()
        client_cls.return_value.__enter__.return_value = client
        yield client


# ============================================================================
# TESTS
# ============================================================================

class TestAlwaysHealthy:

    def test_returns_none(self):
        assert always_healthy() is None


class TestHttpOk:
    """GET PROBE_HTTP_URL and require 2xx."""

    def test_success(self, mock_client):
        mock_client.get.return_value = _response(200)
        http_ok(_ctx(PROBE_HTTP_URL=URL))
        mock_client.get.assert_called_once_with(URL)

    def test_non_2xx_fails(self, mock_client):
        mock_client.get.return_value = _response(503)
        with pytest.raises(ProbeError, match="returned 503"):
            http_ok(_ctx(PROBE_HTTP_URL=URL))

    def test_expected_body(self, mock_client):
        mock_client.get.return_value = _response(200, text='{"status": "degraded"}')
        with pytest.raises(ProbeError, match="does not contain"):
            http_ok(_ctx(PROBE_HTTP_URL=URL, PROBE_HTTP_EXPECT='"status": "ok"'))

    def test_missing_url(self):
        with pytest.raises(ProbeError, match="PROBE_HTTP_URL is not set"):
            http_ok(_ctx())

    @pytest.mark.parametrize("error", [
        httpx.ConnectError("connection refused"),
        httpx.ReadTimeout("timed out"),
    ])
    def test_transport_error_is_failure(self, mock_client, error):
        mock_client.get.side_effect = error
        with pytest.raises(ProbeError) as exc_info:
            http_ok(_ctx(PROBE_HTTP_URL=URL))
        assert exc_info.value.reason == f"GET {URL} failed: {error}"

    def test_unreachable_target_reported_as_failure(self, mock_client):
        mock_client.get.side_effect = httpx.ConnectError("connection refused")
        supervisor = ProbeSupervisor(timeout_seconds=5, env={"PROBE_HTTP_URL": URL})

        outcome = asyncio.run(supervisor.run(FunctionProbe(http_ok)))

        assert outcome.kind == OutcomeKind.FAILURE
        assert outcome.reason == f"GET {URL} failed: connection refused"

    def test_through_supervisor(self, mock_client):
        mock_client.get.return_value = _response(502)
        supervisor = ProbeSupervisor(timeout_seconds=5, env={"PROBE_HTTP_URL": URL})

        outcome = asyncio.run(supervisor.run(FunctionProbe(http_ok)))

        assert outcome.kind == OutcomeKind.FAILURE
        assert outcome.reason == f"GET {URL} returned 502"


class TestHttpOkAsync:

    def test_success_and_failure(self):
        with patch("probes.examples.httpx.AsyncClient") as client_cls:
            client = MagicMock()
            client.get = AsyncMock(return_value=_response(200))
            client_cls.return_value.__aenter__.return_value = client

            asyncio.run(http_ok_async(_ctx(PROBE_HTTP_URL=URL)))

            client.get.return_value = _response(500)
            with pytest.raises(ProbeError, match="returned 500"):
                asyncio.run(http_ok_async(_ctx(PROBE_HTTP_URL=URL)))

    def test_transport_error_is_failure(self):
        with patch("probes.examples.httpx.AsyncClient") as client_cls:
            client = MagicMock()
            client.get = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
            client_cls.return_value.__aenter__.return_value = client

            with pytest.raises(ProbeError, match="failed: connection refused"):
                asyncio.run(http_ok_async(_ctx(PROBE_HTTP_URL=URL)))


class TestTcpConnect:
    """Returns connection problems rather than raising them."""

    def test_missing_configuration(self):
        result = tcp_connect(_ctx())
        assert isinstance(result, ProbeError)

    def test_open_port(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
            server.bind(("127.0.0.1", 0))
            server.listen(1)
            port = server.getsockname()[1]

            result = tcp_connect(_ctx(PROBE_TCP_HOST="127.0.0.1", PROBE_TCP_PORT=str(port)))

        assert result is None

    def test_closed_port(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", 0))
            port = s.getsockname()[1]

        result = tcp_connect(_ctx(PROBE_TCP_HOST="127.0.0.1", PROBE_TCP_PORT=str(port)))
        assert isinstance(result, ConnectionError)
