# ============================================================================
# EXAMPLE PROBES
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Examples - Sample probe implementations
# PURPOSE: Demonstrate probe patterns; usable directly as PROBE_TARGET
# CREATED: 19 OCT 2026
# ============================================================================
"""
Example Probes

Sample probes showing the supported styles. None of them register
themselves; point PROBE_TARGET at one of them:

    PROBE_TARGET=probes.examples:http_ok
    PROBE_HTTP_URL=https://orders.internal/healthz

Configuration comes from ctx.env, the read-only environment snapshot
the runtime hands every invocation.
"""

import logging
import socket

import httpx

from probes.core import ProbeContext, ProbeError

logger = logging.getLogger(__name__)


def always_healthy() -> None:
    """Succeeds unconditionally. Useful to verify wiring and alerting."""
    return None


def http_ok(ctx: ProbeContext) -> None:
    """
    GET PROBE_HTTP_URL and require a 2xx response.

    Environment:
        PROBE_HTTP_URL: URL to fetch (required)
        PROBE_HTTP_EXPECT: Substring that must appear in the body (optional)
    """
    url = ctx.env.get("PROBE_HTTP_URL")
    if not url:
        raise ProbeError("PROBE_HTTP_URL is not set")

    try:
        with httpx.Client(timeout=ctx.remaining(), follow_redirects=True) as client:
            resp = client.get(url)
    except httpx.HTTPError as e:
        raise ProbeError(f"GET {url} failed: {e}") from e

    if not resp.is_success:
        raise ProbeError(f"GET {url} returned {resp.status_code}")

    expected = ctx.env.get("PROBE_HTTP_EXPECT")
    if expected and expected not in resp.text:
        raise ProbeError(f"GET {url} body does not contain {expected!r}")

    logger.debug(f"GET {url} -> {resp.status_code}")


async def http_ok_async(ctx: ProbeContext) -> None:
    """Async variant of http_ok; cancelled by the runtime at the deadline."""
    url = ctx.env.get("PROBE_HTTP_URL")
    if not url:
        raise ProbeError("PROBE_HTTP_URL is not set")

    try:
        async with httpx.AsyncClient(timeout=ctx.remaining(), follow_redirects=True) as client:
            resp = await client.get(url)
    except httpx.HTTPError as e:
        raise ProbeError(f"GET {url} failed: {e}") from e

    if not resp.is_success:
        raise ProbeError(f"GET {url} returned {resp.status_code}")


def tcp_connect(ctx: ProbeContext):
    """
    Open a TCP connection to PROBE_TCP_HOST:PROBE_TCP_PORT.

    Returns the connection error instead of raising it, which the runtime
    treats as a probe-reported failure.
    """
    host = ctx.env.get("PROBE_TCP_HOST")
    port = ctx.env.get("PROBE_TCP_PORT")
    if not host or not port:
        return ProbeError("PROBE_TCP_HOST and PROBE_TCP_PORT must be set")

    try:
        with socket.create_connection((host, int(port)), timeout=ctx.remaining()):
            return None
    except OSError as e:
        return ConnectionError(f"connect {host}:{port} failed: {e}")


__all__ = [
    "always_healthy",
    "http_ok",
    "http_ok_async",
    "tcp_connect",
]
