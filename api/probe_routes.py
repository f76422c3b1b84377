# ============================================================================
# PROBE ROUTES
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Core - FastAPI route definitions
# PURPOSE: The single endpoint the uptime checker calls
# CREATED: 19 OCT 2026
# ============================================================================
"""
Probe Routes

Endpoint:
    GET  /   - Authenticate, run the probe once, report the outcome
    HEAD /   - Same, without a body

Response Codes:
    200 - Probe succeeded
    401 - Authorization header missing or wrong (probe not run)
    500 - Probe reported a failure, or raised an unexpected error
    503 - Service is draining for shutdown (probe not run)
    504 - Probe did not finish before the deadline

Every request produces exactly one log line on this module's logger
with accepted, outcome, status_code and elapsed_ms.
"""

import asyncio
import threading
import time
import uuid
from contextlib import suppress
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from core.config.defaults import DEFAULTS
from core.contracts import OutcomeKind, ProbeOutcome
from core.lifecycle import ServiceLifecycle
from core.logging import ComponentType, get_logger, log_context
from infrastructure.auth import SharedSecretValidator
from probes.core import Probe
from supervisor import ProbeSupervisor

logger = get_logger(__name__, ComponentType.API)

AUTH_HEADER = "Authorization"
OUTCOME_HEADER = "X-Probe-Outcome"


def _outcome_to_http_code(kind: OutcomeKind) -> int:
    """Map probe outcome to HTTP status code."""
    return {
        OutcomeKind.SUCCESS: 200,
        OutcomeKind.FAILURE: 500,
        OutcomeKind.TIMEOUT: 504,  # Gateway Timeout
        OutcomeKind.PANIC_RECOVERED: 500,
    }[kind]


def _log_request(
    start: float,
    *,
    accepted: bool,
    status_code: int,
    outcome: Optional[ProbeOutcome] = None,
) -> None:
    """Emit the one log line for a request."""
    data: Dict[str, Any] = {
        "accepted": accepted,
        "outcome": outcome.kind.value if outcome else None,
        "status_code": status_code,
        "elapsed_ms": round((time.monotonic() - start) * 1000, 2),
    }
    if outcome is not None:
        data["invocation_id"] = outcome.invocation_id
        if outcome.reason:
            data["reason"] = outcome.reason

    if not accepted:
        logger.warning("Probe request rejected", extra=data)
    elif outcome is None:
        logger.warning("Probe request refused: service draining", extra=data)
    elif outcome.kind is OutcomeKind.SUCCESS:
        logger.info("Probe succeeded", extra=data)
    elif outcome.kind is OutcomeKind.FAILURE:
        logger.warning("Probe reported failure", extra=data)
    elif outcome.kind is OutcomeKind.TIMEOUT:
        logger.warning("Probe deadline exceeded", extra=data)
    else:
        data["traceback"] = outcome.traceback
        logger.error("Probe raised an unexpected error (recovered)", extra=data)


async def _watch_disconnect(
    request: Request,
    cancel_event: threading.Event,
    interval: float,
) -> None:
    """Set the invocation's cancellation signal if the client goes away."""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            cancel_event.set()
            return
        await asyncio.sleep(interval)


def build_probe_router(
    probe: Probe,
    validator: SharedSecretValidator,
    supervisor: ProbeSupervisor,
    timeout_seconds: Optional[float] = None,
    lifecycle: Optional[ServiceLifecycle] = None,
    disconnect_poll_seconds: float = DEFAULTS.disconnect_poll_seconds,
) -> APIRouter:
    """
    Build the probe router.

    Collaborators are injected here rather than looked up from module
    globals; the router holds them read-only for the process lifetime.

    Args:
        probe: The process's registered probe
        validator: Shared secret validator
        supervisor: Execution supervisor
        timeout_seconds: Per-request deadline (supervisor default if None)
        lifecycle: Service lifecycle (a standalone one if None)
        disconnect_poll_seconds: How often to check for client disconnects
    """
    lifecycle = lifecycle or ServiceLifecycle()
    router = APIRouter(tags=["Probe"])

    @router.api_route("/", methods=["GET", "HEAD"], include_in_schema=False)
    async def run_probe(request: Request):
        """Authenticate, run the probe once and report its outcome."""
        start = time.monotonic()
        request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex[:12]

        with log_context(request_id=request_id, probe=probe.name):
            if not validator.validate(request.headers.get(AUTH_HEADER)):
                _log_request(start, accepted=False, status_code=401)
                return JSONResponse(status_code=401, content={"error": "unauthorized"})

            if not lifecycle.accepting:
                _log_request(start, accepted=True, status_code=503)
                return JSONResponse(status_code=503, content={"error": "draining"})

            with lifecycle.track_request():
                cancel_event = threading.Event()
                watcher = asyncio.create_task(
                    _watch_disconnect(request, cancel_event, disconnect_poll_seconds)
                )
                try:
                    outcome = await supervisor.run(
                        probe, timeout_seconds, cancel_event=cancel_event
                    )
                finally:
                    watcher.cancel()
                    with suppress(asyncio.CancelledError):
                        await watcher

            status_code = _outcome_to_http_code(outcome.kind)
            _log_request(start, accepted=True, status_code=status_code, outcome=outcome)
            return JSONResponse(
                status_code=status_code,
                content=outcome.to_dict(),
                headers={OUTCOME_HEADER: outcome.kind.value},
            )

    return router


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "build_probe_router",
]
