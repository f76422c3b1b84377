# ============================================================================
# PROBE SUPERVISOR
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Core - Probe execution engine
# PURPOSE: Run the probe under a deadline, isolate faults, produce an outcome
# CREATED: 19 OCT 2026
# ============================================================================
"""
Probe Supervisor

Executes the registered probe with:
- A fresh ProbeContext per invocation
- A dedicated daemon thread per invocation
- Deadline enforcement that never waits on a hung probe
- Fault recovery scoped to the invocation

Execution Strategy:
1. Build the context (deadline = now + timeout)
2. Start the invocation thread; it delivers its outcome to an asyncio
   future through loop.call_soon_threadsafe
3. Wait on the future for the remaining deadline
4. On expiry set the context's cancellation signal and answer Timeout;
   the thread keeps running and whatever it produces later is discarded

Threads are never killed. A probe that ignores ctx.cancelled keeps its
thread until it returns; abandoned_count reports how many are left.
"""

import asyncio
import logging
import threading
import time
import traceback
from typing import Dict, Mapping, Optional

from core.config.defaults import DEFAULTS
from core.contracts import ProbeOutcome
from core.logging import log_context
from probes.core import Probe, ProbeContext, ProbeError, raise_for_result

logger = logging.getLogger(__name__)


class ProbeSupervisor:
    """
    Runs probe invocations in isolation.

    One supervisor serves every request of the process. It holds only
    bookkeeping for live invocations; nothing about one invocation is
    visible to another.
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULTS.timeout_seconds,
        env: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize supervisor.

        Args:
            timeout_seconds: Default deadline for each invocation
            env: Environment snapshot exposed to probes as ctx.env
        """
        if timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {timeout_seconds}")
        self.timeout_seconds = timeout_seconds
        self._env = dict(env or {})
        self._active: Dict[str, ProbeContext] = {}
        self._abandoned = 0
        self._shutting_down = False

    @property
    def in_flight_count(self) -> int:
        """Invocations whose outcome is still awaited."""
        return len(self._active)

    @property
    def abandoned_count(self) -> int:
        """Timed-out invocations whose thread has not returned yet."""
        return self._abandoned

    async def run(
        self,
        probe: Probe,
        timeout_seconds: Optional[float] = None,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> ProbeOutcome:
        """
        Invoke the probe once under a deadline.

        Args:
            probe: Probe to invoke
            timeout_seconds: Deadline for this invocation (default from init)
            cancel_event: External cancellation signal (client disconnect)

        Returns:
            Exactly one ProbeOutcome; never raises for probe behaviour

        Raises:
            ValueError: if timeout_seconds is zero or negative
        """
        timeout = self.timeout_seconds if timeout_seconds is None else timeout_seconds
        if timeout <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {timeout}")
        ctx = ProbeContext.create(timeout, env=self._env, cancel_event=cancel_event)
        if self._shutting_down:
            ctx.cancel()

        loop = asyncio.get_running_loop()
        result: asyncio.Future = loop.create_future()
        start = time.monotonic()

        def deliver(outcome: ProbeOutcome) -> None:
            # Runs on the event loop
            self._active.pop(ctx.invocation_id, None)
            if result.done():
                self._abandoned -= 1
                logger.debug(
                    f"Discarding late outcome of invocation {ctx.invocation_id}: "
                    f"{outcome.kind.value}"
                )
                return
            result.set_result(outcome)

        def invoke() -> None:
            outcome = self._invoke(probe, ctx)
            try:
                loop.call_soon_threadsafe(deliver, outcome)
            except RuntimeError:
                # Event loop already closed (process shutting down)
                logger.debug(f"Invocation {ctx.invocation_id} finished after loop shutdown")

        self._active[ctx.invocation_id] = ctx
        thread = threading.Thread(
            target=invoke,
            name=f"probe-{ctx.invocation_id[:8]}",
            daemon=True,
        )
        thread.start()

        try:
            done, _ = await asyncio.wait({result}, timeout=ctx.remaining())
        except asyncio.CancelledError:
            # Request task cancelled (server forcing shutdown)
            ctx.cancel()
            result.cancel()
            self._abandoned += 1
            raise

        if result in done:
            return result.result()

        ctx.cancel()
        result.cancel()
        self._abandoned += 1
        duration_ms = (time.monotonic() - start) * 1000
        logger.debug(
            f"Invocation {ctx.invocation_id} exceeded {timeout:g}s deadline; "
            f"{self._abandoned} abandoned invocation(s) still running"
        )
        return ProbeOutcome.timeout(
            timeout,
            duration_ms=duration_ms,
            invocation_id=ctx.invocation_id,
        )

    def _invoke(self, probe: Probe, ctx: ProbeContext) -> ProbeOutcome:
        """Run the probe on the current thread and classify what happened."""
        start = time.monotonic()
        with log_context(invocation_id=ctx.invocation_id, probe=probe.name):
            try:
                raise_for_result(probe.check(ctx))
                outcome = ProbeOutcome.success()
            except ProbeError as e:
                outcome = ProbeOutcome.failure(str(e))
            except BaseException as e:
                # Contained here, including CancelledError out of async probes
                outcome = ProbeOutcome.panic(
                    e, traceback="".join(traceback.format_exception(e))
                )

            # Anything produced past the deadline counts as a timeout
            if ctx.expired:
                outcome = ProbeOutcome.timeout(ctx.timeout_seconds)

            duration_ms = (time.monotonic() - start) * 1000
            logger.debug(
                f"Probe {probe.name} finished: {outcome.kind.value} ({duration_ms:.1f}ms)"
            )
            return outcome.model_copy(
                update={"duration_ms": duration_ms, "invocation_id": ctx.invocation_id}
            )

    def shutdown(self) -> None:
        """Signal every in-flight invocation (and any later one) to stop."""
        self._shutting_down = True
        for ctx in list(self._active.values()):
            ctx.cancel()
        if self._active or self._abandoned:
            logger.info(
                f"Supervisor shutdown: cancelled {len(self._active)} in-flight "
                f"invocation(s), {self._abandoned} abandoned"
            )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ProbeSupervisor",
]
