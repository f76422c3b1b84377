# ============================================================================
# PROBE SUPERVISOR TESTS
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Tests - Probe execution engine
# PURPOSE: Verify outcome classification, deadlines and fault isolation
# CREATED: 19 OCT 2026
# ============================================================================
"""
Probe Supervisor Tests

Tests ProbeSupervisor.run() against real probes running on real threads:
- Success, failure and recovered-fault classification
- Deadline enforcement against probes that never return
- Cancellation signals (deadline, external event, shutdown)
- Isolation of concurrent invocations

Uses asyncio.run per test, like the rest of the suite.

Run with:
    pytest tests/test_supervisor.py -v
"""

import asyncio
import threading
import time

import pytest

from core.config import ServiceConfig
from core.contracts import OutcomeKind
from probes import FunctionProbe, Probe, ProbeContext, ProbeError
from supervisor import ProbeSupervisor


# ============================================================================
# HELPERS
# ============================================================================

def _run(probe_func, timeout=5.0, **kwargs):
    """Run one invocation of a plain function on a fresh supervisor."""
    supervisor = ProbeSupervisor(timeout_seconds=timeout)
    return asyncio.run(supervisor.run(FunctionProbe(probe_func), **kwargs))


class HardAbort(BaseException):
    """Raised by checks that bypass Exception entirely."""


@pytest.fixture
def release():
    """Event that unblocks hung probes once the test is done with them."""
    event = threading.Event()
    yield event
    event.set()


# ============================================================================
# CLASSIFICATION
# ============================================================================

class TestOutcomeClassification:
    """Mapping from probe behaviour to ProbeOutcome."""

    def test_normal_return_is_success(self):
        def probe(ctx):
            return None

        outcome = _run(probe)
        assert outcome.kind == OutcomeKind.SUCCESS
        assert outcome.reason is None
        assert outcome.duration_ms >= 0
        assert outcome.invocation_id

    def test_truthy_return_is_success(self):
        outcome = _run(lambda: {"rows": 3})
        assert outcome.kind == OutcomeKind.SUCCESS

    def test_probe_error_is_failure_with_exact_reason(self):
        def probe(ctx):
            raise ProbeError("db unreachable: connection refused")

        outcome = _run(probe)
        assert outcome.kind == OutcomeKind.FAILURE
        assert outcome.reason == "db unreachable: connection refused"

    def test_returned_exception_is_failure(self):
        def probe(ctx):
            return ConnectionError("orders api returned 503")

        outcome = _run(probe)
        assert outcome.kind == OutcomeKind.FAILURE
        assert outcome.reason == "orders api returned 503"

    def test_returned_false_is_failure(self):
        outcome = _run(lambda: False)
        assert outcome.kind == OutcomeKind.FAILURE
        assert outcome.reason == "probe returned False"

    def test_unexpected_exception_is_recovered(self):
        def probe(ctx):
            raise RuntimeError("boom")

        outcome = _run(probe)
        assert outcome.kind == OutcomeKind.PANIC_RECOVERED
        assert outcome.reason == "RuntimeError: boom"
        assert "RuntimeError: boom" in outcome.traceback

    def test_system_exit_is_recovered(self):
        def probe(ctx):
            raise SystemExit(3)

        outcome = _run(probe)
        assert outcome.kind == OutcomeKind.PANIC_RECOVERED
        assert outcome.reason.startswith("SystemExit")

    def test_cancelled_error_from_async_function_is_recovered(self):
        async def check(ctx):
            raise asyncio.CancelledError()

        supervisor = ProbeSupervisor(timeout_seconds=5)

        start = time.monotonic()
        outcome = asyncio.run(supervisor.run(FunctionProbe(check)))
        elapsed = time.monotonic() - start

        assert outcome.kind == OutcomeKind.PANIC_RECOVERED
        assert outcome.reason.startswith("CancelledError")
        assert elapsed < 1.0
        assert supervisor.in_flight_count == 0
        assert supervisor.abandoned_count == 0

    @pytest.mark.parametrize("exc_type", [HardAbort, KeyboardInterrupt])
    def test_base_exception_is_recovered(self, exc_type):
        def check(ctx):
            raise exc_type("operator abort")

        supervisor = ProbeSupervisor(timeout_seconds=5)

        start = time.monotonic()
        outcome = asyncio.run(supervisor.run(FunctionProbe(check)))
        elapsed = time.monotonic() - start

        assert outcome.kind == OutcomeKind.PANIC_RECOVERED
        assert outcome.reason == f"{exc_type.__name__}: operator abort"
        assert elapsed < 1.0
        assert supervisor.in_flight_count == 0
        assert supervisor.abandoned_count == 0

    def test_probe_subclass(self):
        class DiskProbe(Probe):
            name = "disk"

            def check(self, ctx):
                return False

        supervisor = ProbeSupervisor(timeout_seconds=5)
        outcome = asyncio.run(supervisor.run(DiskProbe()))
        assert outcome.kind == OutcomeKind.FAILURE

    def test_recovered_fault_does_not_affect_next_invocation(self):
        calls = []

        def probe(ctx):
            calls.append(ctx.invocation_id)
            if len(calls) == 1:
                raise KeyError("first call explodes")

        supervisor = ProbeSupervisor(timeout_seconds=5)

        async def scenario():
            first = await supervisor.run(FunctionProbe(probe))
            second = await supervisor.run(FunctionProbe(probe))
            return first, second

        first, second = asyncio.run(scenario())
        assert first.kind == OutcomeKind.PANIC_RECOVERED
        assert second.kind == OutcomeKind.SUCCESS
        assert first.invocation_id != second.invocation_id


# ============================================================================
# ASYNC PROBES
# ============================================================================

class TestAsyncProbes:
    """Coroutine functions run on their own loop in the invocation thread."""

    def test_async_success(self):
        async def probe(ctx):
            await asyncio.sleep(0.01)

        assert _run(probe).kind == OutcomeKind.SUCCESS

    def test_async_failure(self):
        async def probe(ctx):
            raise ProbeError("cache cold")

        outcome = _run(probe)
        assert outcome.kind == OutcomeKind.FAILURE
        assert outcome.reason == "cache cold"

    def test_async_hang_times_out_and_thread_finishes(self):
        async def probe():
            await asyncio.sleep(30)

        supervisor = ProbeSupervisor(timeout_seconds=0.3)

        async def scenario():
            outcome = await supervisor.run(FunctionProbe(probe))
            # The probe's own loop cancels the coroutine at the deadline
            for _ in range(40):
                if supervisor.abandoned_count == 0:
                    break
                await asyncio.sleep(0.05)
            return outcome

        outcome = asyncio.run(scenario())
        assert outcome.kind == OutcomeKind.TIMEOUT
        assert supervisor.abandoned_count == 0


# ============================================================================
# DEADLINES
# ============================================================================

class TestDeadline:
    """Deadline enforcement never waits on the probe."""

    def test_hung_probe_answers_within_deadline(self, release):
        def probe():
            release.wait(10)

        start = time.monotonic()
        outcome = _run(probe, timeout=1.0)
        elapsed = time.monotonic() - start

        assert outcome.kind == OutcomeKind.TIMEOUT
        assert outcome.reason == "deadline exceeded after 1s"
        assert elapsed <= 1.2

    def test_per_call_timeout_overrides_default(self, release):
        supervisor = ProbeSupervisor(timeout_seconds=30)
        probe = FunctionProbe(lambda: release.wait(10))

        start = time.monotonic()
        outcome = asyncio.run(supervisor.run(probe, 0.2))
        assert outcome.kind == OutcomeKind.TIMEOUT
        assert time.monotonic() - start < 1.0

    def test_cancellation_signal_set_on_timeout(self, release):
        cancel_event = threading.Event()

        def probe():
            release.wait(10)

        _run(probe, timeout=0.2, cancel_event=cancel_event)
        assert cancel_event.is_set()

    def test_cooperative_probe_sees_cancellation(self):
        observed = threading.Event()

        def probe(ctx):
            while not ctx.wait(10):
                pass
            observed.set()

        outcome = _run(probe, timeout=0.2)
        assert outcome.kind == OutcomeKind.TIMEOUT
        assert observed.wait(2)

    def test_late_outcome_discarded(self, release):
        supervisor = ProbeSupervisor(timeout_seconds=0.2)
        probe = FunctionProbe(lambda: release.wait(10))

        async def scenario():
            outcome = await supervisor.run(probe)
            assert supervisor.abandoned_count == 1
            release.set()
            for _ in range(40):
                if supervisor.abandoned_count == 0:
                    break
                await asyncio.sleep(0.05)
            return outcome

        outcome = asyncio.run(scenario())
        assert outcome.kind == OutcomeKind.TIMEOUT
        assert supervisor.abandoned_count == 0
        assert supervisor.in_flight_count == 0

    def test_invalid_timeout_rejected(self):
        with pytest.raises(ValueError):
            ProbeSupervisor(timeout_seconds=0)

    @pytest.mark.parametrize("timeout", [0, -1.5])
    def test_invalid_per_call_timeout_rejected(self, timeout):
        calls = []
        supervisor = ProbeSupervisor(timeout_seconds=5)

        with pytest.raises(ValueError):
            asyncio.run(supervisor.run(FunctionProbe(lambda: calls.append(1)), timeout))

        assert calls == []
        assert supervisor.in_flight_count == 0


# ============================================================================
# CANCELLATION
# ============================================================================

class TestCancellation:
    """External cancellation and supervisor shutdown."""

    def test_external_cancel_event(self):
        cancel_event = threading.Event()

        def probe(ctx):
            ctx.wait(10)
            ctx.raise_if_cancelled()

        supervisor = ProbeSupervisor(timeout_seconds=5)

        async def scenario():
            asyncio.get_running_loop().call_later(0.1, cancel_event.set)
            return await supervisor.run(FunctionProbe(probe), cancel_event=cancel_event)

        start = time.monotonic()
        outcome = asyncio.run(scenario())
        assert outcome.kind == OutcomeKind.FAILURE
        assert outcome.reason == "probe cancelled"
        assert time.monotonic() - start < 2.0

    def test_shutdown_cancels_in_flight(self):
        def probe(ctx):
            ctx.wait(10)
            ctx.raise_if_cancelled()

        supervisor = ProbeSupervisor(timeout_seconds=5)

        async def scenario():
            task = asyncio.create_task(supervisor.run(FunctionProbe(probe)))
            await asyncio.sleep(0.1)
            assert supervisor.in_flight_count == 1
            supervisor.shutdown()
            return await task

        outcome = asyncio.run(scenario())
        assert outcome.kind == OutcomeKind.FAILURE
        assert outcome.reason == "probe cancelled"

    def test_invocations_after_shutdown_start_cancelled(self):
        seen = []

        def probe(ctx):
            seen.append(ctx.cancelled)

        supervisor = ProbeSupervisor(timeout_seconds=5)
        supervisor.shutdown()
        asyncio.run(supervisor.run(FunctionProbe(probe)))
        assert seen == [True]


# ============================================================================
# ISOLATION
# ============================================================================

class TestIsolation:
    """Each invocation gets its own context; env is a read-only snapshot."""

    def test_concurrent_invocations_get_distinct_contexts(self):
        seen = []

        def probe(ctx: ProbeContext):
            seen.append(ctx.invocation_id)
            time.sleep(0.05)

        supervisor = ProbeSupervisor(timeout_seconds=5)

        async def scenario():
            return await asyncio.gather(
                *(supervisor.run(FunctionProbe(probe)) for _ in range(20))
            )

        outcomes = asyncio.run(scenario())
        assert len(set(seen)) == 20
        assert {o.invocation_id for o in outcomes} == set(seen)
        assert all(o.kind == OutcomeKind.SUCCESS for o in outcomes)

    def test_env_excludes_shared_secret(self):
        environ = {"PROBE_SHARED_SECRET": "hunter2", "REGION": "westeurope"}
        env = ServiceConfig().probe_environment(environ)
        captured = {}

        def probe(ctx):
            captured.update(ctx.env)

        supervisor = ProbeSupervisor(timeout_seconds=5, env=env)
        asyncio.run(supervisor.run(FunctionProbe(probe)))
        assert captured == {"REGION": "westeurope"}

    def test_env_is_read_only(self):
        def probe(ctx):
            ctx.env["REGION"] = "elsewhere"

        outcome = _run(probe)
        assert outcome.kind == OutcomeKind.PANIC_RECOVERED
        assert outcome.reason.startswith("TypeError")
