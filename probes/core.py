# ============================================================================
# PROBE CORE TYPES
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Core - Probe capability, adapter and execution context
# PURPOSE: Contract between user-supplied check logic and the runtime
# CREATED: 19 OCT 2026
# ============================================================================
"""
Probe Core Types

A probe is anything with a check(ctx) method. It reports:
- success by returning normally (None or a truthy value)
- failure by raising ProbeError, or by returning an exception instance
  or False
Any other exception is an unexpected fault; the supervisor recovers it.

Most operators write a plain function; FunctionProbe lifts it into the
Probe capability. Both sync and async functions are accepted, with or
without a ctx parameter:

    def check(ctx: ProbeContext) -> None:
        resp = httpx.get(ctx.env["TARGET"], timeout=ctx.remaining())
        if resp.status_code != 200:
            raise ProbeError(f"unexpected status {resp.status_code}")
"""

import asyncio
import inspect
import threading
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Optional, Union


# ============================================================================
# EXCEPTIONS
# ============================================================================

class ProbeError(Exception):
    """Raised by a probe to report that the checked system is unhealthy."""
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ProbeCancelledError(ProbeError):
    """Raised by ProbeContext.raise_if_cancelled() once the context is cancelled."""
    def __init__(self, reason: str = "probe cancelled"):
        super().__init__(reason)


# ============================================================================
# EXECUTION CONTEXT
# ============================================================================

@dataclass
class ProbeContext:
    """
    Per-invocation execution context.

    Carries the deadline and a cancellation signal. The signal is set when
    the deadline elapses, the client disconnects or the server shuts down.
    A context is created for one invocation and never reused.
    """
    invocation_id: str
    timeout_seconds: float
    deadline: float
    env: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    _cancel_event: threading.Event = field(default_factory=threading.Event, repr=False)

    @classmethod
    def create(
        cls,
        timeout_seconds: float,
        env: Optional[Mapping[str, str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> "ProbeContext":
        """Build a fresh context whose deadline starts now."""
        return cls(
            invocation_id=uuid.uuid4().hex,
            timeout_seconds=timeout_seconds,
            deadline=time.monotonic() + timeout_seconds,
            env=MappingProxyType(dict(env or {})),
            _cancel_event=cancel_event if cancel_event is not None else threading.Event(),
        )

    def remaining(self) -> float:
        """Seconds left before the deadline (never negative)."""
        return max(0.0, self.deadline - time.monotonic())

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.deadline

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set() or self.expired

    def cancel(self) -> None:
        self._cancel_event.set()

    def wait(self, seconds: float) -> bool:
        """
        Sleep up to `seconds`, waking early on cancellation.

        Returns:
            True if the context is cancelled when the wait ends
        """
        self._cancel_event.wait(timeout=min(seconds, self.remaining()))
        return self.cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancel_event.is_set():
            raise ProbeCancelledError()
        if self.expired:
            raise ProbeCancelledError("deadline exceeded")


# ============================================================================
# PROBE CAPABILITY
# ============================================================================

class Probe(ABC):
    """
    Base class for probes.

    Subclass and implement check(), or wrap a function with FunctionProbe.
    Instances are shared read-only across concurrent invocations, so a
    probe must keep per-invocation state on the stack or in ctx.
    """

    name: str = "probe"

    @abstractmethod
    def check(self, ctx: ProbeContext) -> Any:
        """
        Run the custom check once.

        Raises:
            ProbeError: the checked system is unhealthy
        """


ProbeFunc = Callable[..., Union[Any, Awaitable[Any]]]


class FunctionProbe(Probe):
    """Adapter lifting a plain function into the Probe capability."""

    def __init__(self, func: ProbeFunc, name: Optional[str] = None):
        if not callable(func):
            raise TypeError(f"Probe function must be callable, got {type(func).__name__}")
        self._func = func
        self.name = name or getattr(func, "__name__", "probe")
        self._is_async = inspect.iscoroutinefunction(func)
        self._takes_ctx = self._accepts_context(func)

    @staticmethod
    def _accepts_context(func: ProbeFunc) -> bool:
        try:
            params = inspect.signature(func).parameters.values()
        except (TypeError, ValueError):
            return True
        return any(
            p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD, p.VAR_POSITIONAL)
            for p in params
        )

    @property
    def func(self) -> ProbeFunc:
        return self._func

    @property
    def is_async(self) -> bool:
        return self._is_async

    def check(self, ctx: ProbeContext) -> Any:
        args = (ctx,) if self._takes_ctx else ()

        if self._is_async:
            return asyncio.run(self._run_async(ctx, args))
        return self._func(*args)

    async def _run_async(self, ctx: ProbeContext, args: tuple) -> Any:
        # Own event loop on the invocation thread; cancelled at the deadline
        return await asyncio.wait_for(self._func(*args), timeout=ctx.remaining())

    def __repr__(self) -> str:
        return f"FunctionProbe({self.name!r}, async={self._is_async})"


def raise_for_result(result: Any) -> None:
    """Translate error-style return values from check() into ProbeError."""
    if isinstance(result, ProbeError):
        raise result
    if isinstance(result, BaseException):
        raise ProbeError(str(result)) from result
    if result is False:
        raise ProbeError("probe returned False")


def as_probe(target: Any, name: Optional[str] = None) -> Probe:
    """Coerce a Probe instance, Probe subclass or plain function into a Probe."""
    if isinstance(target, Probe):
        return target
    if inspect.isclass(target) and issubclass(target, Probe):
        return target()
    if callable(target):
        return FunctionProbe(target, name=name)
    raise TypeError(f"Cannot build a probe from {type(target).__name__}")


__all__ = [
    "ProbeError",
    "ProbeCancelledError",
    "ProbeContext",
    "Probe",
    "ProbeFunc",
    "FunctionProbe",
    "raise_for_result",
    "as_probe",
]
