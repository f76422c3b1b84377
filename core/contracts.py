# ============================================================================
# CLAUDE CONTEXT - BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Foundation - Core enums and base contracts
# PURPOSE: Outcome kinds, service lifecycle states, probe outcome contract
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: OutcomeKind, ServiceState, ProbeOutcome
# DEPENDENCIES: enum, pydantic
# ============================================================================
"""
Base contracts for the probe runtime.

These cross the boundary between the execution supervisor (which
produces them) and the HTTP endpoint (which turns them into a status
code, a response body and one log line).
"""

from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# STATUS ENUMS
# ============================================================================

class OutcomeKind(str, Enum):
    """
    Categorized result of one probe invocation.

    Exactly one is produced per accepted request.
    """
    SUCCESS = "success"                  # Probe returned normally
    FAILURE = "failure"                  # Probe reported a problem
    TIMEOUT = "timeout"                  # Deadline elapsed first
    PANIC_RECOVERED = "panic_recovered"  # Probe raised an unexpected error

    def is_success(self) -> bool:
        return self is OutcomeKind.SUCCESS


class ServiceState(str, Enum):
    """
    Service lifecycle states.

    State transitions:
        STARTING -> SERVING -> DRAINING -> STOPPED
                 -> STOPPED (bind failure)
    """
    STARTING = "starting"
    SERVING = "serving"
    DRAINING = "draining"
    STOPPED = "stopped"

    def is_terminal(self) -> bool:
        return self is ServiceState.STOPPED


# ============================================================================
# PROBE OUTCOME
# ============================================================================

class ProbeOutcome(BaseModel):
    """
    Result of a single supervised probe invocation.

    Immutable; consumed immediately by the HTTP endpoint and never stored.
    """

    model_config = ConfigDict(frozen=True)

    kind: OutcomeKind
    reason: Optional[str] = Field(
        default=None,
        description="Failure message, timeout description or recovered fault",
    )
    duration_ms: float = Field(default=0.0, ge=0.0)
    invocation_id: Optional[str] = None
    traceback: Optional[str] = Field(default=None, repr=False)

    @classmethod
    def success(cls, **kwargs) -> "ProbeOutcome":
        """Create a success outcome."""
        return cls(kind=OutcomeKind.SUCCESS, **kwargs)

    @classmethod
    def failure(cls, reason: str, **kwargs) -> "ProbeOutcome":
        """Create a probe-reported failure outcome."""
        return cls(kind=OutcomeKind.FAILURE, reason=reason, **kwargs)

    @classmethod
    def timeout(cls, timeout_seconds: float, **kwargs) -> "ProbeOutcome":
        """Create a deadline-exceeded outcome."""
        return cls(
            kind=OutcomeKind.TIMEOUT,
            reason=f"deadline exceeded after {timeout_seconds:g}s",
            **kwargs,
        )

    @classmethod
    def panic(cls, exc: BaseException, **kwargs) -> "ProbeOutcome":
        """Create a recovered-fault outcome from an exception."""
        return cls(
            kind=OutcomeKind.PANIC_RECOVERED,
            reason=f"{type(exc).__name__}: {exc}",
            **kwargs,
        )

    @property
    def ok(self) -> bool:
        return self.kind.is_success()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the minimal JSON body returned to the checker."""
        result: Dict[str, Any] = {
            "outcome": self.kind.value,
            "duration_ms": round(self.duration_ms, 2),
        }
        if self.reason:
            result["reason"] = self.reason
        return result


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "OutcomeKind",
    "ServiceState",
    "ProbeOutcome",
]
