# ============================================================================
# PROBES MODULE
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Core - Probe capability and registration
# PURPOSE: Public surface for operators writing custom probes
# CREATED: 19 OCT 2026
# ============================================================================
"""
Probes Module

Operators write one probe per service:

    from probes import register_probe, ProbeContext, ProbeError

    @register_probe
    def check(ctx: ProbeContext) -> None:
        if not ctx.env.get("ORDERS_URL"):
            raise ProbeError("ORDERS_URL not configured")

Architecture:
- Probe: capability with a single check(ctx) method
- FunctionProbe: adapter lifting a plain (sync or async) function
- ProbeContext: per-invocation deadline, cancellation signal and env
- ProbeRegistry: holds the single probe a process serves
"""

from probes.core import (
    ProbeError,
    ProbeCancelledError,
    ProbeContext,
    Probe,
    FunctionProbe,
    as_probe,
    raise_for_result,
)
from probes.registry import (
    ProbeRegistryError,
    DuplicateProbeError,
    ProbeNotRegisteredError,
    ProbeLoadError,
    ProbeRegistry,
    get_registry,
    register_probe,
    load_probe,
)

__all__ = [
    # Core types
    "ProbeError",
    "ProbeCancelledError",
    "ProbeContext",
    "Probe",
    "FunctionProbe",
    "as_probe",
    "raise_for_result",
    # Registry
    "ProbeRegistryError",
    "DuplicateProbeError",
    "ProbeNotRegisteredError",
    "ProbeLoadError",
    "ProbeRegistry",
    "get_registry",
    "register_probe",
    "load_probe",
]
