# ============================================================================
# CLAUDE CONTEXT - CORE MODULE
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Core module initialization
# PURPOSE: Export core contracts and lifecycle types
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================

from core.contracts import OutcomeKind, ServiceState, ProbeOutcome
from core.lifecycle import ServiceLifecycle, InvalidTransitionError

__all__ = [
    # Enums
    "OutcomeKind",
    "ServiceState",
    # Contracts
    "ProbeOutcome",
    # Lifecycle
    "ServiceLifecycle",
    "InvalidTransitionError",
]
