# ============================================================================
# SUPERVISOR MODULE
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Core - Probe execution
# PURPOSE: Package exports for the execution supervisor
# CREATED: 19 OCT 2026
# ============================================================================
"""
Supervisor Module

Runs the probe once per request under a deadline and turns whatever
happens into a ProbeOutcome (success, failure, timeout, panic_recovered).
"""

from supervisor.executor import ProbeSupervisor

__all__ = [
    "ProbeSupervisor",
]
