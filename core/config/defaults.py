# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for binding, deadlines and shutdown
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Defaults

The deadline default matches the external uptime checker's own default
timeout so the runtime never races its caller.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ServiceDefaults:
    """Defaults applied when an environment variable is absent."""
    host: str = "0.0.0.0"
    port: int = 8080

    # Per-invocation deadline (seconds)
    timeout_seconds: float = 60.0

    # How long in-flight requests may finish after SIGTERM
    shutdown_grace_seconds: float = 10.0

    # External checker contract (informational)
    checker_period_seconds: float = 300.0
    checker_timeout_seconds: float = 60.0

    # How often the endpoint polls for client disconnects
    disconnect_poll_seconds: float = 0.5


DEFAULTS = ServiceDefaults()

# Environment variable names
ENV_HOST = "HOST"
ENV_PORT = "PORT"
ENV_SHARED_SECRET = "PROBE_SHARED_SECRET"
ENV_TIMEOUT = "PROBE_TIMEOUT_SECONDS"
ENV_CHECKER_TIMEOUT = "PROBE_CHECKER_TIMEOUT_SECONDS"
ENV_SHUTDOWN_GRACE = "PROBE_SHUTDOWN_GRACE_SECONDS"
ENV_PROBE_TARGET = "PROBE_TARGET"
ENV_ENV_FILE = "PROBE_ENV_FILE"
ENV_LOG_LEVEL = "LOG_LEVEL"
ENV_LOG_FORMAT = "LOG_FORMAT"


__all__ = [
    "ServiceDefaults",
    "DEFAULTS",
    "ENV_HOST",
    "ENV_PORT",
    "ENV_SHARED_SECRET",
    "ENV_TIMEOUT",
    "ENV_CHECKER_TIMEOUT",
    "ENV_SHUTDOWN_GRACE",
    "ENV_PROBE_TARGET",
    "ENV_ENV_FILE",
    "ENV_LOG_LEVEL",
    "ENV_LOG_FORMAT",
]
