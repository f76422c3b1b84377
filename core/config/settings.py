# ============================================================================
# SERVICE CONFIGURATION
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Core - Environment-based configuration
# PURPOSE: Read listen address, shared secret, deadline and probe target
# CREATED: 19 OCT 2026
# ============================================================================
"""
Service Configuration

Loads configuration from environment variables once at startup. The
deployment automation injects the shared secret, the port and any
user-defined key/value entries; the runtime does not interpret the user
entries, it only passes them through to the probe (minus the secret).
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv

from core.config.defaults import (
    DEFAULTS,
    ENV_CHECKER_TIMEOUT,
    ENV_ENV_FILE,
    ENV_HOST,
    ENV_LOG_FORMAT,
    ENV_LOG_LEVEL,
    ENV_PORT,
    ENV_PROBE_TARGET,
    ENV_SHARED_SECRET,
    ENV_SHUTDOWN_GRACE,
    ENV_TIMEOUT,
)

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when process configuration is invalid. Fatal at startup."""
    def __init__(self, variable: str, detail: str):
        self.variable = variable
        super().__init__(f"Invalid {variable}: {detail}")


def _parse_float(environ: Mapping[str, str], name: str, default: Optional[float]) -> Optional[float]:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(name, f"expected a number of seconds, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(name, f"must be greater than zero, got {value:g}")
    return value


def _parse_port(environ: Mapping[str, str]) -> int:
    raw = environ.get(ENV_PORT)
    if raw is None or raw.strip() == "":
        return DEFAULTS.port
    try:
        port = int(raw)
    except ValueError:
        raise ConfigurationError(ENV_PORT, f"expected an integer, got {raw!r}")
    if not 0 < port < 65536:
        raise ConfigurationError(ENV_PORT, f"out of range: {port}")
    return port


def load_env_file(path: Optional[str]) -> bool:
    """
    Load a dotenv file into the process environment.

    Existing variables win, so values injected by deployment automation
    are never overridden by a file baked into the artifact.
    """
    if not path:
        return False
    if not os.path.isfile(path):
        raise ConfigurationError(ENV_ENV_FILE, f"file not found: {path}")
    loaded = load_dotenv(path, override=False)
    logger.info(f"Loaded environment file {path}")
    return loaded


@dataclass(frozen=True)
class ServiceConfig:
    """Configuration for the probe service."""

    # Binding
    host: str = DEFAULTS.host
    port: int = DEFAULTS.port

    # Authentication (never printed)
    shared_secret: Optional[str] = field(default=None, repr=False)

    # Deadlines
    timeout_seconds: float = DEFAULTS.timeout_seconds
    checker_timeout_seconds: Optional[float] = None
    shutdown_grace_seconds: float = DEFAULTS.shutdown_grace_seconds

    # Probe resolution ("module:attr" or "module")
    probe_target: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServiceConfig":
        """
        Load configuration from environment variables.

        Raises:
            ConfigurationError: on malformed or out-of-range values
        """
        environ = os.environ if environ is None else environ

        timeout = _parse_float(environ, ENV_TIMEOUT, DEFAULTS.timeout_seconds)
        checker_timeout = _parse_float(environ, ENV_CHECKER_TIMEOUT, None)

        if checker_timeout is not None and timeout > checker_timeout:
            logger.warning(
                f"{ENV_TIMEOUT}={timeout:g}s exceeds the checker timeout "
                f"({checker_timeout:g}s); clamping so the service answers first"
            )
            timeout = checker_timeout

        return cls(
            host=environ.get(ENV_HOST, DEFAULTS.host) or DEFAULTS.host,
            port=_parse_port(environ),
            shared_secret=environ.get(ENV_SHARED_SECRET) or None,
            timeout_seconds=timeout,
            checker_timeout_seconds=checker_timeout,
            shutdown_grace_seconds=_parse_float(
                environ, ENV_SHUTDOWN_GRACE, DEFAULTS.shutdown_grace_seconds
            ),
            probe_target=environ.get(ENV_PROBE_TARGET) or None,
            log_level=environ.get(ENV_LOG_LEVEL, "INFO").upper(),
            json_logs=environ.get(ENV_LOG_FORMAT, "").lower() == "json",
        )

    @property
    def has_shared_secret(self) -> bool:
        return bool(self.shared_secret)

    def probe_environment(self, environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """
        Snapshot of the environment handed to the probe.

        The shared secret variable is removed; everything else, including
        user-defined key/value entries, passes through untouched.
        """
        environ = os.environ if environ is None else environ
        return {
            key: value
            for key, value in environ.items()
            if key != ENV_SHARED_SECRET
        }


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ConfigurationError",
    "ServiceConfig",
    "load_env_file",
]
