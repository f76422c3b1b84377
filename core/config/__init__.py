# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the probe runtime.
"""

from core.config.defaults import DEFAULTS, ServiceDefaults
from core.config.settings import (
    ConfigurationError,
    ServiceConfig,
    load_env_file,
)

__all__ = [
    "DEFAULTS",
    "ServiceDefaults",
    "ConfigurationError",
    "ServiceConfig",
    "load_env_file",
]
