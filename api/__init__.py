# ============================================================================
# API MODULE
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Core - FastAPI routes
# PURPOSE: HTTP surface called by the uptime checker
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Module

FastAPI routes for the probe runtime.
"""

from .probe_routes import build_probe_router

__all__ = [
    "build_probe_router",
]
