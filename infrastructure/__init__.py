# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Infrastructure - Package init
# PURPOSE: Cross-cutting services used by the HTTP surface
# CREATED: 19 OCT 2026
# ============================================================================
"""
Infrastructure module for the probe runtime.

Provides:
- SharedSecretValidator: Constant-time check of the checker's credential

Usage:
    from infrastructure.auth import SharedSecretValidator

    validator = SharedSecretValidator(config.shared_secret)
    if not validator.validate(request.headers.get("Authorization")):
        ...
"""

from infrastructure.auth import SharedSecretValidator

__all__ = [
    'SharedSecretValidator',
]
