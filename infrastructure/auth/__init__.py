# ============================================================================
# AUTHENTICATION MODULE
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# PURPOSE: Shared-secret authentication for the uptime checker
# CREATED: 19 OCT 2026
# ============================================================================
"""
Authentication module for the probe runtime.

Usage:
    from infrastructure.auth import SharedSecretValidator

    validator = SharedSecretValidator(config.shared_secret)
    if not validator.validate(request.headers.get("Authorization")):
        ...
"""

from infrastructure.auth.shared_secret import SharedSecretValidator

__all__ = [
    'SharedSecretValidator',
]
