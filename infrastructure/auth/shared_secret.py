# ============================================================================
# SHARED SECRET AUTHENTICATION
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Infrastructure - Request authentication
# PURPOSE: Constant-time comparison of the checker's credential
# CREATED: 19 OCT 2026
# ============================================================================
"""
Shared Secret Authentication

The uptime checker sends the pre-provisioned secret verbatim in the
Authorization header. Both sides are reduced to SHA-256 digests before
hmac.compare_digest, so the comparison takes the same time whatever the
credential's length or the position of the first mismatching character.

An unconfigured secret rejects everything: a missing secret is a
deployment mistake, not an invitation to run the probe for anyone.
"""

import hashlib
import hmac
from typing import Optional


def _digest(value: str) -> bytes:
    return hashlib.sha256(value.encode("utf-8")).digest()


class SharedSecretValidator:
    """Validates inbound credentials against the process's shared secret."""

    def __init__(self, secret: Optional[str]):
        self._digest: Optional[bytes] = _digest(secret) if secret else None

    @property
    def configured(self) -> bool:
        return self._digest is not None

    def validate(self, credential: Optional[str]) -> bool:
        """
        Check a credential.

        Args:
            credential: Raw Authorization header value (None if absent)

        Returns:
            True only if a secret is configured and the credential matches
        """
        if self._digest is None:
            return False
        # Digest even absent credentials so every rejection costs the same;
        # the configured secret is non-empty, so "" never matches
        return hmac.compare_digest(_digest(credential or ""), self._digest)

    def __repr__(self) -> str:
        return f"SharedSecretValidator(configured={self.configured})"


__all__ = [
    "SharedSecretValidator",
]
