"""
Signed URL Module
=================
HMAC-signed, time-limited URLs used as bearer credentials for the portal.
"""

from .models import SignedRequest, VerificationError, VerificationResult
from .signature import (
    DEFAULT_TIMEOUT_MS,
    SIGNATURE_ALGORITHM,
    SignatureEngine,
    constant_time_compare,
    current_time_ms,
)

__all__ = [
    # Models
    "SignedRequest",
    "VerificationError",
    "VerificationResult",
    # Engine
    "SignatureEngine",
    "constant_time_compare",
    "current_time_ms",
    "DEFAULT_TIMEOUT_MS",
    "SIGNATURE_ALGORITHM",
]
