"""
Signing Models
==============
Data models and enums for signed URL verification.
"""

from typing import Optional
from dataclasses import dataclass
from enum import Enum


class VerificationError(str, Enum):
    """Reasons a signed URL fails verification (logged, never shown to clients)."""
    MISSING_CREDENTIAL = "missing_credential"
    MALFORMED_TIMESTAMP = "malformed_timestamp"
    EXPIRED = "expired"
    SIGNATURE_MISMATCH = "signature_mismatch"


@dataclass(frozen=True)
class SignedRequest:
    """A signed URL as received: path without leading slash, raw query values."""
    path: str
    timestamp: Optional[str]
    signature: Optional[str]


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a signature verification."""
    valid: bool
    error: Optional[VerificationError] = None
