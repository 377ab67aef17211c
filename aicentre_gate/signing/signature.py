"""
Signature Engine
================
HMAC-SHA256 signed URLs over ``path:timestamp`` with a freshness window.
"""

import hashlib
import hmac
import re
import time
from typing import Callable, Optional
from urllib.parse import quote, urlencode

from ..exceptions import ConfigurationError
from .models import SignedRequest, VerificationError, VerificationResult

# Configuration
DEFAULT_TIMEOUT_MS = 5 * 60 * 1000  # 5 minutes
SIGNATURE_ALGORITHM = "sha256"

# Characters encodeURIComponent leaves untouched besides alphanumerics
_URI_COMPONENT_SAFE = "-_.!~*'()"

_TIMESTAMP_PATTERN = re.compile(r"-?[0-9]+")
# Longer timestamps are always outside the window
_MAX_TIMESTAMP_DIGITS = 20


def current_time_ms() -> int:
    """Wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in time independent of where they differ.

    Unequal lengths fail immediately; equal-length inputs are XOR-accumulated
    over every byte with no early exit.
    """
    left = a.encode("utf-8")
    right = b.encode("utf-8")
    if len(left) != len(right):
        return False

    result = 0
    for x, y in zip(left, right):
        result |= x ^ y
    return result == 0


class SignatureEngine:
    """
    Produces and verifies signed URLs for protected resources.

    The secret is held only here and never logged.
    """

    def __init__(
        self,
        secret: str,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        clock: Callable[[], int] = current_time_ms,
    ):
        """
        Args:
            secret: Shared HMAC key
            timeout_ms: Accepted distance between the signed timestamp and now
            clock: Time source returning epoch milliseconds
        """
        if not secret:
            raise ConfigurationError("signing secret must not be empty")
        self._key = secret.encode("utf-8")
        self.timeout_ms = timeout_ms
        self._clock = clock

    def __repr__(self) -> str:
        return f"SignatureEngine(timeout_ms={self.timeout_ms})"

    def now_ms(self) -> int:
        return self._clock()

    def generate_signature(self, path: str, timestamp_ms: int) -> str:
        """
        Compute the HMAC-SHA256 signature for a path and timestamp.

        Args:
            path: Resource identifier, not URL-encoded
            timestamp_ms: Unix timestamp in milliseconds

        Returns:
            Lowercase hex digest (64 characters)
        """
        message = f"{path}:{int(timestamp_ms)}"
        return hmac.new(
            self._key,
            message.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def generate_signed_url(
        self,
        path: str,
        base_url: str,
        timestamp_ms: Optional[int] = None,
    ) -> str:
        """
        Build ``{base_url}/{encoded path}?ts=...&sig=...`` signed at ``timestamp_ms``.

        Args:
            path: Resource identifier to protect
            base_url: Absolute origin, e.g. "https://portal.example.com"
            timestamp_ms: Signing time, defaults to now
        """
        if timestamp_ms is None:
            timestamp_ms = self.now_ms()
        signature = self.generate_signature(path, timestamp_ms)
        query = urlencode({"ts": str(timestamp_ms), "sig": signature})
        encoded_path = quote(path, safe=_URI_COMPONENT_SAFE)
        return f"{base_url.rstrip('/')}/{encoded_path}?{query}"

    def verify_signature(
        self,
        path: str,
        timestamp: Optional[str],
        signature: Optional[str],
    ) -> VerificationResult:
        """
        Verify a signed request. The first failing check wins.

        Args:
            path: Path from the live request, leading slash stripped
            timestamp: ``ts`` query value as received
            signature: ``sig`` query value as received
        """
        if not timestamp or not signature:
            return VerificationResult(False, VerificationError.MISSING_CREDENTIAL)

        if not _TIMESTAMP_PATTERN.fullmatch(timestamp):
            return VerificationResult(False, VerificationError.MALFORMED_TIMESTAMP)
        if len(timestamp.lstrip("-")) > _MAX_TIMESTAMP_DIGITS:
            return VerificationResult(False, VerificationError.EXPIRED)
        ts = int(timestamp)

        if abs(self.now_ms() - ts) > self.timeout_ms:
            return VerificationResult(False, VerificationError.EXPIRED)

        expected = self.generate_signature(path, ts)
        if not constant_time_compare(signature, expected):
            return VerificationResult(False, VerificationError.SIGNATURE_MISMATCH)

        return VerificationResult(True)

    def verify_request(self, request: SignedRequest) -> VerificationResult:
        """Verify a ``SignedRequest`` built from query parameters."""
        return self.verify_signature(request.path, request.timestamp, request.signature)
