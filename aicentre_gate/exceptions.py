"""
Gate Exceptions
===============
Exception hierarchy for configuration and CRM communication failures.

Signature verification failures are not exceptions: they are returned as
``VerificationResult`` values and converted into redirects by the gate.
"""

from typing import Any, Optional


class GateError(Exception):
    """Base exception for all aicentre-gate errors."""
    pass


class ConfigurationError(GateError):
    """Raised at startup when settings are missing or invalid."""
    pass


class CrmError(GateError):
    """Base exception for CRM backend communication errors."""

    def __init__(
        self,
        message: str,
        service: str = "crm",
        status_code: Optional[int] = None,
        details: Any = None,
    ):
        self.message = message
        self.service = service
        self.status_code = status_code
        self.details = details
        super().__init__(f"[{service}] {message} (Status: {status_code})")


class CrmUnavailableError(CrmError):
    """Raised when the CRM is unreachable or answers with a 5xx."""
    pass


class CrmTimeoutError(CrmUnavailableError):
    """Raised specifically on timeouts."""
    pass


class CrmAuthenticationError(CrmError):
    """Raised when the CRM rejects the client credentials (400/401/403)."""
    pass
