"""
Access Gate Models
==================
Request snapshot, decision and cookie types for the access gate.
"""

from typing import Mapping, Optional
from dataclasses import dataclass, field
from enum import Enum

from ..signing.models import VerificationError


class GateOutcome(str, Enum):
    """Access gate decision types."""
    ALLOW = "ALLOW"
    REDIRECT = "REDIRECT"
    DENY = "DENY"


class GateReason(str, Enum):
    """Why the gate reached its decision (logged and counted)."""
    EXCLUDED_PATH = "excluded_path"
    GATE_DISABLED = "gate_disabled"
    LOOPBACK_BYPASS = "loopback_bypass"
    IP_ALLOWED = "ip_allowed"
    IP_NOT_ALLOWED = "ip_not_allowed"
    SESSION = "session"
    SESSION_WITH_CREDENTIALS = "session_with_credentials"
    NO_CREDENTIALS = "no_credentials"
    VERIFIED = "verified"
    REJECTED = "rejected"
    VERIFICATION_ERROR = "verification_error"


@dataclass(frozen=True)
class GateRequest:
    """The parts of an inbound HTTP request the gate looks at."""
    path: str
    query: Mapping[str, str] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SessionCookie:
    """Attributes of the session cookie stamped after a verified signed URL."""
    name: str
    value: str
    max_age: int
    secure: bool
    httponly: bool = True
    samesite: str = "lax"
    path: str = "/"


@dataclass(frozen=True)
class GateDecision:
    """Result of evaluating a request against the access policies."""
    outcome: GateOutcome
    reason: GateReason
    location: Optional[str] = None
    cookie: Optional[SessionCookie] = None
    error: Optional[VerificationError] = None
    client_ip: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.outcome == GateOutcome.ALLOW
