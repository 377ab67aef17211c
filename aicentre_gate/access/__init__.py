"""
Access Gate Module
==================
Request-level access control for the portal: signed URLs, session cookie and
IPv4 allowlist, applied as middleware in front of every route.
"""

from .ip_utils import (
    LOOPBACK_ADDRESSES,
    get_client_ip,
    ip_to_int,
    is_ip_allowed,
    is_ip_in_cidr,
    is_loopback,
    parse_cidr,
    prefix_to_mask,
)
from .models import GateDecision, GateOutcome, GateReason, GateRequest, SessionCookie
from .gate import AccessGate, SIGNATURE_PARAM, TIMESTAMP_PARAM
from .middleware import AccessGateMiddleware, apply_session_cookie

__all__ = [
    # IP Utils
    "LOOPBACK_ADDRESSES",
    "get_client_ip",
    "ip_to_int",
    "is_ip_allowed",
    "is_ip_in_cidr",
    "is_loopback",
    "parse_cidr",
    "prefix_to_mask",
    # Models
    "GateDecision",
    "GateOutcome",
    "GateReason",
    "GateRequest",
    "SessionCookie",
    # Gate
    "AccessGate",
    "SIGNATURE_PARAM",
    "TIMESTAMP_PARAM",
    # Middleware
    "AccessGateMiddleware",
    "apply_session_cookie",
]
