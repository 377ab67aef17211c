"""
AI Centre Gate
==============
Signed-URL and IP-allowlist access control for the AI Centre portal.
"""

__version__ = "0.1.0"

# Configuration
from aicentre_gate.config import GateSettings

# Exceptions
from aicentre_gate.exceptions import (
    ConfigurationError,
    CrmAuthenticationError,
    CrmError,
    CrmTimeoutError,
    CrmUnavailableError,
    GateError,
)

# Signed URLs
from aicentre_gate.signing import (
    SignatureEngine,
    SignedRequest,
    VerificationError,
    VerificationResult,
    constant_time_compare,
)

# Access Gate
from aicentre_gate.access import (
    AccessGate,
    AccessGateMiddleware,
    GateDecision,
    GateOutcome,
    GateReason,
    GateRequest,
    SessionCookie,
    is_ip_in_cidr,
)

# Cache
from aicentre_gate.cache import TTLCache

# CRM
from aicentre_gate.crm import CrmConfig, CrmTokenProvider

__all__ = [
    "__version__",
    # Configuration
    "GateSettings",
    # Exceptions
    "ConfigurationError",
    "CrmAuthenticationError",
    "CrmError",
    "CrmTimeoutError",
    "CrmUnavailableError",
    "GateError",
    # Signed URLs
    "SignatureEngine",
    "SignedRequest",
    "VerificationError",
    "VerificationResult",
    "constant_time_compare",
    # Access Gate
    "AccessGate",
    "AccessGateMiddleware",
    "GateDecision",
    "GateOutcome",
    "GateReason",
    "GateRequest",
    "SessionCookie",
    "is_ip_in_cidr",
    # Cache
    "TTLCache",
    # CRM
    "CrmConfig",
    "CrmTokenProvider",
]
