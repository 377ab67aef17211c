"""
Access Gate
===========
Per-request access policy: path exclusions, IP allowlist, session cookie and
signed URL verification.

The gate holds no mutable state; every decision is a function of the request
snapshot and the immutable settings, so one instance serves all requests.
"""

from typing import Optional, Tuple

import structlog

from ..config import SESSION_COOKIE_VALUE, GateSettings
from ..metrics import record_decision, record_verification
from ..signing.signature import SignatureEngine
from .ip_utils import get_client_ip, is_ip_allowed, is_loopback
from .models import (
    GateDecision,
    GateOutcome,
    GateReason,
    GateRequest,
    SessionCookie,
)

logger = structlog.get_logger(__name__)

TIMESTAMP_PARAM = "ts"
SIGNATURE_PARAM = "sig"


class AccessGate:
    """
    Decides allow/redirect/deny for each inbound request.

    Policy order:
    1. Excluded paths (assets, access pages, APIs, probes) pass untouched
    2. Development bypass when the gate is disabled (never in production)
    3. IP allowlist, with a loopback bypass outside production
    4. Session cookie, then signed URL credentials
    """

    def __init__(self, settings: GateSettings, engine: Optional[SignatureEngine] = None):
        self.settings = settings
        if engine is None:
            engine = SignatureEngine(settings.secret, settings.timeout_ms)
        self.engine = engine
        self._excluded_paths = self._build_exclusions(settings)

    @staticmethod
    def _build_exclusions(settings: GateSettings) -> Tuple[str, ...]:
        # Redirect targets are always excluded to avoid redirect loops
        paths = list(settings.excluded_paths)
        for target in (settings.get_access_path, settings.access_denied_path):
            if target not in paths:
                paths.append(target)
        return tuple(paths)

    def is_excluded(self, path: str) -> bool:
        """Check if the gate must not intercept ``path``."""
        for excluded in self._excluded_paths:
            prefix = excluded.rstrip("/")
            if not prefix:
                if path == "/":
                    return True
                continue
            if path == prefix or path.startswith(prefix + "/"):
                return True
        return False

    def session_cookie(self) -> SessionCookie:
        return SessionCookie(
            name=self.settings.cookie_name,
            value=SESSION_COOKIE_VALUE,
            max_age=self.settings.cookie_max_age_seconds,
            secure=self.settings.secure_cookies,
        )

    def evaluate(self, request: GateRequest) -> GateDecision:
        """Evaluate a request and count the decision."""
        decision = self._decide(request)
        record_decision(decision.outcome.value, decision.reason.value)
        return decision

    def _decide(self, request: GateRequest) -> GateDecision:
        if self.is_excluded(request.path):
            return GateDecision(GateOutcome.ALLOW, GateReason.EXCLUDED_PATH)

        if not self.settings.gate_enabled:
            return GateDecision(GateOutcome.ALLOW, GateReason.GATE_DISABLED)

        client_ip = None
        if self.settings.ip_allowlist_enabled:
            client_ip = get_client_ip(request.headers)

            if self.settings.allow_loopback_bypass and is_loopback(client_ip):
                logger.debug("loopback_bypass", path=request.path, ip=client_ip)
                return GateDecision(
                    GateOutcome.ALLOW, GateReason.LOOPBACK_BYPASS, client_ip=client_ip
                )

            if is_ip_allowed(client_ip, self.settings.cidr_ranges):
                return GateDecision(
                    GateOutcome.ALLOW, GateReason.IP_ALLOWED, client_ip=client_ip
                )

            if not self.settings.signature_auth_enabled:
                logger.warning("access_denied_ip", path=request.path, ip=client_ip)
                return GateDecision(
                    GateOutcome.DENY,
                    GateReason.IP_NOT_ALLOWED,
                    location=self.settings.access_denied_path,
                    client_ip=client_ip,
                )

        return self._decide_signed(request, client_ip)

    def _decide_signed(self, request: GateRequest, client_ip: Optional[str]) -> GateDecision:
        timestamp = request.query.get(TIMESTAMP_PARAM)
        signature = request.query.get(SIGNATURE_PARAM)

        if request.cookies.get(self.settings.cookie_name):
            if self.settings.strict_session and (
                timestamp is not None or signature is not None
            ):
                # Stale or repeated signed link while already authenticated
                return GateDecision(
                    GateOutcome.REDIRECT,
                    GateReason.SESSION_WITH_CREDENTIALS,
                    location=self.settings.post_auth_redirect_path,
                    client_ip=client_ip,
                )
            return GateDecision(GateOutcome.ALLOW, GateReason.SESSION, client_ip=client_ip)

        if not timestamp or not signature:
            logger.info("access_denied_no_credentials", path=request.path)
            return GateDecision(
                GateOutcome.DENY,
                GateReason.NO_CREDENTIALS,
                location=self.settings.get_access_path,
                client_ip=client_ip,
            )

        path = request.path[1:] if request.path.startswith("/") else request.path

        try:
            result = self.engine.verify_signature(path, timestamp, signature)
        except Exception:
            # Fail closed
            logger.exception("signature_verification_failed", path=path)
            record_verification(GateReason.VERIFICATION_ERROR.value)
            return GateDecision(
                GateOutcome.DENY,
                GateReason.VERIFICATION_ERROR,
                location=self.settings.get_access_path,
                client_ip=client_ip,
            )

        if not result.valid:
            record_verification(result.error.value)
            logger.warning(
                "signature_rejected",
                path=path,
                error=result.error.value,
                ip=client_ip,
            )
            return GateDecision(
                GateOutcome.DENY,
                GateReason.REJECTED,
                location=self.settings.get_access_path,
                error=result.error,
                client_ip=client_ip,
            )

        record_verification("valid")
        logger.info("signature_verified", path=path, ip=client_ip)

        if self.settings.strict_session:
            return GateDecision(
                GateOutcome.REDIRECT,
                GateReason.VERIFIED,
                location=self.settings.post_auth_redirect_path,
                cookie=self.session_cookie(),
                client_ip=client_ip,
            )
        return GateDecision(
            GateOutcome.ALLOW,
            GateReason.VERIFIED,
            cookie=self.session_cookie(),
            client_ip=client_ip,
        )
