"""
Tests for the access gate policy, evaluated directly on request snapshots.
"""

from unittest.mock import MagicMock

import pytest

from aicentre_gate.access import AccessGate, GateOutcome, GateReason, GateRequest
from aicentre_gate.signing import VerificationError
from aicentre_gate.metrics import GATE_REGISTRY

from conftest import NOW_MS, make_settings

COOKIE = {"aicentre-auth": "authenticated"}


def _signed_query(engine, path: str, ts: int = NOW_MS):
    return {"ts": str(ts), "sig": engine.generate_signature(path, ts)}


def _decisions(outcome: str, reason: str) -> float:
    value = GATE_REGISTRY.get_sample_value(
        "access_gate_decisions_total", {"outcome": outcome, "reason": reason}
    )
    return value or 0.0


class TestExclusions:
    """Tests for paths the gate never intercepts."""

    @pytest.mark.parametrize("path", [
        "/api/workshops",
        "/api/auth/generate-signed-url",
        "/_next/static/chunk.js",
        "/_next/image",
        "/favicon.ico",
        "/access-denied",
        "/get-access",
        "/health/live",
        "/metrics",
    ])
    def test_excluded_paths_allowed(self, settings, engine, path):
        decision = AccessGate(settings, engine).evaluate(GateRequest(path=path))

        assert decision.outcome == GateOutcome.ALLOW
        assert decision.reason == GateReason.EXCLUDED_PATH

    def test_prefix_must_end_at_segment(self, settings, engine):
        decision = AccessGate(settings, engine).evaluate(GateRequest(path="/apiary"))

        assert decision.outcome == GateOutcome.DENY

    def test_custom_redirect_targets_always_excluded(self, engine):
        settings = make_settings(excluded_paths=(), get_access_path="/request-access")
        gate = AccessGate(settings, engine)

        assert gate.is_excluded("/request-access") is True
        assert gate.is_excluded("/access-denied") is True
        assert gate.is_excluded("/workshops") is False


class TestSignaturePolicy:
    """Tests for the cookie and signed URL state machine."""

    def test_session_without_credentials_allowed(self, settings, engine):
        decision = AccessGate(settings, engine).evaluate(
            GateRequest(path="/workshops/42", cookies=COOKIE)
        )

        assert decision.outcome == GateOutcome.ALLOW
        assert decision.reason == GateReason.SESSION
        assert decision.cookie is None

    def test_no_session_no_credentials_denied(self, settings, engine):
        decision = AccessGate(settings, engine).evaluate(GateRequest(path="/workshops/42"))

        assert decision.outcome == GateOutcome.DENY
        assert decision.reason == GateReason.NO_CREDENTIALS
        assert decision.location == "/get-access"

    def test_only_timestamp_denied(self, settings, engine):
        decision = AccessGate(settings, engine).evaluate(
            GateRequest(path="/workshops/42", query={"ts": str(NOW_MS)})
        )

        assert decision.reason == GateReason.NO_CREDENTIALS

    def test_verified_strict_redirects_to_root_with_cookie(self, settings, engine):
        decision = AccessGate(settings, engine).evaluate(
            GateRequest(path="/workshops/42", query=_signed_query(engine, "workshops/42"))
        )

        assert decision.outcome == GateOutcome.REDIRECT
        assert decision.reason == GateReason.VERIFIED
        assert decision.location == "/"
        assert decision.cookie.name == "aicentre-auth"
        assert decision.cookie.value == "authenticated"
        assert decision.cookie.max_age == 86400
        assert decision.cookie.httponly is True
        assert decision.cookie.samesite == "lax"
        assert decision.cookie.path == "/"
        assert decision.cookie.secure is False

    def test_verified_lenient_allows_with_cookie(self, engine):
        gate = AccessGate(make_settings(strict_session=False), engine)

        decision = gate.evaluate(
            GateRequest(path="/workshops/42", query=_signed_query(engine, "workshops/42"))
        )

        assert decision.outcome == GateOutcome.ALLOW
        assert decision.reason == GateReason.VERIFIED
        assert decision.cookie is not None

    def test_session_with_credentials_strict_redirects(self, settings, engine):
        decision = AccessGate(settings, engine).evaluate(
            GateRequest(
                path="/workshops/42",
                query=_signed_query(engine, "workshops/42"),
                cookies=COOKIE,
            )
        )

        assert decision.outcome == GateOutcome.REDIRECT
        assert decision.reason == GateReason.SESSION_WITH_CREDENTIALS
        assert decision.location == "/"
        assert decision.cookie is None

    def test_session_with_credentials_lenient_allows(self, engine):
        gate = AccessGate(make_settings(strict_session=False), engine)

        decision = gate.evaluate(
            GateRequest(path="/workshops/42", query={"ts": "1", "sig": "x"}, cookies=COOKIE)
        )

        assert decision.outcome == GateOutcome.ALLOW
        assert decision.reason == GateReason.SESSION

    def test_empty_cookie_is_not_a_session(self, settings, engine):
        decision = AccessGate(settings, engine).evaluate(
            GateRequest(path="/workshops/42", cookies={"aicentre-auth": ""})
        )

        assert decision.outcome == GateOutcome.DENY

    @pytest.mark.parametrize("query,error", [
        ({"ts": "yesterday", "sig": "abc"}, VerificationError.MALFORMED_TIMESTAMP),
        ({"ts": str(NOW_MS - 600_000), "sig": "abc"}, VerificationError.EXPIRED),
        ({"ts": str(NOW_MS), "sig": "0" * 64}, VerificationError.SIGNATURE_MISMATCH),
        ({"ts": "9" * 5000, "sig": "a" * 64}, VerificationError.EXPIRED),
    ])
    def test_rejected_credentials(self, settings, engine, query, error):
        decision = AccessGate(settings, engine).evaluate(
            GateRequest(path="/workshops/42", query=query)
        )

        assert decision.outcome == GateOutcome.DENY
        assert decision.reason == GateReason.REJECTED
        assert decision.error == error
        assert decision.location == "/get-access"
        assert decision.cookie is None

    def test_signature_for_other_path_rejected(self, settings, engine):
        decision = AccessGate(settings, engine).evaluate(
            GateRequest(path="/workshops/43", query=_signed_query(engine, "workshops/42"))
        )

        assert decision.error == VerificationError.SIGNATURE_MISMATCH

    def test_verification_exception_fails_closed(self, settings):
        engine = MagicMock()
        engine.verify_signature.side_effect = RuntimeError("crypto backend down")

        decision = AccessGate(settings, engine).evaluate(
            GateRequest(path="/workshops/42", query={"ts": str(NOW_MS), "sig": "abc"})
        )

        assert decision.outcome == GateOutcome.DENY
        assert decision.reason == GateReason.VERIFICATION_ERROR
        assert decision.cookie is None

    def test_production_cookie_is_secure(self, engine):
        settings = make_settings(environment="production")

        decision = AccessGate(settings, engine).evaluate(
            GateRequest(path="/workshops/42", query=_signed_query(engine, "workshops/42"))
        )

        assert decision.cookie.secure is True

    def test_decisions_are_counted(self, settings, engine):
        before = _decisions("DENY", "no_credentials")

        AccessGate(settings, engine).evaluate(GateRequest(path="/keynotes"))

        assert _decisions("DENY", "no_credentials") == before + 1


class TestIpAllowlistPolicy:
    """Tests for the CIDR allowlist variant."""

    @pytest.fixture
    def ip_only(self):
        return make_settings(
            signature_auth_enabled=False,
            ip_allowlist_enabled=True,
            allowed_ip_ranges=("10.0.0.0/24",),
            allow_loopback_bypass=True,
        )

    def _request(self, ip: str) -> GateRequest:
        return GateRequest(path="/workshops", headers={"x-forwarded-for": ip})

    def test_member_allowed(self, ip_only, engine):
        decision = AccessGate(ip_only, engine).evaluate(self._request("10.0.0.5"))

        assert decision.outcome == GateOutcome.ALLOW
        assert decision.reason == GateReason.IP_ALLOWED
        assert decision.client_ip == "10.0.0.5"

    def test_non_member_denied(self, ip_only, engine):
        decision = AccessGate(ip_only, engine).evaluate(self._request("10.0.1.5"))

        assert decision.outcome == GateOutcome.DENY
        assert decision.reason == GateReason.IP_NOT_ALLOWED
        assert decision.location == "/access-denied"

    def test_loopback_bypass_in_development(self, ip_only, engine):
        decision = AccessGate(ip_only, engine).evaluate(self._request("127.0.0.1"))

        assert decision.outcome == GateOutcome.ALLOW
        assert decision.reason == GateReason.LOOPBACK_BYPASS

    def test_missing_headers_count_as_loopback(self, ip_only, engine):
        decision = AccessGate(ip_only, engine).evaluate(GateRequest(path="/workshops"))

        assert decision.reason == GateReason.LOOPBACK_BYPASS

    def test_no_loopback_bypass_in_production(self, engine):
        settings = make_settings(
            environment="production",
            signature_auth_enabled=False,
            ip_allowlist_enabled=True,
            allowed_ip_ranges=("10.0.0.0/24",),
            allow_loopback_bypass=True,
        )

        decision = AccessGate(settings, engine).evaluate(self._request("127.0.0.1"))

        assert decision.outcome == GateOutcome.DENY

    def test_combined_policy_falls_back_to_signature(self, engine):
        settings = make_settings(
            ip_allowlist_enabled=True,
            allowed_ip_ranges=("10.0.0.0/24",),
        )
        gate = AccessGate(settings, engine)

        inside = gate.evaluate(self._request("10.0.0.9"))
        outside = gate.evaluate(self._request("203.0.113.1"))
        signed = gate.evaluate(GateRequest(
            path="/workshops",
            query=_signed_query(engine, "workshops"),
            headers={"x-forwarded-for": "203.0.113.1"},
        ))

        assert inside.reason == GateReason.IP_ALLOWED
        assert outside.reason == GateReason.NO_CREDENTIALS
        assert outside.location == "/get-access"
        assert signed.reason == GateReason.VERIFIED


class TestDevelopmentBypass:
    """Tests for the non-production gate switch."""

    def test_disabled_gate_allows_everything(self, engine):
        settings = make_settings(gate_enabled=False)

        decision = AccessGate(settings, engine).evaluate(GateRequest(path="/workshops"))

        assert decision.outcome == GateOutcome.ALLOW
        assert decision.reason == GateReason.GATE_DISABLED
