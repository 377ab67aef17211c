"""
Gate Configuration
==================
Process-wide settings for the signature engine and access gate.

Settings are built once at startup (``GateSettings.from_env()``) and passed to
the constructors that need them. All validation happens in ``__post_init__`` so
a misconfigured deployment fails before serving a single request.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from .exceptions import ConfigurationError

PRODUCTION = "production"

# Development-only fallback, never accepted in production
DEFAULT_DEV_SECRET = "defaultsharedsecret"

DEFAULT_TIMEOUT_MS = 5 * 60 * 1000

SESSION_COOKIE_NAME = "aicentre-auth"
SESSION_COOKIE_VALUE = "authenticated"
SESSION_MAX_AGE_SECONDS = 24 * 60 * 60

DEFAULT_GET_ACCESS_PATH = "/get-access"
DEFAULT_ACCESS_DENIED_PATH = "/access-denied"
DEFAULT_POST_AUTH_REDIRECT_PATH = "/"

# Paths the gate never intercepts (assets, access pages, APIs, probes)
DEFAULT_EXCLUDED_PATHS: Tuple[str, ...] = (
    "/api",
    "/_next/static",
    "/_next/image",
    "/static",
    "/favicon.ico",
    DEFAULT_ACCESS_DENIED_PATH,
    DEFAULT_GET_ACCESS_PATH,
    "/health",
    "/metrics",
)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(name: str, value: Optional[str], default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def _parse_list(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True, repr=False)
class GateSettings:
    """Immutable configuration shared by the signature engine and access gate."""

    secret: Optional[str] = None
    environment: str = PRODUCTION
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    gate_enabled: bool = True
    signature_auth_enabled: bool = True
    ip_allowlist_enabled: bool = False
    allowed_ip_ranges: Tuple[str, ...] = ()
    allow_loopback_bypass: bool = False
    strict_session: bool = True

    excluded_paths: Tuple[str, ...] = DEFAULT_EXCLUDED_PATHS
    get_access_path: str = DEFAULT_GET_ACCESS_PATH
    access_denied_path: str = DEFAULT_ACCESS_DENIED_PATH
    post_auth_redirect_path: str = DEFAULT_POST_AUTH_REDIRECT_PATH

    cookie_name: str = SESSION_COOKIE_NAME
    cookie_max_age_seconds: int = SESSION_MAX_AGE_SECONDS

    service_name: str = "aicentre-gate"
    log_level: str = "INFO"
    log_json: bool = True

    # Parsed (base, mask) pairs, filled in by __post_init__
    cidr_ranges: Tuple[Tuple[int, int], ...] = field(
        default=(), init=False, repr=False, compare=False
    )

    def __post_init__(self):
        # Local import keeps access.ip_utils free of a config dependency cycle
        from .access.ip_utils import parse_cidr

        if self.timeout_ms <= 0:
            raise ConfigurationError("SIGNED_URL_TIMEOUT_MS must be positive")

        if not self.secret:
            if self.is_production:
                raise ConfigurationError(
                    "SIGNED_URL_SECRET is required in production"
                )
            object.__setattr__(self, "secret", DEFAULT_DEV_SECRET)

        if not self.gate_enabled and self.is_production:
            raise ConfigurationError(
                "ACCESS_GATE_ENABLED=false is not allowed in production"
            )

        if self.gate_enabled and not (
            self.signature_auth_enabled or self.ip_allowlist_enabled
        ):
            raise ConfigurationError(
                "At least one access policy (signature or IP allowlist) must be enabled"
            )

        if self.is_production and self.allow_loopback_bypass:
            object.__setattr__(self, "allow_loopback_bypass", False)

        try:
            ranges = tuple(parse_cidr(entry) for entry in self.allowed_ip_ranges)
        except ValueError as e:
            raise ConfigurationError(f"Invalid ALLOWED_IP_RANGES entry: {e}") from e
        object.__setattr__(self, "cidr_ranges", ranges)

    def __repr__(self) -> str:
        return (
            f"GateSettings(environment={self.environment!r}, "
            f"timeout_ms={self.timeout_ms}, secret='***', "
            f"signature_auth_enabled={self.signature_auth_enabled}, "
            f"ip_allowlist_enabled={self.ip_allowlist_enabled}, "
            f"strict_session={self.strict_session})"
        )

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == PRODUCTION

    @property
    def secure_cookies(self) -> bool:
        return self.is_production

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GateSettings":
        """Build settings from environment variables."""
        env = os.environ if environ is None else environ

        environment = env.get("ENVIRONMENT", PRODUCTION) or PRODUCTION
        is_production = environment.strip().lower() == PRODUCTION

        timeout_raw = env.get("SIGNED_URL_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS))
        try:
            timeout_ms = int(timeout_raw)
        except ValueError as e:
            raise ConfigurationError(
                f"SIGNED_URL_TIMEOUT_MS must be an integer, got {timeout_raw!r}"
            ) from e

        ranges = _parse_list(env.get("ALLOWED_IP_RANGES"))
        if not ranges:
            ranges = _parse_list(env.get("ALLOWED_IP_ADDRESS"))

        excluded = _parse_list(env.get("GATE_EXCLUDED_PATHS")) or DEFAULT_EXCLUDED_PATHS

        return cls(
            secret=env.get("SIGNED_URL_SECRET") or None,
            environment=environment,
            timeout_ms=timeout_ms,
            gate_enabled=_parse_bool(
                "ACCESS_GATE_ENABLED", env.get("ACCESS_GATE_ENABLED"), True
            ),
            signature_auth_enabled=_parse_bool(
                "SIGNATURE_AUTH_ENABLED", env.get("SIGNATURE_AUTH_ENABLED"), True
            ),
            ip_allowlist_enabled=_parse_bool(
                "IP_ALLOWLIST_ENABLED", env.get("IP_ALLOWLIST_ENABLED"), bool(ranges)
            ),
            allowed_ip_ranges=ranges,
            allow_loopback_bypass=_parse_bool(
                "ALLOW_LOOPBACK_BYPASS",
                env.get("ALLOW_LOOPBACK_BYPASS"),
                not is_production,
            ),
            strict_session=_parse_bool(
                "ACCESS_GATE_STRICT", env.get("ACCESS_GATE_STRICT"), True
            ),
            excluded_paths=excluded,
            get_access_path=env.get("GET_ACCESS_PATH", DEFAULT_GET_ACCESS_PATH),
            access_denied_path=env.get("ACCESS_DENIED_PATH", DEFAULT_ACCESS_DENIED_PATH),
            post_auth_redirect_path=env.get(
                "POST_AUTH_REDIRECT_PATH", DEFAULT_POST_AUTH_REDIRECT_PATH
            ),
            service_name=env.get("SERVICE_NAME", "aicentre-gate"),
            log_level=env.get("LOG_LEVEL", "INFO"),
            log_json=_parse_bool("LOG_JSON", env.get("LOG_JSON"), is_production),
        )
