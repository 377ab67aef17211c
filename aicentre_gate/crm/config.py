"""
CRM Client Configuration
========================
Credentials and endpoints for the CRM backend the content APIs proxy to.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ..exceptions import ConfigurationError

DEFAULT_TOKEN_PATH = "/services/oauth2/token"

# CRM tokens expire after 30 minutes; refresh a little earlier
DEFAULT_TOKEN_TTL_SECONDS = 25 * 60


@dataclass(frozen=True)
class CrmConfig:
    """Configuration for CRM client-credentials authentication."""
    client_id: str
    client_secret: str
    domain: str
    agent_id: Optional[str] = None
    token_path: str = DEFAULT_TOKEN_PATH
    token_ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS
    timeout: float = 10.0

    def __repr__(self) -> str:
        return f"CrmConfig(domain={self.domain!r}, client_id={self.client_id!r})"

    @property
    def domain_url(self) -> str:
        return f"https://{self.domain}"

    @property
    def token_url(self) -> str:
        return f"{self.domain_url}{self.token_path}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CrmConfig":
        """
        Load CRM settings from the environment.

        Raises:
            ConfigurationError: If client id, secret or domain is missing
        """
        env = os.environ if environ is None else environ
        client_id = env.get("CRM_CLIENT_ID", "")
        client_secret = env.get("CRM_CLIENT_SECRET", "")
        domain = env.get("CRM_DOMAIN", "")

        missing = [
            name for name, value in (
                ("CRM_CLIENT_ID", client_id),
                ("CRM_CLIENT_SECRET", client_secret),
                ("CRM_DOMAIN", domain),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing CRM configuration: {', '.join(missing)}"
            )

        return cls(
            client_id=client_id,
            client_secret=client_secret,
            domain=domain,
            agent_id=env.get("CRM_AGENT_ID") or None,
        )
