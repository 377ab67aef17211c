import logging
from typing import Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from ..cache import TTLCache
from ..exceptions import (
    CrmAuthenticationError,
    CrmError,
    CrmTimeoutError,
    CrmUnavailableError,
)
from .config import CrmConfig

logger = structlog.get_logger(__name__)
retry_logger = logging.getLogger(__name__)

TOKEN_CACHE_KEY = "crm-token"
SERVICE_NAME = "crm"


class CrmTokenProvider:
    """
    Client-credentials access token source for the CRM backend.

    Features:
    - Tokens cached in an injected TTLCache (no module-level state).
    - Automatic retries on network errors and 5xx responses.
    - httpx errors mapped to CrmError subclasses.
    """

    def __init__(
        self,
        config: CrmConfig,
        cache: Optional[TTLCache] = None,
        client: Optional[httpx.AsyncClient] = None,
        max_attempts: int = 3,
        retry_wait: Optional[wait_base] = None,
    ):
        self.config = config
        self.cache = cache if cache is not None else TTLCache(
            max_entries=100, ttl_seconds=config.token_ttl_seconds
        )
        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient(timeout=config.timeout)
        self.max_attempts = max_attempts
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)

    @property
    def domain_url(self) -> str:
        return self.config.domain_url

    @property
    def agent_id(self) -> str:
        if not self.config.agent_id:
            raise CrmError("CRM_AGENT_ID is not configured", service=SERVICE_NAME)
        return self.config.agent_id

    async def aclose(self):
        """Close the underlying HTTP client if this provider created it."""
        if self._owns_client:
            await self.client.aclose()

    async def get_access_token(self) -> str:
        """Return a cached access token, fetching a new one when stale."""
        token = self.cache.get(TOKEN_CACHE_KEY)
        if token is not None:
            logger.debug("crm_token_cache_hit")
            return token

        token = await self._fetch_token()
        self.cache.set(TOKEN_CACHE_KEY, token, ttl_seconds=self.config.token_ttl_seconds)
        logger.info("crm_token_refreshed", domain=self.config.domain)
        return token

    def invalidate(self) -> None:
        """Drop the cached token, e.g. after the CRM answers 401."""
        self.cache.delete(TOKEN_CACHE_KEY)

    async def _fetch_token(self) -> str:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(CrmUnavailableError),
            stop=stop_after_attempt(self.max_attempts),
            wait=self._retry_wait,
            before_sleep=before_sleep_log(retry_logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._request_token()

    async def _request_token(self) -> str:
        form = {
            "grant_type": "client_credentials",
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
        }
        try:
            response = await self.client.post(
                self.config.token_url,
                data=form,
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            raise self._map_exception(e) from e
        except ValueError as e:
            raise CrmError("Token response is not JSON", service=SERVICE_NAME) from e

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise CrmError("Token response has no access_token", service=SERVICE_NAME)
        return token

    def _map_exception(self, exc: Exception) -> CrmError:
        """Map httpx exceptions to CRM exceptions."""
        if isinstance(exc, httpx.TimeoutException):
            return CrmTimeoutError("Token request timed out", service=SERVICE_NAME)
        if isinstance(exc, (httpx.ConnectError, httpx.NetworkError)):
            return CrmUnavailableError(f"Failed to connect: {exc}", service=SERVICE_NAME)
        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            text = exc.response.text
            logger.error("crm_token_request_failed", status_code=status)
            if status in (400, 401, 403):
                return CrmAuthenticationError(
                    "Client credentials rejected",
                    service=SERVICE_NAME,
                    status_code=status,
                    details=text,
                )
            if status >= 500:
                return CrmUnavailableError(
                    "Server error", service=SERVICE_NAME, status_code=status, details=text
                )
            return CrmError(
                f"HTTP {status} Error", service=SERVICE_NAME, status_code=status, details=text
            )
        return CrmError(f"Unexpected error: {exc}", service=SERVICE_NAME)
