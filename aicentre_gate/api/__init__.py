from .health import ComponentHealth, HealthResponse, HealthStatus, create_health_router
from .pages import create_access_pages_router
from .signed_urls import (
    SignedUrlRequest,
    SignedUrlResponse,
    create_signed_url_router,
    format_expiry,
)

__all__ = [
    "ComponentHealth",
    "HealthResponse",
    "HealthStatus",
    "create_health_router",
    "create_access_pages_router",
    "SignedUrlRequest",
    "SignedUrlResponse",
    "create_signed_url_router",
    "format_expiry",
]
