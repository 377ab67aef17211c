"""
Application Factory
===================
Builds the FastAPI application with the access gate in front of every route.

Usage:
    from aicentre_gate.app import create_app
    from aicentre_gate.config import GateSettings

    app = create_app(GateSettings.from_env(), routers=[content_router])
"""

from contextlib import asynccontextmanager
from typing import Iterable, Optional

import structlog
from fastapi import APIRouter, FastAPI, Response

from . import __version__
from .access.gate import AccessGate
from .access.middleware import AccessGateMiddleware
from .api.health import create_health_router
from .api.pages import create_access_pages_router
from .api.signed_urls import create_signed_url_router
from .config import GateSettings
from .crm.config import CrmConfig
from .crm.token_provider import CrmTokenProvider
from .logging import setup_logging
from .metrics import render_metrics
from .signing.signature import SignatureEngine

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[GateSettings] = None,
    *,
    routers: Iterable[APIRouter] = (),
    crm_config: Optional[CrmConfig] = None,
    engine: Optional[SignatureEngine] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Create the gated application.

    Args:
        settings: Gate settings, loaded from the environment when omitted
        routers: Application routers served behind the gate
        crm_config: CRM credentials; enables ``app.state.crm_tokens``
        engine: Signature engine override (tests inject a fixed clock)
        configure_logging: Configure structlog from the settings

    Raises:
        ConfigurationError: If the settings are invalid
    """
    if settings is None:
        settings = GateSettings.from_env()
    if configure_logging:
        setup_logging(
            service_name=settings.service_name,
            level=settings.log_level,
            json_output=settings.log_json,
        )

    if engine is None:
        engine = SignatureEngine(settings.secret, settings.timeout_ms)
    gate = AccessGate(settings, engine)
    crm_tokens = CrmTokenProvider(crm_config) if crm_config is not None else None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "access_gate_started",
            environment=settings.environment,
            signature_auth=settings.signature_auth_enabled,
            ip_allowlist=settings.ip_allowlist_enabled,
            ip_ranges=len(settings.cidr_ranges),
            strict_session=settings.strict_session,
        )
        if not settings.gate_enabled:
            logger.warning("access_gate_disabled", environment=settings.environment)
        yield
        if crm_tokens is not None:
            await crm_tokens.aclose()

    app = FastAPI(title=settings.service_name, version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.signature_engine = engine
    app.state.access_gate = gate
    app.state.crm_tokens = crm_tokens

    app.add_middleware(AccessGateMiddleware, gate=gate)

    app.include_router(create_health_router(settings.service_name, engine, __version__))
    app.include_router(create_signed_url_router(engine))
    app.include_router(create_access_pages_router(settings))

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        body, content_type = render_metrics()
        return Response(content=body, media_type=content_type)

    for router in routers:
        app.include_router(router)

    return app
