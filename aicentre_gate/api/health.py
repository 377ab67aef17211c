"""
Health Check Module
===================
Liveness and readiness probes with per-component status.
"""

import time
from typing import Awaitable, Callable, Dict, Optional
from enum import Enum

import structlog
from fastapi import APIRouter, Response
from pydantic import BaseModel

from ..signing.signature import SignatureEngine

logger = structlog.get_logger(__name__)

_PROBE_PATH = "health-probe"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    status: str
    latency_ms: Optional[float] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: HealthStatus
    service: str
    version: str
    components: Dict[str, ComponentHealth]
    timestamp: float


def check_signature_engine(engine: SignatureEngine) -> ComponentHealth:
    """Sign and verify a probe value to prove the HMAC path works."""
    try:
        start = time.time()
        ts = engine.now_ms()
        signature = engine.generate_signature(_PROBE_PATH, ts)
        result = engine.verify_signature(_PROBE_PATH, str(ts), signature)
        latency = (time.time() - start) * 1000
        if not result.valid:
            return ComponentHealth(status="error", error="self-verification failed")
        return ComponentHealth(status="ok", latency_ms=round(latency, 2))
    except Exception as e:
        logger.error("signature_engine_health_check_failed", error=str(e))
        return ComponentHealth(status="error", error="signature engine unavailable")


def create_health_router(
    service_name: str,
    engine: SignatureEngine,
    version: str = "1.0.0",
    custom_checks: Optional[Dict[str, Callable[[], Awaitable[ComponentHealth]]]] = None,
) -> APIRouter:
    """
    Create a health check router.

    Args:
        service_name: Name of the service (e.g., "aicentre-gate")
        engine: Signature engine to self-test
        version: Service version
        custom_checks: Dict of custom health check functions (optional)

    Returns:
        FastAPI router with /health, /health/live, and /health/ready endpoints
    """
    router = APIRouter(tags=["Health"])

    @router.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check with all component statuses."""
        components: Dict[str, ComponentHealth] = {}
        overall_status = HealthStatus.HEALTHY

        components["signature_engine"] = check_signature_engine(engine)
        if components["signature_engine"].status == "error":
            overall_status = HealthStatus.UNHEALTHY

        if custom_checks:
            for name, check_fn in custom_checks.items():
                try:
                    components[name] = await check_fn()
                except Exception as e:
                    logger.error("health_check_failed", component=name, error=str(e))
                    components[name] = ComponentHealth(status="error", error=str(e))
                if (
                    components[name].status == "error"
                    and overall_status == HealthStatus.HEALTHY
                ):
                    overall_status = HealthStatus.DEGRADED

        return HealthResponse(
            status=overall_status,
            service=service_name,
            version=version,
            components=components,
            timestamp=time.time(),
        )

    @router.get("/health/live")
    async def liveness_probe():
        """Liveness probe - always returns 200 if the process is running."""
        return {"status": "alive"}

    @router.get("/health/ready")
    async def readiness_probe():
        """Readiness probe - the gate cannot serve without a working signature engine."""
        if check_signature_engine(engine).status == "error":
            return Response(
                content='{"status": "not_ready", "reason": "signature_engine_unavailable"}',
                status_code=503,
                media_type="application/json",
            )
        return {"status": "ready"}

    return router
