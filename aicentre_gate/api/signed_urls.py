"""
Signed URL Issuing
==================
Collaborator-facing endpoint that mints signed portal links.

POST /api/auth/generate-signed-url  {"path": "...", "baseUrl": "..."}
GET  /api/auth/generate-signed-url?path=...&baseUrl=...
"""

from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..signing.signature import SignatureEngine

logger = structlog.get_logger(__name__)

MISSING_PATH_ERROR = "Missing required parameter: path"
INVALID_BODY_ERROR = "Invalid request body"
INTERNAL_ERROR = "Internal server error"


class SignedUrlRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path: Optional[str] = None
    base_url: Optional[str] = Field(default=None, alias="baseUrl")


class SignedUrlResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    signed_url: str = Field(alias="signedUrl")
    expires_at: str = Field(alias="expiresAt")


def format_expiry(timestamp_ms: int) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    seconds, millis = divmod(timestamp_ms, 1000)
    moment = datetime.fromtimestamp(seconds, tz=timezone.utc).replace(microsecond=millis * 1000)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _issue(engine: SignatureEngine, request: Request, payload: SignedUrlRequest):
    if not payload.path:
        return _error(MISSING_PATH_ERROR, 400)

    base_url = payload.base_url or f"{request.url.scheme}://{request.url.netloc}"
    try:
        timestamp_ms = engine.now_ms()
        signed_url = engine.generate_signed_url(payload.path, base_url, timestamp_ms)
    except Exception:
        logger.exception("signed_url_generation_failed", path=payload.path)
        return _error(INTERNAL_ERROR, 500)

    logger.info("signed_url_issued", path=payload.path, base_url=base_url)
    response = SignedUrlResponse(
        signed_url=signed_url,
        expires_at=format_expiry(timestamp_ms + engine.timeout_ms),
    )
    return JSONResponse(content=response.model_dump(by_alias=True))


def create_signed_url_router(engine: SignatureEngine) -> APIRouter:
    """
    Create the signed URL issuing router.

    Args:
        engine: Signature engine holding the shared secret

    Returns:
        FastAPI router serving /api/auth/generate-signed-url
    """
    router = APIRouter(prefix="/api/auth", tags=["Auth"])

    @router.post("/generate-signed-url")
    async def generate_signed_url_post(request: Request):
        """Mint a signed URL from a JSON body."""
        try:
            body = await request.json()
            payload = SignedUrlRequest.model_validate(body)
        except (ValueError, ValidationError):
            logger.info("signed_url_invalid_body")
            return _error(INVALID_BODY_ERROR, 400)
        return _issue(engine, request, payload)

    @router.get("/generate-signed-url")
    async def generate_signed_url_get(request: Request):
        """Mint a signed URL from query parameters."""
        payload = SignedUrlRequest(
            path=request.query_params.get("path"),
            base_url=request.query_params.get("baseUrl"),
        )
        return _issue(engine, request, payload)

    return router
