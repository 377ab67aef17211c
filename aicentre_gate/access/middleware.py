"""
Access Gate Middleware
======================
Starlette middleware that runs the access gate before any application route.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from .gate import AccessGate
from .models import GateDecision, GateRequest, SessionCookie

REDIRECT_STATUS = 307


def apply_session_cookie(response: Response, cookie: SessionCookie) -> None:
    """Stamp the session cookie on a response."""
    response.set_cookie(
        key=cookie.name,
        value=cookie.value,
        max_age=cookie.max_age,
        path=cookie.path,
        secure=cookie.secure,
        httponly=cookie.httponly,
        samesite=cookie.samesite,
    )


class AccessGateMiddleware(BaseHTTPMiddleware):
    """
    Gates the whole site behind the access policies.

    Usage:
        gate = AccessGate(settings)
        app.add_middleware(AccessGateMiddleware, gate=gate)

    Denials are a plain redirect to the access page. The verification error
    kind is logged by the gate and never reflected to the client.
    """

    def __init__(self, app, gate: AccessGate):
        super().__init__(app)
        self.gate = gate

    def _snapshot(self, request: Request) -> GateRequest:
        # scope["path"] is already percent-decoded, matching the signed path
        return GateRequest(
            path=request.scope["path"],
            query=request.query_params,
            cookies=request.cookies,
            headers=request.headers,
        )

    async def dispatch(self, request: Request, call_next):
        decision: GateDecision = self.gate.evaluate(self._snapshot(request))

        if decision.allowed:
            response = await call_next(request)
        else:
            response = RedirectResponse(url=decision.location, status_code=REDIRECT_STATUS)

        if decision.cookie is not None:
            apply_session_cookie(response, decision.cookie)
        return response
