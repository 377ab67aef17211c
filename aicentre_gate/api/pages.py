"""
Access Pages
============
Redirect targets for denied requests. They must stay outside the gate's
reach, otherwise a denial would redirect to itself.
"""

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from ..config import GateSettings

GET_ACCESS_HTML = """<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>Get access</title></head>
<body>
<h1>Access required</h1>
<p>This portal is available through a personal access link.
Ask your AI Centre contact for a new link.</p>
</body>
</html>
"""

ACCESS_DENIED_HTML = """<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>Access denied</title></head>
<body>
<h1>Access denied</h1>
<p>You do not have permission to access this page.
Please ensure you are connected to the company VPN.</p>
</body>
</html>
"""


def create_access_pages_router(settings: GateSettings) -> APIRouter:
    router = APIRouter(tags=["Access"])

    @router.get(settings.get_access_path, response_class=HTMLResponse)
    async def get_access():
        return HTMLResponse(GET_ACCESS_HTML)

    @router.get(settings.access_denied_path, response_class=HTMLResponse)
    async def access_denied():
        return HTMLResponse(ACCESS_DENIED_HTML)

    return router
