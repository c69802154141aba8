from __future__ import annotations

from typing import Callable, Optional

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

CONFIRMATION_PAGE = """<!doctype html>
<html>
  <head><title>trakt-media-filter</title></head>
  <body>
    <h1>Authorization received</h1>
    <p>You may close this window and return to the terminal.</p>
  </body>
</html>
"""

WAITING_PAGE = """<!doctype html>
<html>
  <head><title>trakt-media-filter</title></head>
  <body><p>Waiting for the Trakt authorization redirect.</p></body>
</html>
"""


def create_callback_router(on_code: Callable[[str], None]) -> APIRouter:
    """
    Router for the OAuth redirect target. ``on_code`` receives every code
    seen; deciding which one wins is up to the caller.
    """
    router = APIRouter(tags=["oauth"])

    @router.get("/", response_class=HTMLResponse)
    async def oauth_redirect(code: Optional[str] = None) -> HTMLResponse:
        if not code:
            return HTMLResponse(WAITING_PAGE)
        on_code(code)
        return HTMLResponse(CONFIRMATION_PAGE)

    return router
