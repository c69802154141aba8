from __future__ import annotations

import asyncio
import logging
import socket
import webbrowser
from typing import Callable, Optional
from urllib.parse import urlsplit

import uvicorn
from fastapi import FastAPI

from mediafilter.auth.oauth_client import OAuthClient
from mediafilter.core.credentials import CredentialStore
from mediafilter.core.errors import AuthorizationTimeout, CallbackListenerError
from mediafilter.core.models import CredentialRecord
from mediafilter.routes.oauth_callback import create_callback_router

log = logging.getLogger(__name__)


def _redirect_address(redirect_uri: str) -> tuple[str, int]:
    parts = urlsplit(redirect_uri)
    host = parts.hostname or "localhost"
    port = parts.port or (443 if parts.scheme == "https" else 80)
    return host, port


class CallbackListener:
    """
    Short-lived local HTTP server that captures the OAuth ``code`` from the
    browser redirect. The first code wins; the server stops itself
    ``shutdown_delay`` seconds later so the confirmation page can flush.
    """

    def __init__(self, host: str, port: int, shutdown_delay: float = 1.0) -> None:
        self.host = host
        self.port = port
        self.shutdown_delay = shutdown_delay
        self._code: Optional[asyncio.Future[str]] = None
        self._server: Optional[uvicorn.Server] = None

    def build_app(self) -> FastAPI:
        app = FastAPI(title="trakt-media-filter OAuth callback")
        app.include_router(create_callback_router(self._capture))
        return app

    def _bind(self) -> socket.socket:
        try:
            if self.host == "localhost" and socket.has_dualstack_ipv6():
                # browsers may resolve localhost to ::1 or 127.0.0.1
                sock = socket.create_server(
                    ("::", self.port), family=socket.AF_INET6, dualstack_ipv6=True
                )
            else:
                family = socket.AF_INET6 if ":" in self.host else socket.AF_INET
                sock = socket.create_server((self.host, self.port), family=family)
        except OSError as exc:
            raise CallbackListenerError(
                f"cannot listen on {self.host}:{self.port}: {exc}"
            ) from exc
        # port 0 asks the OS for a free port
        self.port = sock.getsockname()[1]
        return sock

    def _capture(self, code: str) -> None:
        if self._code is None or self._code.done():
            log.debug("Ignoring extra authorization code")
            return
        self._code.set_result(code)
        asyncio.get_running_loop().call_later(self.shutdown_delay, self.stop)

    def stop(self) -> None:
        if self._server is not None:
            self._server.should_exit = True

    async def wait_for_code(self, timeout: Optional[float] = None) -> str:
        loop = asyncio.get_running_loop()
        self._code = loop.create_future()
        sock = self._bind()
        config = uvicorn.Config(
            self.build_app(), log_level="warning", lifespan="off", access_log=False
        )
        self._server = uvicorn.Server(config)
        serving = asyncio.create_task(self._server.serve(sockets=[sock]))
        log.info("Listening for OAuth redirect on %s:%s", self.host, self.port)
        try:
            done, _ = await asyncio.wait(
                {self._code, serving},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
            if self._code in done:
                return self._code.result()
            if serving in done:
                exc = serving.exception()
                raise CallbackListenerError(
                    f"callback listener stopped before a code arrived: {exc}"
                )
            raise AuthorizationTimeout(
                f"no authorization code received within {timeout} seconds"
            )
        finally:
            if not self._code.done():
                self._code.cancel()
                self.stop()
            if not serving.done():
                await serving
            sock.close()
            self._server = None
            log.debug("OAuth callback listener stopped")


class AuthorizationHandshake:
    """Interactive authorization-code flow ending in persisted credentials."""

    def __init__(
        self,
        oauth: OAuthClient,
        store: CredentialStore,
        *,
        listener: Optional[CallbackListener] = None,
        timeout: Optional[float] = None,
        shutdown_delay: float = 1.0,
        open_browser: Callable[[str], bool] = webbrowser.open,
    ) -> None:
        self.oauth = oauth
        self.store = store
        if listener is None:
            host, port = _redirect_address(oauth.redirect_uri)
            listener = CallbackListener(host, port, shutdown_delay=shutdown_delay)
        self.listener = listener
        self.timeout = timeout
        self._open_browser = open_browser

    def _launch_browser(self, url: str) -> None:
        try:
            opened = self._open_browser(url)
        except (webbrowser.Error, OSError) as exc:
            log.warning("Could not open a browser: %s", exc)
            return
        if not opened:
            log.warning("No browser available; open the URL above manually.")

    async def run(self) -> CredentialRecord:
        url = self.oauth.authorization_url()
        print("Opening browser for Trakt authorization...")
        print(f"If it does not open, visit: {url}")
        self._launch_browser(url)
        code = await self.listener.wait_for_code(self.timeout)
        payload = await self.oauth.exchange_code(code)
        record = self.store.save(payload)
        log.info("Trakt authorization complete")
        return record
