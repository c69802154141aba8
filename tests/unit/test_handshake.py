from __future__ import annotations

import asyncio
import json
import socket
import webbrowser

import httpx
import pytest

from mediafilter.auth.handshake import (
    AuthorizationHandshake,
    CallbackListener,
    _redirect_address,
)
from mediafilter.core.credentials import CredentialStore
from mediafilter.core.errors import (
    AuthorizationTimeout,
    CallbackListenerError,
    TokenExchangeError,
)


async def _get_with_retry(url: str, params: dict) -> httpx.Response:
    async with httpx.AsyncClient(trust_env=False) as client:
        for _ in range(100):
            try:
                return await client.get(url, params=params)
            except httpx.ConnectError:
                await asyncio.sleep(0.05)
    raise AssertionError("callback listener never came up")


def _port_is_free(port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
        probe.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            probe.bind(("127.0.0.1", port))
        except OSError:
            return False
    return True


def test_redirect_address_parses_host_and_port():
    assert _redirect_address("http://localhost:8000") == ("localhost", 8000)
    assert _redirect_address("http://127.0.0.1/") == ("127.0.0.1", 80)


def test_listener_captures_first_code_and_releases_port():
    listener = CallbackListener("127.0.0.1", 0, shutdown_delay=0.05)

    async def scenario():
        waiter = asyncio.create_task(listener.wait_for_code(timeout=10))
        while listener.port == 0:
            await asyncio.sleep(0.01)
        url = f"http://127.0.0.1:{listener.port}/"
        resp = await _get_with_retry(url, {"code": "first"})
        code = await waiter
        return resp, code

    resp, code = asyncio.run(scenario())

    assert code == "first"
    assert resp.status_code == 200
    assert "Authorization received" in resp.text
    assert _port_is_free(listener.port)


def test_listener_ignores_later_codes():
    captured = []
    listener = CallbackListener("127.0.0.1", 0, shutdown_delay=0.05)

    async def scenario():
        listener._code = asyncio.get_running_loop().create_future()
        listener._capture("one")
        listener._capture("two")
        captured.append(await listener._code)

    asyncio.run(scenario())
    assert captured == ["one"]


def test_listener_times_out_and_releases_port():
    listener = CallbackListener("127.0.0.1", 0)

    with pytest.raises(AuthorizationTimeout):
        asyncio.run(listener.wait_for_code(timeout=0.2))
    assert _port_is_free(listener.port)


def test_listener_reports_busy_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as busy:
        busy.bind(("127.0.0.1", 0))
        busy.listen()
        listener = CallbackListener("127.0.0.1", busy.getsockname()[1])

        with pytest.raises(CallbackListenerError):
            asyncio.run(listener.wait_for_code(timeout=1))


class FakeListener:
    def __init__(self, code: str = "browser-code"):
        self.code = code
        self.timeouts: list = []

    async def wait_for_code(self, timeout=None) -> str:
        self.timeouts.append(timeout)
        return self.code


class FakeOAuth:
    redirect_uri = "http://localhost:8000"

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.codes: list[str] = []

    def authorization_url(self) -> str:
        return "https://api.trakt.tv/oauth/authorize?client_id=cid"

    async def exchange_code(self, code: str):
        self.codes.append(code)
        if self.error is not None:
            raise self.error
        return {"access_token": "fresh", "refresh_token": "r", "expires_in": 60}


def _store(tmp_path) -> CredentialStore:
    store = CredentialStore(
        tmp_path / "config.json", tmp_path / "trakt_token.json", clock=lambda: 42.0
    )
    store.load()
    return store


def test_handshake_exchanges_code_and_persists(tmp_path, capsys):
    opened: list[str] = []
    listener = FakeListener()
    oauth = FakeOAuth()
    handshake = AuthorizationHandshake(
        oauth,
        _store(tmp_path),
        listener=listener,
        timeout=30,
        open_browser=lambda url: opened.append(url) or True,
    )

    record = asyncio.run(handshake.run())

    assert record.access_token == "fresh"
    assert record.created_at == 42
    assert oauth.codes == ["browser-code"]
    assert listener.timeouts == [30]
    assert opened == [oauth.authorization_url()]
    assert oauth.authorization_url() in capsys.readouterr().out
    saved = json.loads((tmp_path / "trakt_token.json").read_text())
    assert saved["refresh_token"] == "r"


def test_handshake_survives_browser_failure(tmp_path):
    def broken_browser(url: str) -> bool:
        raise webbrowser.Error("no runnable browser")

    handshake = AuthorizationHandshake(
        FakeOAuth(), _store(tmp_path), listener=FakeListener(), open_browser=broken_browser
    )

    assert asyncio.run(handshake.run()).access_token == "fresh"


def test_handshake_exchange_failure_is_fatal(tmp_path):
    handshake = AuthorizationHandshake(
        FakeOAuth(error=TokenExchangeError("token endpoint returned 400")),
        _store(tmp_path),
        listener=FakeListener(),
        open_browser=lambda url: True,
    )

    with pytest.raises(TokenExchangeError):
        asyncio.run(handshake.run())
    assert not (tmp_path / "trakt_token.json").exists()


def test_handshake_builds_listener_from_redirect_uri(tmp_path):
    handshake = AuthorizationHandshake(FakeOAuth(), _store(tmp_path), shutdown_delay=0.5)

    assert (handshake.listener.host, handshake.listener.port) == ("localhost", 8000)
    assert handshake.listener.shutdown_delay == 0.5


@pytest.mark.skipif(
    not socket.has_dualstack_ipv6(), reason="no dual-stack IPv6 support"
)
def test_localhost_listener_accepts_ipv4_on_dual_stack_socket():
    listener = CallbackListener("localhost", 0)
    sock = listener._bind()
    try:
        assert sock.family == socket.AF_INET6
        with socket.create_connection(("127.0.0.1", listener.port), timeout=2):
            pass
    finally:
        sock.close()
