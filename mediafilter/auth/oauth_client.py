from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from mediafilter.core.errors import (
    ConfigurationError,
    OAuthError,
    TokenExchangeError,
    TokenRefreshError,
)
from mediafilter.core.models import AppConfig

log = logging.getLogger(__name__)


class OAuthClient:
    """Talks to the Trakt OAuth endpoints (authorize URL, token grants)."""

    def __init__(
        self,
        config: AppConfig,
        redirect_uri: str,
        base_url: str = "https://api.trakt.tv",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.redirect_uri = redirect_uri
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    def authorization_url(self) -> str:
        if not self.config.client_id:
            raise ConfigurationError("client_id is not configured")
        query = urlencode(
            {
                "response_type": "code",
                "client_id": self.config.client_id,
                "redirect_uri": self.redirect_uri,
            }
        )
        return f"{self.base_url}/oauth/authorize?{query}"

    async def _token_request(
        self, form: Dict[str, str], error_cls: type[OAuthError]
    ) -> Dict[str, Any]:
        if not self.config.client_id or not self.config.client_secret:
            raise ConfigurationError("client_id and client_secret must be configured")
        payload = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "redirect_uri": self.redirect_uri,
            **form,
        }
        try:
            resp = await self._client.post(f"{self.base_url}/oauth/token", data=payload)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPStatusError as exc:
            raise error_cls(
                f"token endpoint returned {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise error_cls(f"token request failed: {exc}") from exc
        except ValueError as exc:
            raise error_cls("token endpoint returned invalid JSON") from exc
        if not isinstance(body, dict):
            raise error_cls("token endpoint returned an unexpected payload")
        return body

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        log.info("Exchanging authorization code for tokens")
        return await self._token_request(
            {"code": code, "grant_type": "authorization_code"}, TokenExchangeError
        )

    async def refresh(self, refresh_token: str) -> Dict[str, Any]:
        log.info("Refreshing Trakt access token")
        return await self._token_request(
            {"refresh_token": refresh_token, "grant_type": "refresh_token"},
            TokenRefreshError,
        )

    async def aclose(self) -> None:
        await self._client.aclose()
