from __future__ import annotations

import logging
from typing import Optional

from mediafilter.auth.handshake import AuthorizationHandshake
from mediafilter.auth.oauth_client import OAuthClient
from mediafilter.core.credentials import CredentialStore
from mediafilter.core.errors import TokenRefreshError

logger = logging.getLogger(__name__)


class TokenManager:
    """
    Resolves a usable access token: stored if fresh, refreshed if a refresh
    token exists, otherwise a full browser authorization. A refresh failure
    is final; there is no fallback to re-authorization.
    """

    def __init__(
        self,
        store: CredentialStore,
        oauth: OAuthClient,
        handshake: AuthorizationHandshake,
    ) -> None:
        self.store = store
        self.oauth = oauth
        self.handshake = handshake
        self._resolved: Optional[str] = None

    async def get_access_token(self) -> str:
        if self._resolved is None:
            self._resolved = await self._resolve()
        return self._resolved

    async def _resolve(self) -> str:
        record = self.store.record
        if not self.store.is_stale() and record.access_token:
            logger.debug("Using stored access token")
            return record.access_token

        if record.refresh_token:
            payload = await self.oauth.refresh(record.refresh_token)
            record = self.store.save(payload, TokenRefreshError)
            return record.access_token  # type: ignore[return-value]

        logger.info("No usable credentials; starting browser authorization")
        fresh = await self.handshake.run()
        return fresh.access_token  # type: ignore[return-value]
