from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import ValidationError

from mediafilter.core.errors import (
    CredentialStorageError,
    OAuthError,
    TokenExchangeError,
)
from mediafilter.core.models import AppConfig, CredentialRecord, TokenResponse

logger = logging.getLogger(__name__)


def _read_json_object(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except FileNotFoundError:
        logger.info("No file at %s; starting empty.", path)
        return {}
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Ignoring unreadable JSON at %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: expected a JSON object.", path)
        return {}
    return data


class CredentialStore:
    """
    Holds the static app configuration and the persisted OAuth token record.

    Missing or malformed files never raise; they load as empty state so the
    caller falls through to re-authorization.
    """

    def __init__(
        self,
        config_path: str | os.PathLike[str],
        token_path: str | os.PathLike[str],
        *,
        clock: Callable[[], float] = time.time,
        client_id_fallback: str = "",
        client_secret_fallback: str = "",
    ) -> None:
        self.config_path = Path(config_path)
        self.token_path = Path(token_path)
        self._clock = clock
        self._client_id_fallback = client_id_fallback
        self._client_secret_fallback = client_secret_fallback
        self.config = AppConfig()
        self.record = CredentialRecord()

    def load(self) -> CredentialRecord:
        raw_config = _read_json_object(self.config_path)
        try:
            config = AppConfig.model_validate(raw_config)
        except ValidationError as exc:
            logger.warning("Invalid app config at %s: %s", self.config_path, exc)
            config = AppConfig()
        self.config = AppConfig(
            client_id=config.client_id or self._client_id_fallback,
            client_secret=config.client_secret or self._client_secret_fallback,
        )

        raw_tokens = _read_json_object(self.token_path)
        try:
            self.record = CredentialRecord.model_validate(raw_tokens)
        except ValidationError as exc:
            logger.warning("Invalid token record at %s: %s", self.token_path, exc)
            self.record = CredentialRecord()
        return self.record

    def save(
        self,
        payload: Mapping[str, Any],
        error_cls: type[OAuthError] = TokenExchangeError,
    ) -> CredentialRecord:
        try:
            token = TokenResponse.model_validate(dict(payload))
        except ValidationError as exc:
            raise error_cls(f"Malformed token payload: {exc}") from exc

        data = token.model_dump()
        data["created_at"] = int(self._clock())
        record = CredentialRecord.model_validate(data)
        try:
            self._write(record.model_dump(exclude_none=True))
        except OSError as exc:
            raise CredentialStorageError(
                f"cannot write credentials to {self.token_path}: {exc}"
            ) from exc
        self.record = record
        logger.debug("Saved credentials to %s", self.token_path)
        return record

    def _write(self, data: Dict[str, Any]) -> None:
        directory = self.token_path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=directory, prefix=f".{self.token_path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.token_path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def expires_at(self) -> Optional[int]:
        if self.record.expires_in is None or self.record.created_at is None:
            return None
        return self.record.created_at + self.record.expires_in

    def is_stale(self, now: Optional[float] = None) -> bool:
        expiry = self.expires_at()
        if expiry is None:
            return True
        current = self._clock() if now is None else now
        return not current < expiry
