from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from mediafilter.core.errors import CatalogPayloadError
from mediafilter.core.models import PersonCredits, PersonMatch, TraktList

TRAKT_BASE = "https://api.trakt.tv"
API_VERSION = "2"
LIST_DESCRIPTION = "media filtered via trakt-media-filter"

log = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _decode(model: Type[M], data: Any, what: str) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise CatalogPayloadError(f"unexpected {what} payload: {exc}") from exc


def _decode_list(model: Type[M], data: Any, what: str) -> List[M]:
    try:
        return TypeAdapter(List[model]).validate_python(data)  # type: ignore[valid-type]
    except ValidationError as exc:
        raise CatalogPayloadError(f"unexpected {what} payload: {exc}") from exc


class TraktClient:
    """
    Authenticated client for the Trakt endpoints this tool uses: person
    search, person credits and the user's lists.
    """

    def __init__(
        self,
        client_id: str,
        access_token: str,
        base_url: str = TRAKT_BASE,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {access_token}",
                "trakt-api-version": API_VERSION,
                "trakt-api-key": client_id,
                "Content-Type": "application/json",
            },
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        r = await self._client.request(
            method, f"{self.base_url}{path}", params=params, json=json
        )
        r.raise_for_status()
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as exc:
            raise CatalogPayloadError(f"{method} {path} returned invalid JSON") from exc

    async def search_people(self, name: str) -> List[PersonMatch]:
        data = await self._request("GET", "/search/person", params={"query": name})
        return _decode_list(PersonMatch, data or [], "person search")

    async def person_credits(self, person_id: int, media: str) -> PersonCredits:
        """``media`` is ``"movies"`` or ``"shows"``."""
        data = await self._request(
            "GET", f"/people/{person_id}/{media}", params={"extended": "full"}
        )
        return _decode(PersonCredits, data or {}, f"{media} credits")

    async def combined_credits(self, person_id: int) -> PersonCredits:
        movies = await self.person_credits(person_id, "movies")
        shows = await self.person_credits(person_id, "shows")
        return movies.merged_with(shows)

    async def known_for(self, person_id: int, limit: int = 5) -> str:
        credits = await self.combined_credits(person_id)
        entries = [*credits.cast]
        for dept_entries in credits.crew.values():
            entries.extend(dept_entries)
        titles: List[str] = []
        for entry in entries:
            label = f"{entry.media.title} ({entry.media.year or 'n/a'})"
            if label not in titles:
                titles.append(label)
            if len(titles) >= limit:
                break
        return ", ".join(titles) if titles else "N/A"

    async def user_lists(self) -> List[TraktList]:
        data = await self._request("GET", "/users/me/lists")
        return _decode_list(TraktList, data or [], "user lists")

    async def create_list(self, name: str) -> TraktList:
        payload = {
            "name": name,
            "description": LIST_DESCRIPTION,
            "privacy": "private",
            "display_numbers": True,
            "allow_comments": False,
        }
        data = await self._request("POST", "/users/me/lists", json=payload)
        return _decode(TraktList, data, "created list")

    async def like_list(self, list_id: int) -> None:
        await self._request("POST", f"/users/me/lists/{list_id}/like")

    async def add_list_items(
        self, list_id: int, payload: Dict[str, List[Dict[str, Any]]]
    ) -> Dict[str, Any]:
        data = await self._request(
            "POST", f"/users/me/lists/{list_id}/items", json=payload
        )
        return data if isinstance(data, dict) else {}

    async def aclose(self) -> None:
        await self._client.aclose()
