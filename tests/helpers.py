from __future__ import annotations

from typing import Any, Dict, List, Optional

from mediafilter.core.models import (
    FilteredResult,
    MediaType,
    PersonCredits,
    PersonMatch,
    TraktList,
)


def media(title: str, year: Optional[int], trakt_id: int) -> Dict[str, Any]:
    return {"title": title, "year": year, "ids": {"trakt": trakt_id, "slug": "x"}}


def cast_entry(kind: str, title: str, trakt_id: int, character: str, year: int = 2000):
    return {"character": character, "characters": [character], kind: media(title, year, trakt_id)}


def crew_entry(kind: str, title: str, trakt_id: int, job: str, year: int = 2000):
    return {"job": job, "jobs": [job], kind: media(title, year, trakt_id)}


def sample_credits() -> PersonCredits:
    """One cast movie and one crew show."""
    return PersonCredits.model_validate(
        {
            "cast": [cast_entry("movie", "First Light", 1, "Lead")],
            "crew": {"writing": [crew_entry("show", "Night Desk", 2, "Writer")]},
        }
    )


def make_results(count: int) -> List[FilteredResult]:
    return [
        FilteredResult(
            title=f"Title {idx}",
            year=2000 + idx,
            catalog_id=idx,
            media_type=MediaType.MOVIE if idx % 2 else MediaType.SHOW,
            role_label="cast: Someone",
        )
        for idx in range(1, count + 1)
    ]


class FakeTraktClient:
    """
    In-memory stand-in for ``catalog.trakt_client.TraktClient``.
    """

    def __init__(
        self,
        *,
        people: Optional[List[Dict[str, Any]]] = None,
        credits: Optional[PersonCredits] = None,
        lists: Optional[List[Dict[str, Any]]] = None,
        new_list_id: int = 900,
    ) -> None:
        self.people = people or []
        self.credits = credits or PersonCredits()
        self.lists = lists or []
        self.new_list_id = new_list_id
        self.created: List[str] = []
        self.liked: List[int] = []
        self.uploads: List[tuple[int, Dict[str, Any]]] = []
        self.closed = False

    async def search_people(self, name: str):
        return [PersonMatch.model_validate(p) for p in self.people]

    async def known_for(self, person_id: int, limit: int = 5) -> str:
        return f"known-{person_id}"

    async def combined_credits(self, person_id: int) -> PersonCredits:
        return self.credits

    async def user_lists(self):
        return [TraktList.model_validate(entry) for entry in self.lists]

    async def create_list(self, name: str):
        self.created.append(name)
        return TraktList(name=name, ids={"trakt": self.new_list_id})

    async def like_list(self, list_id: int) -> None:
        self.liked.append(list_id)

    async def add_list_items(self, list_id: int, payload: Dict[str, Any]):
        self.uploads.append((list_id, payload))
        return {
            "added": {
                "movies": len(payload.get("movies", [])),
                "shows": len(payload.get("shows", [])),
            },
            "not_found": {"movies": [], "shows": []},
        }

    async def aclose(self) -> None:
        self.closed = True
