from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Sequence

from catalog.trakt_client import TraktClient
from mediafilter.core.models import FilteredResult, MediaType

BATCH_SIZE = 10
BATCH_DELAY = 1.0

log = logging.getLogger(__name__)


@dataclass(slots=True)
class PublishSummary:
    list_id: int
    batches: int = 0
    added: Dict[str, int] = field(default_factory=dict)
    not_found: int = 0


def chunked(
    items: Sequence[FilteredResult], size: int
) -> Iterator[List[FilteredResult]]:
    if size < 1:
        raise ValueError("batch size must be positive")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def build_batch_payload(
    batch: Sequence[FilteredResult],
) -> Dict[str, List[Dict[str, Any]]]:
    payload: Dict[str, List[Dict[str, Any]]] = {}
    for item in batch:
        key = "movies" if item.media_type is MediaType.MOVIE else "shows"
        payload.setdefault(key, []).append({"ids": {"trakt": item.catalog_id}})
    return payload


async def find_or_create_list(client: TraktClient, name: str) -> int:
    wanted = name.casefold()
    for existing in await client.user_lists():
        if existing.name.casefold() == wanted:
            log.info("Using existing list %r (%s)", existing.name, existing.ids.trakt)
            return existing.ids.trakt
    created = await client.create_list(name)
    log.info("Created list %r (%s)", name, created.ids.trakt)
    return created.ids.trakt


def _count(section: Any) -> int:
    if not isinstance(section, dict):
        return 0
    total = 0
    for value in section.values():
        if isinstance(value, int):
            total += value
        elif isinstance(value, list):
            total += len(value)
    return total


async def publish_to_list(
    client: TraktClient,
    name: str,
    results: Sequence[FilteredResult],
    *,
    batch_size: int = BATCH_SIZE,
    delay: float = BATCH_DELAY,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> PublishSummary:
    list_id = await find_or_create_list(client, name)
    await client.like_list(list_id)
    summary = PublishSummary(list_id=list_id)

    for idx, batch in enumerate(chunked(results, batch_size)):
        if idx:
            await sleep(delay)
        response = await client.add_list_items(list_id, build_batch_payload(batch))
        summary.batches += 1
        for key, value in (response.get("added") or {}).items():
            if isinstance(value, int):
                summary.added[key] = summary.added.get(key, 0) + value
        summary.not_found += _count(response.get("not_found"))
        log.debug("Uploaded batch %d (%d items)", summary.batches, len(batch))

    log.info(
        "Published %d items to list %s in %d batches",
        len(results),
        list_id,
        summary.batches,
    )
    return summary
