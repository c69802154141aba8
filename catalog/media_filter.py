from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

import httpx

from catalog.list_sync import publish_to_list
from catalog.trakt_client import TraktClient
from mediafilter import config
from mediafilter.auth.handshake import AuthorizationHandshake
from mediafilter.auth.oauth_client import OAuthClient
from mediafilter.core.credentials import CredentialStore
from mediafilter.core.errors import (
    ConfigurationError,
    MediaFilterError,
    PersonSelectionError,
)
from mediafilter.core.models import FilteredResult
from mediafilter.core.role_filter import MediaSelection, filter_by_role, format_result
from mediafilter.core.tokens import TokenManager

log = logging.getLogger(__name__)


@dataclass(slots=True)
class FilterRequest:
    name: Optional[str] = None
    person_id: Optional[int] = None
    role: str = ""
    list_name: Optional[str] = None
    selection: MediaSelection = MediaSelection()


@dataclass(slots=True)
class AppContext:
    """Everything a run needs, built once and passed down explicitly."""

    store: CredentialStore
    oauth: OAuthClient
    tokens: TokenManager
    api_base: str = config.TRAKT_API_BASE
    http_timeout: float = config.TRAKT_HTTP_TIMEOUT
    batch_size: int = config.LIST_BATCH_SIZE
    batch_delay: float = config.LIST_BATCH_DELAY

    async def catalog_client(self) -> TraktClient:
        client_id = self.store.config.client_id
        if not client_id:
            raise ConfigurationError(
                f"client_id missing; add it to {self.store.config_path}"
            )
        token = await self.tokens.get_access_token()
        return TraktClient(
            client_id, token, base_url=self.api_base, timeout=self.http_timeout
        )

    async def aclose(self) -> None:
        await self.oauth.aclose()


def build_context() -> AppContext:
    store = CredentialStore(
        config.TRAKT_CONFIG_PATH,
        config.TRAKT_TOKEN_PATH,
        client_id_fallback=config.TRAKT_CLIENT_ID,
        client_secret_fallback=config.TRAKT_CLIENT_SECRET,
    )
    store.load()
    oauth = OAuthClient(
        store.config,
        config.TRAKT_REDIRECT_URI,
        base_url=config.TRAKT_API_BASE,
        timeout=config.TRAKT_HTTP_TIMEOUT,
    )
    handshake = AuthorizationHandshake(
        oauth,
        store,
        timeout=config.TRAKT_OAUTH_TIMEOUT,
        shutdown_delay=config.OAUTH_SHUTDOWN_DELAY,
    )
    tokens = TokenManager(store, oauth, handshake)
    return AppContext(store=store, oauth=oauth, tokens=tokens)


async def choose_person(
    client: TraktClient,
    name: str,
    *,
    prompt: Callable[[str], str] = input,
    echo: Callable[[str], None] = print,
) -> int:
    matches = await client.search_people(name)
    if not matches:
        echo("No results.")
        raise PersonSelectionError(f"no people found for {name!r}")

    for idx, match in enumerate(matches, start=1):
        known = await client.known_for(match.person.ids.trakt)
        echo(f"{idx}: {match.person.name} – {known}")

    try:
        raw = prompt("Select number: ")
    except EOFError:
        raw = ""
    try:
        choice = int(raw.strip())
    except ValueError:
        choice = 0
    if choice < 1 or choice > len(matches):
        raise PersonSelectionError("no person selected")
    return matches[choice - 1].person.ids.trakt


async def run_filter(
    ctx: AppContext,
    request: FilterRequest,
    *,
    prompt: Callable[[str], str] = input,
    echo: Callable[[str], None] = print,
) -> List[FilteredResult]:
    client = await ctx.catalog_client()
    try:
        person_id = request.person_id
        if request.name:
            person_id = await choose_person(
                client, request.name, prompt=prompt, echo=echo
            )
        if person_id is None:
            raise PersonSelectionError("no person given")

        credits = await client.combined_credits(person_id)
        results = filter_by_role(credits, request.role, request.selection)
        log.info("%d titles match role %r", len(results), request.role or "any")

        if not request.list_name:
            for result in results:
                echo(format_result(result))
            return results

        await publish_to_list(
            client,
            request.list_name,
            results,
            batch_size=ctx.batch_size,
            delay=ctx.batch_delay,
        )
        return results
    finally:
        await client.aclose()


async def _run(request: FilterRequest) -> None:
    ctx = build_context()
    try:
        await run_filter(ctx, request)
    finally:
        await ctx.aclose()


def run(request: FilterRequest) -> int:
    """Run a filter request; map every fatal error to exit status 1."""
    try:
        asyncio.run(_run(request))
    except PersonSelectionError as exc:
        log.warning("Person selection failed: %s", exc)
        return 1
    except httpx.HTTPStatusError as exc:
        log.error(
            "Trakt request failed: %s %s -> %s",
            exc.request.method,
            exc.request.url,
            exc.response.status_code,
        )
        return 1
    except httpx.HTTPError as exc:
        log.error("Trakt request failed: %s", exc)
        return 1
    except MediaFilterError as exc:
        log.error("%s", exc)
        return 1
    return 0
