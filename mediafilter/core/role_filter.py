from __future__ import annotations

from dataclasses import dataclass
from typing import List

from mediafilter.core.models import (
    CreditEntry,
    FilteredResult,
    MediaType,
    PersonCredits,
)

CAST_ROLE = "cast"


@dataclass(frozen=True, slots=True)
class MediaSelection:
    movies_only: bool = False
    tv_only: bool = False
    include_all: bool = False

    def resolve(self) -> "MediaSelection":
        if not (self.movies_only or self.tv_only or self.include_all):
            return MediaSelection(include_all=True)
        return self

    def allows(self, media_type: MediaType) -> bool:
        # include_all never excludes; both *_only flags set excludes everything
        if media_type is MediaType.SHOW and self.movies_only:
            return False
        if media_type is MediaType.MOVIE and self.tv_only:
            return False
        return True


def _result(entry: CreditEntry, role_label: str) -> FilteredResult:
    media = entry.media
    return FilteredResult(
        title=media.title,
        year=media.year,
        catalog_id=media.ids.trakt,
        media_type=entry.media_type,
        role_label=role_label,
    )


def filter_by_role(
    credits: PersonCredits,
    role: str = "",
    selection: MediaSelection = MediaSelection(),
) -> List[FilteredResult]:
    selection = selection.resolve()
    results: List[FilteredResult] = []

    if role in ("", CAST_ROLE):
        for entry in credits.cast:
            if selection.allows(entry.media_type):
                results.append(_result(entry, f"cast: {entry.character or ''}"))

    wanted = role.casefold()
    for department, entries in credits.crew.items():
        for entry in entries:
            if not selection.allows(entry.media_type):
                continue
            job = entry.job or ""
            if role and job.casefold() != wanted:
                continue
            results.append(_result(entry, f"{job} ({department})"))

    return results


def format_result(result: FilteredResult) -> str:
    year = result.year if result.year is not None else "n/a"
    return (
        f"{result.title} ({year}) – {result.role_label} ({result.media_type.value})"
    )
