from __future__ import annotations

import argparse
import logging
import sys

from catalog.media_filter import FilterRequest, run
from mediafilter.core.role_filter import MediaSelection


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # Reduce noise from other modules
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trakt-media-filter",
        description="Filter Trakt movies/shows by person and role.",
    )
    who = parser.add_mutually_exclusive_group(required=True)
    who.add_argument("-n", "--name", help="Person name to search.")
    who.add_argument(
        "-i",
        "--trakt-id",
        "--trakt_id",
        dest="trakt_id",
        type=int,
        help="Trakt person ID to use directly.",
    )
    parser.add_argument(
        "-f",
        "--filter",
        default="",
        help="Role to filter (cast, director, writer...). Empty keeps every role.",
    )
    parser.add_argument(
        "-l",
        "--list-name",
        help="Create/append to a Trakt list instead of printing results.",
    )
    parser.add_argument(
        "--movies-only", action="store_true", help="Limit results to movies."
    )
    parser.add_argument("--tv-only", action="store_true", help="Limit results to TV.")
    parser.add_argument(
        "--all", action="store_true", help="Include both movies and TV (default)."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    request = FilterRequest(
        name=args.name,
        person_id=args.trakt_id,
        role=args.filter,
        list_name=args.list_name,
        selection=MediaSelection(
            movies_only=args.movies_only,
            tv_only=args.tv_only,
            include_all=args.all,
        ),
    )
    return run(request)


if __name__ == "__main__":
    sys.exit(main())
