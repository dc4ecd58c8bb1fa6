#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys

import requests

from wow_backend.integrations.streaming_availability import fetch_streaming_availability, summarize_services
from wow_backend.integrations.tmdb.client import TmdbClientError, fetch_external_ids
from wow_backend.utils.env import load_env


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="probe_streaming",
        description="Query Streaming Availability for a title and print a per-country service summary.",
    )
    parser.add_argument("--imdb-id", default=None, help="IMDb title id (tt...).")
    parser.add_argument("--type", dest="media_type", choices=("movie", "tv"), default=None, help="TMDb media type.")
    parser.add_argument("--tmdb-id", type=int, default=None, help="TMDb id; resolved to an IMDb id via TMDb.")
    parser.add_argument("--country", default="US", help="ISO 3166-1 alpha-2 country code (default: US).")
    return parser.parse_args(argv)


def resolve_imdb_id(args: argparse.Namespace, session: requests.Session) -> str | None:
    if args.imdb_id:
        return str(args.imdb_id).strip() or None
    if not args.media_type or args.tmdb_id is None:
        raise ValueError("Provide --imdb-id, or --type and --tmdb-id.")
    external = fetch_external_ids(args.media_type, args.tmdb_id, session=session)
    imdb_id = external.get("imdb_id")
    return imdb_id if isinstance(imdb_id, str) and imdb_id else None


def main(argv: list[str] | None = None) -> int:
    load_env()
    args = _parse_args(list(sys.argv[1:] if argv is None else argv))
    country = str(args.country).upper()
    session = requests.Session()

    try:
        imdb_id = resolve_imdb_id(args, session)
    except (TmdbClientError, RuntimeError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    if not imdb_id:
        print("error: no imdb_id found for given TMDb type/id", file=sys.stderr)
        return 1

    result = fetch_streaming_availability(imdb_id, country, session=session)
    if result is None:
        print(f"No streaming availability data for {imdb_id} ({country}).")
        return 1

    print(f"imdb_id={imdb_id}")
    for row in summarize_services(result, country):
        services = ", ".join(row["services"]) or "-"
        print(f"{row['country']}: offers={row['count']} services={services}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
