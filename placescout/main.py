"""Command line entry point: run one batch session, serve the API, or reset the database."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Iterable

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from placescout.config import ScrapeSettings, load_config
from placescout.errors import BatchRequestError
from placescout.extractors.schemas import BatchRequest, DiscoveryJob
from placescout.logging_config import get_logger
from placescout.orchestrator import BatchOrchestrator
from placescout.session import BatchSession, SessionRegistry, SessionStatus
from placescout.storage.export import export_results, timestamp_slug
from placescout.storage.store import PlaceStore

LOGGER = get_logger(__name__)

SAMPLE_ROWS = 5


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the application."""

    parser = argparse.ArgumentParser(
        description="Collect business listings (name, city, category, website) from Google Maps."
    )
    parser.add_argument(
        "--keyword",
        "-k",
        dest="keywords",
        action="append",
        default=[],
        help="Search keyword; repeat for several keywords.",
    )
    parser.add_argument(
        "--location",
        "-l",
        default="",
        help="Location appended to every keyword as '<keyword> in <location>'.",
    )
    parser.add_argument(
        "--max-results",
        "-m",
        type=int,
        default=None,
        help="Maximum places per keyword (default: no limit).",
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window instead of running headless.",
    )
    parser.add_argument(
        "--format",
        "-f",
        dest="fmt",
        choices=("json", "csv", "both"),
        default="both",
        help="Export format for the session results (default: both).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML configuration file.",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Start the HTTP API instead of running a single session.",
    )
    parser.add_argument(
        "--reset-database",
        action="store_true",
        help="Clear every stored place and exit.",
    )

    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.max_results is not None and args.max_results < 0:
        parser.error("--max-results must be zero or a positive integer")

    args.keywords = [keyword.strip() for keyword in args.keywords if keyword.strip()]
    args.location = args.location.strip()
    if not (args.serve or args.reset_database) and not args.keywords:
        parser.error("at least one --keyword is required")

    return args


def build_jobs(args: argparse.Namespace) -> list[DiscoveryJob]:
    """One job per keyword; without a location the keyword is searched as typed."""

    if args.location:
        request = BatchRequest.from_payload(
            {"location": args.location, "keywords": args.keywords, "maxResults": args.max_results}
        )
        return request.jobs()
    return [DiscoveryJob(search_term=keyword, result_limit=args.max_results) for keyword in args.keywords]


def print_summary(session: BatchSession, written: list[Path]) -> None:
    records = session.results()
    print(f"\nSession {session.id}: {session.status.value}")
    print(f"Total places collected: {len(records)}")
    for path in written:
        print(f"  -> {path}")
    if not records:
        return
    print("\nSample results:")
    for record in records[:SAMPLE_ROWS]:
        print(f"  {record.name} | {record.locality} | {record.category} | {record.website}")


async def run_once(args: argparse.Namespace, settings: ScrapeSettings) -> BatchSession:
    jobs = build_jobs(args)
    store = PlaceStore(settings.database_path)
    registry = SessionRegistry()
    session = registry.create(jobs)
    orchestrator = BatchOrchestrator(store, settings)
    await orchestrator.run(session, headless=not args.headed)
    return session


def build_app(settings: ScrapeSettings) -> FastAPI:
    """API app bound to the store and output paths of *settings*."""

    from placescout.dashboard import create_app

    return create_app(settings=settings)


def serve(config: dict, settings: ScrapeSettings) -> None:
    server = config.get("server", {})
    host = str(server.get("host", "0.0.0.0"))
    port = int(server.get("port", 3000))
    LOGGER.info("Starting API server | host=%s port=%s database=%s", host, port, settings.database_path)
    uvicorn.run(build_app(settings), host=host, port=port, reload=False, log_config=None)


def main(argv: Iterable[str] | None = None) -> None:
    load_dotenv()
    args = parse_args(argv)
    config = load_config(args.config)
    settings = ScrapeSettings.from_config(config)

    if args.reset_database:
        PlaceStore(settings.database_path).reset()
        print(f"Database reset: {settings.database_path}")
        return

    if args.serve:
        serve(config, settings)
        return

    try:
        session = asyncio.run(run_once(args, settings))
    except BatchRequestError as exc:
        LOGGER.error("Invalid request: %s", exc)
        raise SystemExit(2) from exc
    except KeyboardInterrupt:  # pragma: no cover - interactive safety
        LOGGER.info("Interrupted by user")
        raise SystemExit(130)

    written: list[Path] = []
    if session.accumulated_records:
        filename = f"google-maps-{timestamp_slug()}"
        written = export_results(session.results(), filename, settings.output_dir, args.fmt)
    else:
        LOGGER.warning("No places collected; nothing exported")
    print_summary(session, written)

    if session.status is SessionStatus.ERROR:
        LOGGER.error("Session ended with error: %s", session.last_error)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
