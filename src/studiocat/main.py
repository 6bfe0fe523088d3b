#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from studiocat.app import (
    catalog_report,
    default_repository,
    ingest,
    list_sources,
    load_settings,
    seed_catalog,
)
from studiocat.common.logging import configure_logging, level_from_verbosity
from studiocat.config import ConfigurationError
from studiocat.domain.ingest_pipeline import SourceDisabledError, UnknownSourceError
from studiocat.domain.model import JobOptions, JobStatus, JobType

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingest and reconcile game studio records")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a TOML configuration file (default: $STUDIOCAT_CONFIG)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    ingest_parser = commands.add_parser("ingest", help="Run one ingestion job")
    ingest_parser.add_argument("source", help="Source id, e.g. manual or wikidata")
    ingest_parser.add_argument(
        "--type",
        dest="job_type",
        choices=[job_type.value for job_type in JobType],
        default=JobType.FULL_SYNC.value,
        help="Job type (default: %(default)s)",
    )
    ingest_parser.add_argument(
        "--limit",
        type=int,
        help="Maximum number of records to process",
    )
    ingest_parser.add_argument(
        "--entity-id",
        dest="entity_ids",
        action="append",
        default=[],
        help="Source entity id to ingest; repeat for several (single_entity jobs)",
    )
    ingest_parser.add_argument(
        "--file",
        type=Path,
        help="Curated JSON file for the manual source",
    )

    sources_parser = commands.add_parser("sources", help="List configured sources")
    sources_parser.add_argument("--file", type=Path, help="Curated JSON file for the manual source")

    commands.add_parser("report", help="Summarize the stored catalog")

    seed_parser = commands.add_parser(
        "seed", help="Bulk-load curated records into an empty catalog"
    )
    seed_parser.add_argument("file", type=Path, help="Curated JSON file")

    return parser.parse_args(list(argv))


def _job_options(args: argparse.Namespace) -> JobOptions:
    if args.limit is not None and args.limit <= 0:
        raise ValueError("--limit must be positive")
    job_type = JobType(args.job_type)
    if job_type is JobType.SINGLE_ENTITY and not args.entity_ids:
        raise ValueError("single_entity jobs need at least one --entity-id")
    return JobOptions(entity_ids=tuple(args.entity_ids), limit=args.limit)


def _run_ingest(args: argparse.Namespace) -> int:
    job = ingest(
        args.source,
        job_type=JobType(args.job_type),
        options=_job_options(args),
        manual_file=args.file,
        config_path=args.config,
    )
    print(
        f"Job {job.id} {job.status}: {job.processed_items} processed, "
        f"{job.failed_items} failed (created {job.counters.created}, "
        f"merged {job.counters.merged}, review {job.counters.manual_review}, "
        f"skipped {job.counters.skipped})"
    )
    for error in job.errors:
        subject = f" [{error.entity_id}]" if error.entity_id else ""
        print(f"  {error.severity}{subject}: {error.message}")
    for item in job.review_queue:
        print(
            f"  review: {item.match.candidate.name} ~ {item.match.existing.name} "
            f"(score {item.match.match_score:.2f})"
        )
    return 0 if job.status is JobStatus.COMPLETED else 1


def _run_sources(args: argparse.Namespace) -> int:
    for config, info in list_sources(config_path=args.config, manual_file=args.file):
        state = "enabled" if config.available else "disabled"
        provider = "ready" if info is not None else "no provider"
        count = f", ~{info.estimated_count} records" if info and info.estimated_count else ""
        print(f"{config.id:<12} priority={config.priority:<4} {state}, {provider}{count}")
    return 0


def _run_report(args: argparse.Namespace) -> int:
    settings = load_settings(args.config)
    source_quality = {
        source_id: config.data_quality for source_id, config in settings.sources.items()
    }
    report = asyncio.run(catalog_report(default_repository(), source_quality=source_quality))
    print(f"Studios: {report.total}")
    print(f"Merged entries: {report.merged_entries} ({report.merge_events} merges)")
    for source_id, count in report.by_source.items():
        print(f"  {source_id}: {count}")
    for bucket, count in report.quality.items():
        print(f"  quality {bucket}: {count}")
    return 0


def _run_seed(args: argparse.Namespace) -> int:
    settings = load_settings(args.config)
    manual = settings.sources["manual"]
    stored, errors = asyncio.run(
        seed_catalog(args.file, source=manual, repository=default_repository())
    )
    print(f"Seeded {stored} studios, rejected {len(errors)}")
    for error in errors:
        print(f"  {error.severity} [{error.entity_id}]: {error.message}")
    return 0


_COMMANDS = {
    "ingest": _run_ingest,
    "sources": _run_sources,
    "report": _run_report,
    "seed": _run_seed,
}


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args = _parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(level=level_from_verbosity(parsed_args.verbose))

    try:
        exit_code = _COMMANDS[parsed_args.command](parsed_args)
    except (ValueError, ConfigurationError, UnknownSourceError, SourceDisabledError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    except Exception as e:  # noqa: BLE001
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
