"""CLI entry point for the TalentFlow sync engine."""

import argparse
import asyncio
import logging
import sys

from src.core.config import Settings
from src.core.db import init_db
from src.core.errors import TrackerError
from src.services.candidates import CandidatesApi
from src.services.jobs import SORTS, JobsApi
from src.services.timeline import stage_history
from src.store.channel import build_channel
from src.store.sqlite import SqliteStore


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="TalentFlow sync engine - jobs, candidates and their timelines",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- jobs ---
    jobs_parser = subparsers.add_parser("jobs", help="List one page of jobs")
    jobs_parser.add_argument("--search", help="Case-insensitive title filter")
    jobs_parser.add_argument("--status", choices=["active", "archived"])
    jobs_parser.add_argument("--sort", default="order", choices=sorted(SORTS))
    jobs_parser.add_argument("--page", type=int, default=1)
    _add_common(jobs_parser)

    # --- create-job ---
    create_job_parser = subparsers.add_parser("create-job", help="Create a job posting")
    create_job_parser.add_argument("title")
    create_job_parser.add_argument("--description", default="")
    create_job_parser.add_argument("--tag", action="append", default=[], dest="tags")
    _add_common(create_job_parser)

    # --- reorder ---
    reorder_parser = subparsers.add_parser("reorder", help="Move a job in the manual order")
    reorder_parser.add_argument("from_index", type=int)
    reorder_parser.add_argument("to_index", type=int)
    _add_common(reorder_parser)

    # --- candidates ---
    candidates_parser = subparsers.add_parser("candidates", help="List one page of candidates")
    candidates_parser.add_argument("--search", help="Case-insensitive name or email filter")
    candidates_parser.add_argument("--stage")
    candidates_parser.add_argument("--job-id")
    candidates_parser.add_argument("--page", type=int, default=1)
    _add_common(candidates_parser)

    # --- add-candidate ---
    add_parser = subparsers.add_parser("add-candidate", help="Create a candidate")
    add_parser.add_argument("name")
    add_parser.add_argument("email")
    add_parser.add_argument("--job-id")
    add_parser.add_argument("--stage", default="applied")
    _add_common(add_parser)

    # --- stage ---
    stage_parser = subparsers.add_parser("stage", help="Move a candidate to another stage")
    stage_parser.add_argument("candidate_id")
    stage_parser.add_argument("new_stage")
    stage_parser.add_argument("--note")
    _add_common(stage_parser)

    # --- note ---
    note_parser = subparsers.add_parser("note", help="Add a note to a candidate's timeline")
    note_parser.add_argument("candidate_id")
    note_parser.add_argument("text")
    _add_common(note_parser)

    # --- timeline ---
    timeline_parser = subparsers.add_parser("timeline", help="Show a candidate's timeline")
    timeline_parser.add_argument("candidate_id")
    _add_common(timeline_parser)

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


async def run(args: argparse.Namespace, settings: Settings) -> None:
    """Execute one subcommand against the configured store and channel."""
    conn = init_db(settings.database.path)
    store = SqliteStore(conn)
    channel = build_channel(settings.channel)
    jobs = JobsApi(store, channel)
    candidates = CandidatesApi(store, channel)

    try:
        if args.command == "jobs":
            page, total = await jobs.get_jobs(
                search=args.search,
                status=args.status,
                page=args.page,
                page_size=settings.pagination.job_page_size,
                sort=args.sort,
            )
            print(f"{total} jobs (page {args.page})")
            for job in page:
                tags = ", ".join(sorted(job.tags))
                print(f"  [{job.order:>3}] {job.title} ({job.slug}, {job.status}) {tags}")

        elif args.command == "create-job":
            job = await jobs.create_job(args.title, description=args.description, tags=args.tags)
            print(f"Created job {job.id}: '{job.title}' ({job.slug}) at order {job.order}")

        elif args.command == "reorder":
            updates = await jobs.reorder_job(args.from_index, args.to_index)
            print(f"Reordered {args.from_index} -> {args.to_index}: {len(updates)} rows rewritten")

        elif args.command == "candidates":
            page, total = await candidates.get_candidates(
                search=args.search,
                stage=args.stage,
                job_id=args.job_id,
                page=args.page,
                page_size=settings.pagination.candidate_page_size,
            )
            print(f"{total} candidates (page {args.page})")
            for candidate in page:
                print(f"  {candidate.id}  {candidate.name} <{candidate.email}>  {candidate.stage}")

        elif args.command == "add-candidate":
            candidate = await candidates.create_candidate(
                args.name, args.email, job_id=args.job_id, stage=args.stage,
            )
            print(f"Created candidate {candidate.id} in stage '{candidate.stage}'")

        elif args.command == "stage":
            moved = await candidates.change_stage(args.candidate_id, args.new_stage, args.note)
            if moved is None:
                msg = f"candidate {args.candidate_id} not found"
                raise ValueError(msg)
            print(f"Candidate {moved.id} is now in stage '{moved.stage}'")

        elif args.command == "note":
            event = await candidates.add_note(args.candidate_id, args.text)
            if event is None:
                msg = f"candidate {args.candidate_id} not found"
                raise ValueError(msg)
            print(f"Note added to candidate {args.candidate_id}")

        elif args.command == "timeline":
            events = await candidates.get_timeline(args.candidate_id)
            for event in events:
                stages = ""
                if event.event_type == "stage_change":
                    stages = f" {event.from_stage or '-'} -> {event.to_stage}"
                note = f"  {event.note}" if event.note else ""
                print(f"  {event.created_at:%Y-%m-%d %H:%M:%S} {event.event_type}{stages}{note}")
            history = stage_history(events)
            if history:
                print(f"Stages: {' -> '.join(history)}")
    finally:
        conn.close()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        asyncio.run(run(args, settings))
    except (ValueError, TrackerError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
