"""
Issue Index CLI Entrypoint

Commands:
    issue-index stats       Index sizes, tree height and balance figures
    issue-index top         Most urgent actionable issues
    issue-index search ID   Look an issue up by id
    issue-index process     Mark the most urgent issue In Progress
    issue-index seed        Fill the database with random issues
    issue-index benchmark   Tree lookup vs linear scan latency

Usage:
    python -m issue_index --db issues.db seed --count 500
    python -m issue_index --db issues.db top -n 10

    # Or with environment overrides
    ISSUE_INDEX_TOP_COUNT=10 ISSUE_INDEX_LOG_JSON=0 python -m issue_index top
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import NoReturn

from issue_index.core.config import IssueIndexConfig
from issue_index.core.types import IssueRecord
from issue_index.index.facade import IssueIndex
from issue_index.observability.logging import StructuredLogger, setup_logging
from issue_index.storage.sqlite_store import SQLiteIssueStore

logger = StructuredLogger("issue_index.cli")


def main() -> NoReturn:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        prog="issue-index",
        description="In-memory search and urgency index over municipal issue reports",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    parser.add_argument(
        "--db",
        default="issues.db",
        help="SQLite database holding the issues table (default: issues.db)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("stats", help="Show index statistics")

    top_parser = subparsers.add_parser("top", help="List the most urgent issues")
    top_parser.add_argument(
        "-n", "--count",
        type=int,
        default=None,
        help="Number of issues (default: ISSUE_INDEX_TOP_COUNT or 5)",
    )

    search_parser = subparsers.add_parser("search", help="Find an issue by id")
    search_parser.add_argument("issue_id", type=int)

    subparsers.add_parser("process", help="Mark the most urgent issue In Progress")

    seed_parser = subparsers.add_parser("seed", help="Insert random issues")
    seed_parser.add_argument("--count", type=int, default=100, help="Issues to insert")
    seed_parser.add_argument("--seed", type=int, default=42, help="Random seed")

    bench_parser = subparsers.add_parser("benchmark", help="Run lookup benchmark")
    bench_parser.add_argument("--issues", type=int, default=10_000, help="Number of issues")
    bench_parser.add_argument("--queries", type=int, default=1_000, help="Number of lookups")
    bench_parser.add_argument("--seed", type=int, default=42, help="Random seed")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    config_result = IssueIndexConfig.from_env()
    if config_result.is_err():
        print(f"Configuration error: {config_result.error}", file=sys.stderr)
        sys.exit(2)
    config = config_result.unwrap()
    setup_logging(config.logging, stream=sys.stderr)

    if args.command == "benchmark":
        sys.exit(_run_benchmark(args))

    store = SQLiteIssueStore(args.db)
    init = store.initialize()
    if init.is_err():
        print(f"Storage error: {init.error}", file=sys.stderr)
        sys.exit(1)

    try:
        with logger.context(command=args.command, db_path=args.db):
            if args.command == "seed":
                code = _run_seed(store, args)
            else:
                index = IssueIndex(store, config=config.index)
                code = _COMMANDS[args.command](index, args)
    finally:
        store.close()

    sys.exit(code)


def _get_version() -> str:
    from issue_index import __version__
    return __version__


# =============================================================================
# COMMANDS
# =============================================================================
def _run_stats(index: IssueIndex, args: argparse.Namespace) -> int:
    refresh = index.force_refresh()
    if refresh.is_err():
        print(f"Storage error: {refresh.error}", file=sys.stderr)
        return 1

    stats = refresh.unwrap()
    if args.json:
        print(json.dumps(stats.to_dict(), indent=2))
        return 0

    print(f"Issues indexed:   {stats.total_issues_indexed:,}")
    print(f"Urgent queued:    {stats.urgent_issues_queued:,}")
    print(f"Tree height:      {stats.tree_height} (minimum {stats.theoretical_height})")
    print(f"Well balanced:    {'yes' if stats.is_well_balanced else 'no'}")
    print(f"Efficiency gain:  {stats.search_efficiency_gain():.1f}x")
    print(f"Last refresh:     {stats.last_refresh_time:%Y-%m-%d %H:%M:%S %Z}")
    return 0


def _run_top(index: IssueIndex, args: argparse.Namespace) -> int:
    result = index.get_top_urgent(args.count)
    if result.is_err():
        print(f"Storage error: {result.error}", file=sys.stderr)
        return 1

    issues = result.unwrap()
    if args.json:
        print(json.dumps([issue.to_dict() for issue in issues], indent=2))
    elif not issues:
        print("No actionable issues with a priority.")
    else:
        for rank, issue in enumerate(issues, start=1):
            print(f"{rank:>3}. {_format_issue(issue)}")
    return 0


def _run_search(index: IssueIndex, args: argparse.Namespace) -> int:
    result = index.fast_search(args.issue_id)
    if result.is_err():
        print(f"Storage error: {result.error}", file=sys.stderr)
        return 1

    issue = result.unwrap()
    if issue is None:
        print(f"Issue #{args.issue_id} not found.", file=sys.stderr)
        return 3

    if args.json:
        print(json.dumps(issue.to_dict(), indent=2))
    else:
        print(_format_issue(issue))
        if issue.location:
            print(f"     Location: {issue.location}")
        if issue.description:
            print(f"     {issue.description}")
    return 0


def _run_process(index: IssueIndex, args: argparse.Namespace) -> int:
    result = index.process_most_urgent()
    if result.is_err():
        print(f"Storage error: {result.error}", file=sys.stderr)
        return 1

    issue = result.unwrap()
    if issue is None:
        print("Nothing to process.")
        return 0

    logger.info("Processed issue from CLI", issue_id=issue.id)
    if args.json:
        print(json.dumps(issue.to_dict(), indent=2))
    else:
        print(f"Now in progress: {_format_issue(issue)}")
    return 0


def _run_seed(store: SQLiteIssueStore, args: argparse.Namespace) -> int:
    from issue_index.benchmark import generate_issues

    records = generate_issues(args.count, args.seed)
    written = store.upsert_many(records)
    if written.is_err():
        print(f"Storage error: {written.error}", file=sys.stderr)
        return 1

    print(f"Seeded {written.unwrap():,} issues into {store.path}")
    return 0


def _run_benchmark(args: argparse.Namespace) -> int:
    from issue_index.benchmark import format_results, run_benchmark

    try:
        results = run_benchmark(args.issues, args.queries, args.seed)
    except ValueError as e:
        print(f"Invalid benchmark arguments: {e}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(results.to_dict(), indent=2))
    else:
        print(format_results(results))
    return 0


_COMMANDS = {
    "stats": _run_stats,
    "top": _run_top,
    "search": _run_search,
    "process": _run_process,
}


def _format_issue(issue: IssueRecord) -> str:
    return (
        f"#{issue.id} [{issue.priority_label}] {issue.category} "
        f"({issue.status_label}, submitted {issue.submitted_at:%Y-%m-%d})"
    )


if __name__ == "__main__":
    main()
