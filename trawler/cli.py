"""Command-line entry points for backfilling and configuration checks."""

from __future__ import annotations

import argparse
import asyncio
import typing as typ
from pathlib import Path

from .bootstrap import build_services
from .config import ConfigValidationError, load_config
from .github import IssueState
from .logging import configure_logging
from .store import Destination
from .sync import SyncJob, SyncOptions, SyncOptionsError

if typ.TYPE_CHECKING:
    from .config import TrawlerConfig
    from .sync import RepositorySyncResult


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trawler", description="Index GitHub issues and pull requests."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser(
        "sync", help="Backfill repository history into the document index"
    )
    sync.add_argument("--config", type=Path, required=True, help="YAML configuration")
    sync.add_argument(
        "--from",
        dest="from_number",
        type=int,
        default=None,
        help="Issue position to start at (default from config, usually 1)",
    )
    sync.add_argument(
        "--sleep",
        dest="sleep_per_page",
        type=float,
        default=None,
        help="Seconds to wait between page requests",
    )
    sync.add_argument(
        "--state",
        type=IssueState,
        choices=list(IssueState),
        default=None,
        help="Issue state filter",
    )
    sync.add_argument(
        "--storage",
        type=Destination,
        choices=list(Destination),
        default=None,
        help="Destination index (default snapshot)",
    )
    sync.add_argument(
        "--per-page", type=int, default=None, help="Page size, at most 100"
    )
    sync.add_argument("--log-level", default=None, help="femtologging level")

    check = subparsers.add_parser("check-config", help="Validate a configuration file")
    check.add_argument("config", type=Path, help="YAML configuration to validate")
    return parser


def _print_config_issues(path: Path, exc: ConfigValidationError) -> None:
    print(f"Configuration validation failed for {path}:")
    for issue in exc.issues:
        print(f"  - {issue}")


def _print_result(result: RepositorySyncResult) -> None:
    if result.error is not None:
        print(
            f"{result.repository}: aborted after {result.items_indexed} items, "
            f"resume with --from {result.next_cursor} ({result.error})"
        )
        return
    print(
        f"{result.repository}: {result.items_indexed} indexed, "
        f"{result.items_skipped} skipped, {result.pages_fetched} pages"
    )


async def _run_sync(config: TrawlerConfig, options: SyncOptions) -> int:
    services = await build_services(config)
    try:
        job = SyncJob(services.client, services.store, options)
        results = await job.run(config.repositories)
    finally:
        await services.aclose()

    for result in results:
        _print_result(result)
    return 1 if any(result.aborted for result in results) else 0


def _sync(args: argparse.Namespace) -> int:
    configure_logging(args.log_level)
    try:
        config = load_config(args.config)
    except ConfigValidationError as exc:
        _print_config_issues(args.config, exc)
        return 1

    try:
        options = SyncOptions.from_defaults(
            config.sync,
            from_number=args.from_number,
            sleep_per_page=args.sleep_per_page,
            state=args.state,
            storage=args.storage,
            per_page=args.per_page,
        )
    except SyncOptionsError as exc:
        print(exc)
        return 2

    try:
        return asyncio.run(_run_sync(config, options))
    except ConfigValidationError as exc:
        _print_config_issues(args.config, exc)
        return 1


def _check_config(args: argparse.Namespace) -> int:
    try:
        config = load_config(args.config)
    except ConfigValidationError as exc:
        _print_config_issues(args.config, exc)
        return 1

    print(
        f"configuration {args.config} is valid "
        f"({len(config.repositories)} repositories / "
        f"{len(config.transformations)} transformations)"
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the ``trawler`` command line.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 when validation fails or any repository
        sync aborted, 2 for invalid sync options.

    """
    args = _build_parser().parse_args(argv)
    if args.command == "sync":
        return _sync(args)
    return _check_config(args)


if __name__ == "__main__":
    raise SystemExit(main())
