"""Command-line interface for browsing and growing the directory."""

from __future__ import annotations

import argparse
import asyncio
import sys
import typing as typ

import msgspec

from agentdir.cache import CredentialStore, LocalStore
from agentdir.config import DirectoryConfig
from agentdir.directory.errors import DirectoryError
from agentdir.directory.listing import DirectoryListOptions
from agentdir.discovery.errors import DiscoveryConfigError
from agentdir.factory import build_orchestrator, create_engine
from agentdir.logging import configure_logging, get_logger, log_warning
from agentdir.store.storage import init_directory_storage

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from agentdir.directory.models import RepositoryRecord
    from agentdir.reconcile import ReconciliationOrchestrator

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agentdir", description="Directory of AI agent and MCP repositories."
    )
    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="List directory entries")
    list_cmd.add_argument("--language", default=None)
    list_cmd.add_argument("--license", default=None)
    list_cmd.add_argument("--query", default="")
    list_cmd.add_argument(
        "--sort", choices=("stars", "forks", "updated"), default="stars"
    )
    list_cmd.add_argument("--limit", type=int, default=None)
    list_cmd.add_argument("--offset", type=int, default=None)

    search_cmd = commands.add_parser("search", help="Search directory entries")
    search_cmd.add_argument("text")

    discover_cmd = commands.add_parser(
        "discover", help="Find new repositories on GitHub"
    )
    discover_cmd.add_argument("query")
    discover_cmd.add_argument(
        "--add", action="store_true", help="Add discovered repositories"
    )
    discover_cmd.add_argument(
        "--token", default=None, help="GitHub token for this call only"
    )

    add_cmd = commands.add_parser("add", help="Add repositories by GitHub URL")
    add_cmd.add_argument("urls", nargs="+", metavar="URL")

    top_cmd = commands.add_parser("top", help="Show the most starred projects")
    top_cmd.add_argument("--limit", type=int, default=10)

    token_cmd = commands.add_parser("token", help="Store or clear a GitHub token")
    token_group = token_cmd.add_mutually_exclusive_group(required=True)
    token_group.add_argument("value", nargs="?", default=None)
    token_group.add_argument("--clear", action="store_true")

    commands.add_parser("init-db", help="Create the durable store table")

    for sub in (list_cmd, search_cmd, discover_cmd, top_cmd):
        sub.add_argument("--json", action="store_true", help="Emit JSON rows")
    return parser


def _print_records(
    records: cabc.Sequence[RepositoryRecord], *, as_json: bool
) -> None:
    if as_json:
        print(msgspec.json.encode([record.to_row() for record in records]).decode())
        return
    for record in records:
        print(
            f"{record.slug:<40} {record.stars:>7} stars  "
            f"{record.language:<12} {record.url}"
        )
    print(f"{len(records)} repositories")


async def _run_command(
    args: argparse.Namespace, orchestrator: ReconciliationOrchestrator
) -> int:
    match args.command:
        case "list":
            options = DirectoryListOptions(
                language=args.language,
                license=args.license,
                query=args.query,
                sort=args.sort,
                limit=args.limit,
                offset=args.offset,
            )
            _print_records(await orchestrator.list_records(options), as_json=args.json)
        case "search":
            _print_records(await orchestrator.search(args.text), as_json=args.json)
        case "discover" if args.add:
            added = await orchestrator.discover_and_add(args.query, args.token)
            print(f"added {added} repositories")
        case "discover":
            found = await orchestrator.discover(args.query, args.token)
            _print_records(found, as_json=args.json)
        case "add":
            added = await orchestrator.add_urls(args.urls)
            print(f"added {added} repositories")
        case "top":
            top = await orchestrator.top_projects(args.limit)
            _print_records(top, as_json=args.json)
    return 0


async def _init_db(config: DirectoryConfig) -> int:
    engine = create_engine(config)
    if engine is None:
        print("AGENTDIR_DATABASE_URL is not set", file=sys.stderr)
        return 1
    try:
        await init_directory_storage(engine, table_name=config.table_name)
    finally:
        await engine.dispose()
    print(f"table {config.table_name} is ready")
    return 0


def _store_token(args: argparse.Namespace, config: DirectoryConfig) -> int:
    credentials = CredentialStore(LocalStore.in_directory(config.state_dir).credential)
    if args.clear:
        credentials.clear()
        print("token cleared")
    else:
        credentials.save(args.value)
        print("token stored")
    return 0


async def _main(args: argparse.Namespace, config: DirectoryConfig) -> int:
    if args.command == "init-db":
        return await _init_db(config)

    try:
        orchestrator = build_orchestrator(config)
    except DiscoveryConfigError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    try:
        return await _run_command(args, orchestrator)
    except DirectoryError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    finally:
        await orchestrator.aclose()


def main(argv: list[str] | None = None) -> int:
    """Run an ``agentdir`` subcommand.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 on invalid input or configuration.

    """
    args = _build_parser().parse_args(argv)
    try:
        config = DirectoryConfig.from_env()
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    level, invalid = configure_logging(config.log_level, force=True)
    if invalid:
        log_warning(
            logger,
            "Invalid AGENTDIR_LOG_LEVEL %r, falling back to %s",
            config.log_level,
            level,
        )

    if args.command == "token":
        return _store_token(args, config)
    return asyncio.run(_main(args, config))


if __name__ == "__main__":
    raise SystemExit(main())
