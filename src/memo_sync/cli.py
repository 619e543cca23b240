"""Command-line entry point.

Wires the gateways and repositories explicitly, runs a sync, prints the
report and advances the checkpoint.  This is the only place where
errors are caught and logged.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from . import __version__
from .config import Config, load_config
from .config_loader import load_unified_config
from .config_schema import UnifiedConfig
from .core.async_utils import init_semaphore
from .errors import MemoSyncError
from .gateways import FilesystemGateway, FirestoreRestGateway, GitChangeOracle
from .gateways.git import COLLECTION_SUFFIX
from .logger import setup_logging
from .repositories import (
    LocalCollectionsRepository,
    MemosRepository,
    StoredCollectionsRepository,
)
from .schemas import SchemaValidator
from .sync import (
    CheckpointStore,
    SyncCollectionsUseCase,
    format_dry_run_preview,
    format_sync_report,
    report_to_json,
)

logger = logging.getLogger(__name__)


def build_use_case(
    config: Config,
    validator: SchemaValidator | None = None,
) -> tuple[SyncCollectionsUseCase, GitChangeOracle]:
    """Construct the use-case and its collaborators from *config*."""
    validator = validator or SchemaValidator()
    collections_dir = Path(config.collections_dir)

    store = FirestoreRestGateway(
        project_id=config.project_id,
        token=config.token,
        database=config.database,
        base_url=config.base_url,
        timeout=config.timeout,
    )
    oracle = GitChangeOracle(collections_dir)
    use_case = SyncCollectionsUseCase(
        LocalCollectionsRepository(
            FilesystemGateway(), validator, collections_dir
        ),
        StoredCollectionsRepository(
            store, validator, config.root_collection
        ),
        MemosRepository(store, validator, config.root_collection),
        oracle,
    )
    return use_case, oracle


def list_local_collection_ids(collections_dir: Path) -> list[str]:
    """Ids of every ``<id>.json`` file directly under *collections_dir*."""
    return sorted(
        p.stem
        for p in collections_dir.glob(f"*{COLLECTION_SUFFIX}")
        if p.is_file()
    )


async def sync_command(
    args: argparse.Namespace, unified: UnifiedConfig
) -> int:
    config = load_config(
        project_id=args.project_id,
        token=args.token,
        base_url=args.base_url,
        collections_dir=args.collections_dir,
        debug=args.debug,
        unified=unified,
    )
    init_semaphore(config.max_parallel_requests)
    use_case, oracle = build_use_case(config)
    checkpoints = CheckpointStore(Path(config.state_dir))

    candidate_ids: list[str] | None = None
    if args.ids:
        candidate_ids = args.ids
    elif args.all:
        candidate_ids = list_local_collection_ids(
            Path(config.collections_dir)
        )

    since = None
    head = None
    if candidate_ids is None:
        since = args.since or checkpoints.load()
        head = await oracle.head()
        logger.info("Syncing changes since %s", since or "the beginning")

    report = await use_case.run(
        since=since, candidate_ids=candidate_ids, dry_run=args.dry_run
    )

    if args.json:
        print(json.dumps(report_to_json(report), indent=2))
    elif args.dry_run:
        print(format_dry_run_preview(report))
    else:
        print(format_sync_report(report))

    if head is not None and not args.dry_run:
        checkpoints.save(head)
        logger.info("Checkpoint advanced to %s", head)
    return 0


def schema_command(args: argparse.Namespace) -> int:
    validator = SchemaValidator()
    names = [args.name] if args.name else validator.schema_names()
    documents = {name: validator.json_schema(name) for name in names}
    print(json.dumps(documents[args.name] if args.name else documents, indent=2))
    return 0


async def main(args: argparse.Namespace) -> int:
    """Run the selected command and map failures to an exit code."""
    try:
        unified = load_unified_config()
        setup_logging(
            debug=getattr(args, "debug", False),
            log_file=getattr(args, "log_file", None) or unified.logging.file,
            debug_format=getattr(args, "log_format", "text"),
            level=unified.logging.level,
        )
        if args.command == "schema":
            return schema_command(args)
        return await sync_command(args, unified)
    except MemoSyncError as exc:
        logger.error("Sync failed: %s", exc)
        if exc.origin is not None:
            logger.debug("Caused by: %r", exc.origin)
        return 1
    except KeyError as exc:
        logger.error("%s", exc.args[0] if exc.args else exc)
        return 1
    except ValueError as exc:
        logger.error("Configuration error: %s", exc)
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="memo-sync",
        description="Publish local memo collections to Firestore",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sync collections changed since the last checkpoint
  memo-sync sync

  # Preview what would change, without writing
  memo-sync sync --dry-run

  # Sync specific collections regardless of git history
  memo-sync sync --ids basics advanced

  # Against a local emulator
  FIRESTORE_EMULATOR_HOST=localhost:8080 memo-sync sync --project-id demo

  # Print the JSON Schema of a memo
  memo-sync schema memo
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"memo-sync version {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Reconcile collections")
    sync.add_argument(
        "--collections-dir",
        help="Directory of <collection_id>.json files (default: collections)",
    )
    selection = sync.add_mutually_exclusive_group()
    selection.add_argument(
        "--since",
        help="Git revision to diff from (default: stored checkpoint)",
    )
    selection.add_argument(
        "--ids", nargs="+", metavar="ID", help="Collection ids to sync"
    )
    selection.add_argument(
        "--all",
        action="store_true",
        help="Sync every local collection file",
    )
    sync.add_argument(
        "--dry-run",
        action="store_true",
        help="Show planned changes without writing",
    )
    sync.add_argument(
        "--json", action="store_true", help="Print the report as JSON"
    )
    sync.add_argument("--project-id", help="Firestore project id")
    sync.add_argument(
        "--token",
        help="Bearer access token "
        "(visible in process list -- prefer MEMO_SYNC_TOKEN)",
    )
    sync.add_argument("--base-url", help="Firestore API root")
    sync.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    sync.add_argument("--log-file", help="Also append logs to this file")
    sync.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log line format (default: text)",
    )

    schema = subparsers.add_parser(
        "schema", help="Print record JSON Schemas"
    )
    schema.add_argument(
        "name",
        nargs="?",
        help="Schema name (collection, remote_collection, memo)",
    )
    return parser


def run(argv: list[str] | None = None) -> None:
    """Console script entry point."""
    args = build_parser().parse_args(argv)
    load_dotenv()
    try:
        sys.exit(asyncio.run(main(args)))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
