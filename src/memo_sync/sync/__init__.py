"""Collection reconciliation engine.

Publishes locally authored collections to the remote document store.
Local files are canonical; the remote store is a mirror that is
overwritten, never merged.

Modules:

- ``use_case``   -- ``SyncCollectionsUseCase``: orchestrates a sync run.
- ``diff``       -- pure change detection producing ``CollectionPlan``s.
- ``plan``       -- ``SyncPlan``, ``CollectionPlan``, ``SyncReport`` and
  the action enums.
- ``checkpoint`` -- ``CheckpointStore``: last synced commit on disk.
- ``reporter``   -- human-readable and JSON report formatting.

Usage example
-------------
::

    from pathlib import Path
    from memo_sync.gateways import (
        FilesystemGateway, GitChangeOracle, InMemoryDocumentStore,
    )
    from memo_sync.repositories import (
        LocalCollectionsRepository, MemosRepository,
        StoredCollectionsRepository,
    )
    from memo_sync.schemas import SchemaValidator
    from memo_sync.sync import SyncCollectionsUseCase, format_sync_report

    validator = SchemaValidator()
    store = InMemoryDocumentStore()
    use_case = SyncCollectionsUseCase(
        LocalCollectionsRepository(
            FilesystemGateway(), validator, Path("collections")
        ),
        StoredCollectionsRepository(store, validator),
        MemosRepository(store, validator),
        GitChangeOracle(Path("collections")),
    )
    report = await use_case.run(since="HEAD~1")
    print(format_sync_report(report))
"""

from .checkpoint import CheckpointStore
from .diff import diff_collection, diff_memos, diff_removed_collection
from .plan import (
    CollectionAction,
    CollectionPlan,
    MemoAction,
    SyncPlan,
    SyncReport,
)
from .reporter import (
    format_dry_run_preview,
    format_sync_report,
    report_to_json,
)
from .use_case import SyncCollectionsUseCase

__all__ = [
    "CheckpointStore",
    "CollectionAction",
    "CollectionPlan",
    "MemoAction",
    "SyncCollectionsUseCase",
    "SyncPlan",
    "SyncReport",
    "diff_collection",
    "diff_memos",
    "diff_removed_collection",
    "format_dry_run_preview",
    "format_sync_report",
    "report_to_json",
]
