"""Sync use-case: reconcile local collections with their remote mirror.

One run walks through five phases and stops at the first error:

1. **Discover** -- candidate ids come from the caller or the change
   oracle; removals only ever come from the oracle (or the caller),
   never from the absence of a local file.
2. **Load** -- local collections, remote metadata and remote memos for
   every candidate are read concurrently; the run waits for all reads.
3. **Diff** -- ``memo_sync.sync.diff`` builds a ``SyncPlan``.
4. **Apply** -- one ``set_memos`` call, one ``remove_memos_by_ids``
   call, then metadata writes and deletes.  Memo operations always come
   first so metadata never refers to memos that are not there yet.
5. **Report** -- a ``SyncReport`` is returned.

Errors propagate unchanged; nothing is retried.  A failed run can be
re-run safely because the diff depends only on current local and
remote state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from memo_sync.core.async_utils import gather_all
from memo_sync.gateways.git import ChangeOracle
from memo_sync.models import LocalPublicCollection, Memo, RemoteCollection
from memo_sync.repositories import (
    LocalCollectionsRepository,
    MemosRepository,
    StoredCollectionsRepository,
)

from .diff import diff_collection, diff_removed_collection
from .plan import CollectionAction, SyncPlan, SyncReport

logger = logging.getLogger(__name__)


class SyncCollectionsUseCase:
    """Orchestrate a full sync run.

    Args:
        local_collections: Repository over the local collection files.
        stored_collections: Repository over remote metadata documents.
        memos: Repository over remote memo documents.
        change_oracle: Source of changed/removed collection ids.  May be
            ``None`` when every run passes explicit candidates.
    """

    def __init__(
        self,
        local_collections: LocalCollectionsRepository,
        stored_collections: StoredCollectionsRepository,
        memos: MemosRepository,
        change_oracle: ChangeOracle | None = None,
    ) -> None:
        self.local_collections = local_collections
        self.stored_collections = stored_collections
        self.memos = memos
        self.change_oracle = change_oracle

    async def run(
        self,
        since: str | None = None,
        candidate_ids: Iterable[str] | None = None,
        removed_ids: Iterable[str] | None = None,
        dry_run: bool = False,
    ) -> SyncReport:
        """Execute one sync run.

        Args:
            since: Checkpoint passed to the change oracle.
            candidate_ids: Explicit collection ids to reconcile; skips
                oracle discovery.
            removed_ids: Explicit removed collection ids, only used with
                *candidate_ids*.
            dry_run: Compute the plan without writing anything.

        Returns:
            The run report.

        Raises:
            FilesystemError: A local collection could not be read.
            SerializationError: A local or remote record is invalid.
            TransportError: The remote store failed a read or a commit.
        """
        started_at = datetime.now(timezone.utc).isoformat()

        changed, removed = await self._discover(
            since, candidate_ids, removed_ids
        )
        logger.info(
            "Discovered %d changed and %d removed collection(s)",
            len(changed),
            len(removed),
        )

        plan = await self.plan(changed, removed)

        if dry_run:
            logger.info("Dry run: no changes applied")
        elif plan.has_writes:
            await self.apply(plan)
        else:
            logger.info("Remote store already up to date")

        return SyncReport(
            plan=plan,
            dry_run=dry_run,
            since=since,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def plan(
        self, changed: list[str], removed: list[str]
    ) -> SyncPlan:
        """Load both sides for the given ids and diff them."""
        remote_ids = changed + removed
        local, remote_metadata, remote_memos = await gather_all(
            [
                self.local_collections.get_all_collections_by_ids(changed),
                gather_all(
                    [
                        self.stored_collections.get_collection_by_id(cid)
                        for cid in remote_ids
                    ]
                ),
                gather_all(
                    [self.memos.get_all_memos(cid) for cid in remote_ids]
                ),
            ]
        )
        return self._diff(
            local,
            removed,
            dict(zip(remote_ids, remote_metadata)),
            dict(zip(remote_ids, remote_memos)),
        )

    async def apply(self, plan: SyncPlan) -> None:
        """Write *plan* to the remote store, memos before metadata."""
        upserts = plan.upserts_per_collection()
        if upserts:
            await self.memos.set_memos(upserts)

        removals = plan.removals_per_collection()
        if removals:
            await self.memos.remove_memos_by_ids(removals)

        for collection_plan in plan.collections:
            if collection_plan.metadata is not None:
                await self.stored_collections.set_collection(
                    collection_plan.metadata
                )
            elif collection_plan.action == CollectionAction.DELETE:
                await self.stored_collections.remove_collection_by_id(
                    collection_plan.collection_id
                )

        logger.info(
            "Applied plan: %d collection(s) written",
            sum(1 for c in plan.collections if c.has_writes),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _discover(
        self,
        since: str | None,
        candidate_ids: Iterable[str] | None,
        removed_ids: Iterable[str] | None,
    ) -> tuple[list[str], list[str]]:
        if candidate_ids is not None:
            changed = list(dict.fromkeys(candidate_ids))
            removed = list(dict.fromkeys(removed_ids or ()))
        else:
            if self.change_oracle is None:
                raise ValueError(
                    "No change oracle configured; pass candidate_ids"
                )
            changed_set, removed_set = await gather_all(
                [
                    self.change_oracle.changed_collection_ids(since),
                    self.change_oracle.removed_collection_ids(since),
                ]
            )
            changed = sorted(changed_set)
            removed = sorted(removed_set)

        # A collection that exists locally is never deleted.
        changed_ids = set(changed)
        return changed, [cid for cid in removed if cid not in changed_ids]

    def _diff(
        self,
        local: list[LocalPublicCollection],
        removed: list[str],
        remote_metadata: dict[str, RemoteCollection | None],
        remote_memos: dict[str, list[Memo]],
    ) -> SyncPlan:
        plans = [
            diff_collection(
                collection,
                remote_metadata[collection.id],
                remote_memos[collection.id],
            )
            for collection in local
        ]
        plans.extend(
            diff_removed_collection(
                cid, remote_metadata[cid], remote_memos[cid]
            )
            for cid in removed
        )
        for collection_plan in plans:
            logger.debug(
                "%s: %s (%d upsert, %d remove, metadata %s)",
                collection_plan.collection_id,
                collection_plan.action.value,
                len(collection_plan.upserts),
                len(collection_plan.removals),
                "changed" if collection_plan.metadata_changed else "same",
            )
        return SyncPlan(collections=plans)
