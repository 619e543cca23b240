"""Pydantic models describing what a sync run decided and did.

- ``CollectionAction`` / ``MemoAction``: classification enums.
- ``CollectionPlan``: decisions for one collection.
- ``SyncPlan``: decisions for every candidate collection in a run.
- ``SyncReport``: the plan plus run metadata and counts.

Plans are never persisted; they are recomputed on every run.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from memo_sync.models import Memo, RemoteCollection


class CollectionAction(str, Enum):
    """What happens to a collection's remote mirror."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    UNCHANGED = "unchanged"


class MemoAction(str, Enum):
    """What happens to a single remote memo."""

    UPSERT = "upsert"
    REMOVE = "remove"
    UNCHANGED = "unchanged"


class CollectionPlan(BaseModel):
    """Decisions for one collection.

    Attributes:
        collection_id: The collection identifier.
        action: Collection-level classification.
        metadata: Local metadata to write, or ``None`` when the
            metadata document is left alone.
        upserts: Memos to write (local content).
        removals: Ids of remote memos to delete.
        unchanged_memos: Number of memos identical on both sides.
    """

    collection_id: str
    action: CollectionAction
    metadata: RemoteCollection | None = None
    upserts: list[Memo] = []
    removals: list[str] = []
    unchanged_memos: int = 0

    model_config = {"frozen": True}

    @property
    def metadata_changed(self) -> bool:
        return self.metadata is not None

    @property
    def has_writes(self) -> bool:
        return bool(
            self.upserts
            or self.removals
            or self.metadata is not None
            or self.action == CollectionAction.DELETE
        )

    def memo_actions(self) -> dict[str, MemoAction]:
        """Per-memo classification for every memo that changes."""
        actions = {memo.id: MemoAction.UPSERT for memo in self.upserts}
        actions.update({mid: MemoAction.REMOVE for mid in self.removals})
        return actions


class SyncPlan(BaseModel):
    """Decisions for every candidate collection of a run."""

    collections: list[CollectionPlan] = []

    model_config = {"frozen": True}

    def by_action(self, action: CollectionAction) -> list[CollectionPlan]:
        return [c for c in self.collections if c.action == action]

    @property
    def has_writes(self) -> bool:
        return any(c.has_writes for c in self.collections)

    def upserts_per_collection(self) -> dict[str, list[Memo]]:
        return {
            c.collection_id: list(c.upserts)
            for c in self.collections
            if c.upserts
        }

    def removals_per_collection(self) -> dict[str, list[str]]:
        return {
            c.collection_id: list(c.removals)
            for c in self.collections
            if c.removals
        }


class SyncReport(BaseModel):
    """Aggregate report for a sync run.

    Attributes:
        plan: What the run decided.
        dry_run: Whether the plan was only computed, not applied.
        since: Checkpoint the candidates were discovered from.
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run completed.
    """

    plan: SyncPlan
    dry_run: bool = False
    since: str | None = None
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    @property
    def created(self) -> list[CollectionPlan]:
        return self.plan.by_action(CollectionAction.CREATE)

    @property
    def updated(self) -> list[CollectionPlan]:
        return self.plan.by_action(CollectionAction.UPDATE)

    @property
    def deleted(self) -> list[CollectionPlan]:
        return self.plan.by_action(CollectionAction.DELETE)

    @property
    def unchanged(self) -> list[CollectionPlan]:
        return self.plan.by_action(CollectionAction.UNCHANGED)

    @property
    def memos_upserted(self) -> int:
        return sum(len(c.upserts) for c in self.plan.collections)

    @property
    def memos_removed(self) -> int:
        return sum(len(c.removals) for c in self.plan.collections)

    @property
    def memos_unchanged(self) -> int:
        return sum(c.unchanged_memos for c in self.plan.collections)

    def counts(self) -> dict[str, int]:
        return {
            "collections_created": len(self.created),
            "collections_updated": len(self.updated),
            "collections_deleted": len(self.deleted),
            "collections_unchanged": len(self.unchanged),
            "memos_upserted": self.memos_upserted,
            "memos_removed": self.memos_removed,
            "memos_unchanged": self.memos_unchanged,
        }
