"""Pure change detection between local collections and their remote mirror.

Local state is authoritative: a memo that differs on the two sides is
always upserted with its local content, and the remote value is never
kept.  Records are compared through their serialized documents.
"""

from __future__ import annotations

from collections.abc import Sequence

from memo_sync.models import LocalPublicCollection, Memo, RemoteCollection

from .plan import CollectionAction, CollectionPlan


def diff_memos(
    local_memos: Sequence[Memo], remote_memos: Sequence[Memo]
) -> tuple[list[Memo], list[str], int]:
    """Compare memo sets by id.

    Returns:
        ``(upserts, removal_ids, unchanged_count)``.  Upserts keep the
        local order; removals keep the remote order.
    """
    remote_by_id = {memo.id: memo.to_document() for memo in remote_memos}
    local_ids = {memo.id for memo in local_memos}

    upserts: list[Memo] = []
    unchanged = 0
    for memo in local_memos:
        remote_doc = remote_by_id.get(memo.id)
        if remote_doc is not None and remote_doc == memo.to_document():
            unchanged += 1
        else:
            upserts.append(memo)

    removals = [
        memo.id for memo in remote_memos if memo.id not in local_ids
    ]
    return upserts, removals, unchanged


def diff_collection(
    local: LocalPublicCollection,
    remote: RemoteCollection | None,
    remote_memos: Sequence[Memo],
) -> CollectionPlan:
    """Classify a collection that exists locally.

    No remote metadata means CREATE (remote memos left behind by an
    earlier interrupted run are still reconciled).  Otherwise the
    collection is UPDATE when anything differs, UNCHANGED when nothing
    does.
    """
    upserts, removals, unchanged = diff_memos(local.memos, remote_memos)
    local_metadata = local.metadata()

    if remote is None:
        return CollectionPlan(
            collection_id=local.id,
            action=CollectionAction.CREATE,
            metadata=local_metadata,
            upserts=upserts,
            removals=removals,
            unchanged_memos=unchanged,
        )

    metadata_changed = local_metadata.to_document() != remote.to_document()
    action = (
        CollectionAction.UPDATE
        if metadata_changed or upserts or removals
        else CollectionAction.UNCHANGED
    )
    return CollectionPlan(
        collection_id=local.id,
        action=action,
        metadata=local_metadata if metadata_changed else None,
        upserts=upserts,
        removals=removals,
        unchanged_memos=unchanged,
    )


def diff_removed_collection(
    collection_id: str,
    remote: RemoteCollection | None,
    remote_memos: Sequence[Memo],
) -> CollectionPlan:
    """Classify a collection whose local source was reported removed.

    Nothing remote means there is nothing to delete.
    """
    if remote is None and not remote_memos:
        return CollectionPlan(
            collection_id=collection_id,
            action=CollectionAction.UNCHANGED,
        )
    return CollectionPlan(
        collection_id=collection_id,
        action=CollectionAction.DELETE,
        removals=[memo.id for memo in remote_memos],
    )
