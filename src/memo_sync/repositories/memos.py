"""Memo documents in the remote store.

Writes and deletes are batched: one call stages every operation,
for every collection it was given, into a single transaction and
commits it once.  Validation runs over the whole input before the
first operation is staged, so a single bad memo means zero writes.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from memo_sync.gateways.document_store import DocumentStoreGateway
from memo_sync.models import Memo
from memo_sync.schemas import MEMO_SCHEMA, SchemaValidator

logger = logging.getLogger(__name__)


def memos_path(collection_id: str, root_collection: str = "collections") -> str:
    """Store path of the memos sub-collection of *collection_id*."""
    return f"{root_collection}/{collection_id}/memos"


class MemosRepository:
    """Read, upsert and delete memo documents.

    Args:
        store: Remote document store gateway.
        schema_validator: Validator gating reads and writes.
        root_collection: Path of the collections root in the store.
    """

    def __init__(
        self,
        store: DocumentStoreGateway,
        schema_validator: SchemaValidator,
        root_collection: str = "collections",
    ) -> None:
        self.store = store
        self.schema_validator = schema_validator
        self.root_collection = root_collection

    async def get_all_memos(self, collection_id: str) -> list[Memo]:
        """Return every memo stored under *collection_id*.

        Raises:
            SerializationError: On the first document that fails
                validation; no partial list is returned.
        """
        raw_memos = await self.store.get_collection(
            memos_path(collection_id, self.root_collection)
        )
        return [
            self.schema_validator.validate_object(MEMO_SCHEMA, raw)
            for raw in raw_memos
        ]

    async def set_memos(
        self, memos_per_collection: Mapping[str, Sequence[Memo]]
    ) -> None:
        """Upsert memos for any number of collections in one transaction.

        Raises:
            SerializationError: If any memo is invalid.  Nothing is
                staged or committed in that case.
            TransportError: If the commit fails; nothing is applied.
        """
        validated = {
            collection_id: [
                self.schema_validator.validate_object(MEMO_SCHEMA, memo)
                for memo in memos
            ]
            for collection_id, memos in memos_per_collection.items()
        }

        transaction = self.store.begin_transaction()
        for collection_id, memos in validated.items():
            path = memos_path(collection_id, self.root_collection)
            for memo in memos:
                transaction.stage_write(memo.id, path, memo.to_document())

        if not transaction.operations:
            return
        await self.store.commit(transaction)
        logger.info(
            "Upserted %d memo(s) across %d collection(s)",
            len(transaction),
            len(validated),
        )

    async def remove_memos_by_ids(
        self, ids_per_collection: Mapping[str, Sequence[str]]
    ) -> None:
        """Delete memos for any number of collections in one transaction."""
        transaction = self.store.begin_transaction()
        for collection_id, memo_ids in ids_per_collection.items():
            path = memos_path(collection_id, self.root_collection)
            for memo_id in memo_ids:
                transaction.stage_delete(memo_id, path)

        if not transaction.operations:
            return
        await self.store.commit(transaction)
        logger.info(
            "Removed %d memo(s) across %d collection(s)",
            len(transaction),
            len(ids_per_collection),
        )
