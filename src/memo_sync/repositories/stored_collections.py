"""Collection metadata documents in the remote store."""

from __future__ import annotations

import logging

from memo_sync.gateways.document_store import DocumentStoreGateway
from memo_sync.models import RemoteCollection
from memo_sync.schemas import REMOTE_COLLECTION_SCHEMA, SchemaValidator

logger = logging.getLogger(__name__)


class StoredCollectionsRepository:
    """Read and write ``<root_collection>/<id>`` metadata documents.

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

    async def get_collection_by_id(
        self, collection_id: str
    ) -> RemoteCollection | None:
        """Return the stored metadata, or ``None`` if never published."""
        data = await self.store.get_doc(self.root_collection, collection_id)
        if data is None:
            return None
        return self.schema_validator.validate_object(
            REMOTE_COLLECTION_SCHEMA, data
        )

    async def set_collection(self, collection: RemoteCollection) -> None:
        """Validate and write *collection*'s metadata document."""
        validated = self.schema_validator.validate_object(
            REMOTE_COLLECTION_SCHEMA, collection
        )
        await self.store.set_doc(
            validated.id, self.root_collection, validated.to_document()
        )
        logger.debug("Stored collection metadata %s", validated.id)

    async def remove_collection_by_id(self, collection_id: str) -> None:
        """Delete the metadata document of *collection_id*."""
        await self.store.delete_doc(collection_id, self.root_collection)
        logger.debug("Removed collection metadata %s", collection_id)
