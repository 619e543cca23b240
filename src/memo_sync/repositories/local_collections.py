"""Load collections from local JSON files."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path

from memo_sync.core.async_utils import gather_all
from memo_sync.errors import SerializationError
from memo_sync.gateways.filesystem import FilesystemGateway
from memo_sync.gateways.git import COLLECTION_SUFFIX
from memo_sync.models import LocalPublicCollection
from memo_sync.schemas import COLLECTION_SCHEMA, SchemaValidator

logger = logging.getLogger(__name__)


class LocalCollectionsRepository:
    """Read ``<collections_dir>/<id>.json`` files as collections.

    Args:
        fs: Filesystem gateway used for every read.
        schema_validator: Validator gating deserialization.
        collections_dir: Directory holding the collection files.
    """

    def __init__(
        self,
        fs: FilesystemGateway,
        schema_validator: SchemaValidator,
        collections_dir: str | Path,
    ) -> None:
        self.fs = fs
        self.schema_validator = schema_validator
        self.collections_dir = Path(collections_dir)

    def collection_path(self, collection_id: str) -> Path:
        return self.collections_dir / f"{collection_id}{COLLECTION_SUFFIX}"

    async def get_all_collections_by_ids(
        self, ids: Sequence[str]
    ) -> list[LocalPublicCollection]:
        """Load the collections with the given ids, in input order.

        All files are read concurrently; the call fails as a whole if any
        single one cannot be read or decoded.

        Raises:
            FilesystemError: A file is missing or unreadable.
            SerializationError: A file is not valid JSON, does not match
                the collection schema, or declares a different id.
        """
        raw_contents = await gather_all(
            [
                self.fs.read_file_as_string(self.collection_path(cid))
                for cid in ids
            ]
        )
        return [
            self._deserialize(cid, raw)
            for cid, raw in zip(ids, raw_contents)
        ]

    def _deserialize(
        self, collection_id: str, raw: str
    ) -> LocalPublicCollection:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SerializationError(
                f"Collection file for '{collection_id}' is not valid JSON: "
                f"{exc}",
                record_id=collection_id,
                origin=exc,
            ) from exc

        collection = self.schema_validator.validate_object(
            COLLECTION_SCHEMA, data
        )
        if collection.id != collection_id:
            raise SerializationError(
                f"Collection file '{collection_id}{COLLECTION_SUFFIX}' "
                f"declares id '{collection.id}'",
                record_id=collection_id,
            )
        logger.debug(
            "Loaded local collection %s (%d memos)",
            collection.id,
            len(collection.memos),
        )
        return collection
