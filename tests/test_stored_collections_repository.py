"""Tests for StoredCollectionsRepository."""

from __future__ import annotations

import pytest

from builders import raw_metadata
from memo_sync.errors import SerializationError
from memo_sync.gateways import InMemoryDocumentStore
from memo_sync.models import RemoteCollection
from memo_sync.repositories import StoredCollectionsRepository


class TestGetCollectionById:
    async def test_missing_collection_returns_none(self, stored_repo):
        assert await stored_repo.get_collection_by_id("c1") is None

    async def test_returns_validated_metadata(self, validator):
        store = InMemoryDocumentStore({"collections": {"c1": raw_metadata()}})
        repo = StoredCollectionsRepository(store, validator)

        collection = await repo.get_collection_by_id("c1")

        assert isinstance(collection, RemoteCollection)
        assert collection.name == "Collection c1"

    async def test_invalid_remote_document_raises(self, validator):
        store = InMemoryDocumentStore(
            {"collections": {"c1": {"id": "c1", "name": "No category"}}}
        )
        repo = StoredCollectionsRepository(store, validator)

        with pytest.raises(SerializationError):
            await repo.get_collection_by_id("c1")


class TestSetCollection:
    async def test_writes_metadata_document(self, stored_repo, store):
        metadata = RemoteCollection.model_validate(raw_metadata())

        await stored_repo.set_collection(metadata)

        assert await store.get_doc("collections", "c1") == raw_metadata()

    async def test_invalid_metadata_not_written(self, stored_repo, store):
        bad = RemoteCollection.model_construct(
            **{**raw_metadata(), "name": ""}
        )

        with pytest.raises(SerializationError):
            await stored_repo.set_collection(bad)
        assert store.commits == []


class TestRemoveCollectionById:
    async def test_deletes_metadata_document(self, validator):
        store = InMemoryDocumentStore({"collections": {"c1": raw_metadata()}})
        repo = StoredCollectionsRepository(store, validator)

        await repo.remove_collection_by_id("c1")

        assert await store.get_doc("collections", "c1") is None
