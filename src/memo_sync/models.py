"""Pydantic records exchanged between the local source and the remote store.

- ``InsertOperation``: one rich-text insert; formatting keys pass through.
- ``Memo``: a question/answer unit inside a collection.
- ``RemoteCollection``: collection metadata as stored remotely (memos
  live in a separate sub-collection).
- ``LocalPublicCollection``: the local file form, metadata plus memos.

All models are frozen.  ``to_document()`` returns the JSON-compatible
dict that is written to the store and used for change detection.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class Record(BaseModel):
    """Base for every record that crosses the process boundary."""

    model_config = {"frozen": True, "extra": "forbid"}

    def to_document(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return self.model_dump(mode="json")


class InsertOperation(BaseModel):
    """A single rich-text insert operation.

    Only ``insert`` is required; keys such as ``attributes`` are kept
    verbatim.
    """

    insert: str

    model_config = {"frozen": True, "extra": "allow"}


class Memo(Record):
    """A question/answer unit.

    Attributes:
        id: Identifier, unique within the parent collection.
        question: Rich-text insert operations for the question.
        answer: Rich-text insert operations for the answer.
    """

    id: str = Field(min_length=1)
    question: list[InsertOperation] = Field(min_length=1)
    answer: list[InsertOperation] = Field(min_length=1)


class RemoteCollection(Record):
    """Collection metadata, as mirrored in the remote store.

    Attributes:
        id: Stable identifier; never changes once published.
        name: Display name (required).
        description: Free-text description.
        category: Category name (required).
        tags: Unique tag names.
        locale: Content locale, e.g. ``pt-BR``.
        contributors: Opaque contributor references.
        resources: Opaque resource references.
    """

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""
    category: str = Field(min_length=1)
    tags: list[str] = []
    locale: str = ""
    contributors: list[Any] = []
    resources: list[Any] = []

    @field_validator("tags")
    @classmethod
    def _tags_are_unique(cls, tags: list[str]) -> list[str]:
        if len(set(tags)) != len(tags):
            raise ValueError("tags must be unique")
        return tags


class LocalPublicCollection(RemoteCollection):
    """A collection as authored locally, including its memos."""

    memos: list[Memo] = []

    @model_validator(mode="after")
    def _memo_ids_are_unique(self) -> LocalPublicCollection:
        ids = [memo.id for memo in self.memos]
        if len(set(ids)) != len(ids):
            raise ValueError(
                f"duplicate memo ids in collection '{self.id}'"
            )
        return self

    def metadata(self) -> RemoteCollection:
        """Return the metadata part of this collection."""
        return RemoteCollection(**self.model_dump(exclude={"memos"}))
