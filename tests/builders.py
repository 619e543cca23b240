"""Raw record builders shared by the test modules."""

from __future__ import annotations

from typing import Any


def raw_memo(
    id: str = "m1", question: str = "Question", answer: str = "Answer"
) -> dict[str, Any]:
    return {
        "id": id,
        "question": [{"insert": question}],
        "answer": [{"insert": answer}],
    }


def raw_collection(
    id: str = "c1", memos: list[dict[str, Any]] | None = None, **fields: Any
) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": id,
        "name": f"Collection {id}",
        "description": "Description",
        "category": "category",
        "tags": ["tag", "tag2"],
        "locale": "en",
        "contributors": [],
        "resources": [],
        "memos": memos if memos is not None else [raw_memo()],
    }
    data.update(fields)
    return data


def raw_metadata(id: str = "c1", **fields: Any) -> dict[str, Any]:
    data = raw_collection(id, **fields)
    del data["memos"]
    return data

