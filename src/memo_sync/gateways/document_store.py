"""Remote document store contract and an in-memory implementation.

Documents are addressed by a collection ``path`` (e.g.
``collections/c1/memos``) and a document ``id``.  Multi-document writes
go through an explicit ``Transaction`` scope: callers stage writes and
deletes, then hand the scope to ``commit()``, which applies every staged
operation or none of them.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

from memo_sync.errors import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StagedOperation:
    """One write or delete waiting in a transaction scope."""

    kind: Literal["set", "delete"]
    id: str
    path: str
    data: dict[str, Any] | None = None


@dataclass
class Transaction:
    """Explicit transaction scope.

    Operations are kept in staging order.  A scope can be committed
    once; staging after commit is an error.
    """

    operations: list[StagedOperation] = field(default_factory=list)
    committed: bool = False

    def stage_write(self, id: str, path: str, data: dict[str, Any]) -> None:
        self._check_open()
        self.operations.append(
            StagedOperation(kind="set", id=id, path=path, data=data)
        )

    def stage_delete(self, id: str, path: str) -> None:
        self._check_open()
        self.operations.append(
            StagedOperation(kind="delete", id=id, path=path)
        )

    def __len__(self) -> int:
        return len(self.operations)

    def _check_open(self) -> None:
        if self.committed:
            raise RuntimeError("Transaction already committed")


class DocumentStoreGateway(Protocol):
    """Operations the repositories need from the remote store."""

    async def get_doc(self, path: str, id: str) -> dict[str, Any] | None:
        """Return the document data, or ``None`` when it does not exist."""
        ...

    async def get_collection(self, path: str) -> list[dict[str, Any]]:
        """Return the data of every document under *path*."""
        ...

    async def set_doc(
        self, id: str, path: str, data: dict[str, Any]
    ) -> None: ...

    async def delete_doc(self, id: str, path: str) -> None: ...

    def begin_transaction(self) -> Transaction: ...

    async def commit(self, transaction: Transaction) -> None:
        """Apply every staged operation atomically.

        Raises:
            TransportError: If the commit fails; nothing is applied.
        """
        ...


class InMemoryDocumentStore:
    """Document store kept in a dict, with all-or-nothing commits.

    Useful as a local mirror and as the remote side in tests.

    Args:
        documents: Optional initial content, ``{path: {id: data}}``.
    """

    def __init__(
        self, documents: dict[str, dict[str, dict[str, Any]]] | None = None
    ) -> None:
        self.documents: dict[str, dict[str, dict[str, Any]]] = (
            copy.deepcopy(documents) if documents else {}
        )
        self.commits: list[Transaction] = []

    async def get_doc(self, path: str, id: str) -> dict[str, Any] | None:
        data = self.documents.get(path, {}).get(id)
        return copy.deepcopy(data) if data is not None else None

    async def get_collection(self, path: str) -> list[dict[str, Any]]:
        docs = self.documents.get(path, {})
        return [copy.deepcopy(docs[doc_id]) for doc_id in sorted(docs)]

    async def set_doc(
        self, id: str, path: str, data: dict[str, Any]
    ) -> None:
        transaction = self.begin_transaction()
        transaction.stage_write(id, path, data)
        await self.commit(transaction)

    async def delete_doc(self, id: str, path: str) -> None:
        transaction = self.begin_transaction()
        transaction.stage_delete(id, path)
        await self.commit(transaction)

    def begin_transaction(self) -> Transaction:
        return Transaction()

    async def commit(self, transaction: Transaction) -> None:
        if transaction.committed:
            raise TransportError("Transaction already committed")

        # Apply to a copy, then swap, so a failure leaves nothing behind.
        staged = copy.deepcopy(self.documents)
        for op in transaction.operations:
            self._apply(staged, op)
        self.documents = staged
        transaction.committed = True
        self.commits.append(transaction)
        logger.debug(
            "Committed %d operation(s) to in-memory store",
            len(transaction),
        )

    def _apply(
        self,
        documents: dict[str, dict[str, dict[str, Any]]],
        op: StagedOperation,
    ) -> None:
        if op.kind == "set":
            documents.setdefault(op.path, {})[op.id] = copy.deepcopy(
                op.data or {}
            )
        else:
            docs = documents.get(op.path)
            if docs is not None:
                docs.pop(op.id, None)
                if not docs:
                    del documents[op.path]
