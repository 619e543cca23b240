"""Gateways to the collaborators the reconciliation core talks to.

- ``filesystem``     -- ``FilesystemGateway``: encoding-aware local reads.
- ``document_store`` -- ``DocumentStoreGateway`` protocol, ``Transaction``
  scope and the ``InMemoryDocumentStore`` implementation.
- ``firestore``      -- ``FirestoreRestGateway``: Firestore REST v1 client.
- ``git``            -- ``GitChangeOracle``: changed collections since a commit.
"""

from .document_store import (
    DocumentStoreGateway,
    InMemoryDocumentStore,
    StagedOperation,
    Transaction,
)
from .filesystem import FilesystemGateway
from .firestore import FirestoreRestGateway
from .git import ChangeOracle, GitChangeOracle

__all__ = [
    "ChangeOracle",
    "DocumentStoreGateway",
    "FilesystemGateway",
    "FirestoreRestGateway",
    "GitChangeOracle",
    "InMemoryDocumentStore",
    "StagedOperation",
    "Transaction",
]
