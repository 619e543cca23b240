"""Repositories that load and persist collections and memos.

Each repository validates records with a ``SchemaValidator`` before they
leave or enter the process.
"""

from .local_collections import LocalCollectionsRepository
from .memos import MemosRepository, memos_path
from .stored_collections import StoredCollectionsRepository

__all__ = [
    "LocalCollectionsRepository",
    "MemosRepository",
    "StoredCollectionsRepository",
    "memos_path",
]
