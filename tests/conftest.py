"""Shared pytest fixtures for memo-sync tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from dotenv import load_dotenv

from memo_sync.gateways import FilesystemGateway, InMemoryDocumentStore
from memo_sync.repositories import (
    LocalCollectionsRepository,
    MemosRepository,
    StoredCollectionsRepository,
)
from memo_sync.schemas import SchemaValidator

load_dotenv()


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a Firestore emulator",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a Firestore emulator"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def validator() -> SchemaValidator:
    return SchemaValidator()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def collections_dir(tmp_path: Path) -> Path:
    path = tmp_path / "collections"
    path.mkdir()
    return path


@pytest.fixture
def write_collection(collections_dir: Path):
    """Factory fixture writing ``<id>.json`` into the collections dir."""

    def _write(data: dict[str, Any]) -> Path:
        path = collections_dir / f"{data['id']}.json"
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def local_repo(
    collections_dir: Path, validator: SchemaValidator
) -> LocalCollectionsRepository:
    return LocalCollectionsRepository(
        FilesystemGateway(), validator, collections_dir
    )


@pytest.fixture
def stored_repo(
    store: InMemoryDocumentStore, validator: SchemaValidator
) -> StoredCollectionsRepository:
    return StoredCollectionsRepository(store, validator)


@pytest.fixture
def memos_repo(
    store: InMemoryDocumentStore, validator: SchemaValidator
) -> MemosRepository:
    return MemosRepository(store, validator)
