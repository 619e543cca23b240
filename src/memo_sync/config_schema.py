"""Unified configuration schema for memo-sync.

Defines Pydantic models for the YAML config structure with dedicated
sections for the remote store, the sync source and logging.

Unknown keys are rejected so a misspelt setting fails loudly instead of
silently falling back to its default.

Usage:
    from memo_sync.config_schema import build_config

    unified = build_config({"store": {"project_id": "demo"}})
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class StoreConfig(BaseModel):
    """Remote document store (Firestore) settings.

    All fields are optional so env vars and CLI args can supply them at
    runtime instead.
    """

    project_id: str | None = Field(
        default=None, description="Google Cloud project id"
    )
    database: str = Field(default="(default)", description="Database id")
    base_url: str | None = Field(
        default=None,
        description="API root (defaults to Firestore, or the emulator "
        "when FIRESTORE_EMULATOR_HOST is set)",
    )
    token: str | None = Field(
        default=None, description="Bearer access token"
    )
    timeout: float = Field(
        default=30.0, gt=0, description="Request timeout in seconds"
    )
    max_parallel_requests: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Maximum concurrent requests to the store (1-100)",
    )

    model_config = {"frozen": True, "extra": "forbid"}


class SyncConfig(BaseModel):
    """Where collections live locally and remotely."""

    collections_dir: str = Field(
        default="collections",
        description="Directory of <collection_id>.json files",
    )
    state_dir: str = Field(
        default=".memo_sync",
        description="Directory for the sync checkpoint",
    )
    root_collection: str = Field(
        default="collections",
        description="Remote path holding collection documents",
    )

    model_config = {"frozen": True, "extra": "forbid"}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True, "extra": "forbid"}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level configuration.

    Every section has defaults, so ``UnifiedConfig()`` is always valid.
    """

    store: StoreConfig = Field(default_factory=StoreConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True, "extra": "forbid"}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from merged config sections.

    Missing sections get defaults.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)
