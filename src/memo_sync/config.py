"""Effective runtime configuration for a sync run.

Resolves settings from CLI args, environment variables, .env files and
the YAML config.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    MEMO_SYNC_PROJECT_ID: Firestore project id (required)
    MEMO_SYNC_TOKEN: Bearer access token (optional)
    MEMO_SYNC_DATABASE: Database id (optional, default: (default))
    MEMO_SYNC_BASE_URL: API root (optional)
    FIRESTORE_EMULATOR_HOST: host:port of a Firestore emulator (optional)
    MEMO_SYNC_MAX_PARALLEL_REQUESTS: Max parallel store requests (optional, default: 5)
    MEMO_SYNC_COLLECTIONS_DIR: Local collections directory (optional)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

from .config_schema import UnifiedConfig
from .gateways.firestore import DEFAULT_BASE_URL

logger = logging.getLogger(__name__)


@dataclass
class Config:
    project_id: str
    token: str | None = None
    database: str = "(default)"
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    max_parallel_requests: int = 5
    collections_dir: str = "collections"
    state_dir: str = ".memo_sync"
    root_collection: str = "collections"
    debug: bool = False


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid."""
    if not config.project_id.strip():
        raise ValueError(
            "Firestore project id cannot be empty. "
            "Set MEMO_SYNC_PROJECT_ID environment variable."
        )

    config.base_url = config.base_url.strip().removesuffix("/")
    parsed = urlparse(config.base_url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ValueError(
            f"Invalid base URL '{config.base_url}': "
            "must be an http:// or https:// URL with a hostname"
        )

    if not config.root_collection.strip("/"):
        raise ValueError("Root collection path cannot be empty")

    if config.token is None and parsed.scheme == "https":
        logger.warning(
            "No access token configured; requests to %s are unauthenticated",
            config.base_url,
        )


def _resolve_base_url(cli_value: str | None, fallback: str | None) -> str:
    explicit = cli_value or os.getenv("MEMO_SYNC_BASE_URL")
    if explicit:
        return explicit
    emulator = os.getenv("FIRESTORE_EMULATOR_HOST")
    if emulator:
        return f"http://{emulator}"
    return fallback or DEFAULT_BASE_URL


def load_config(
    project_id: str | None = None,
    token: str | None = None,
    base_url: str | None = None,
    collections_dir: str | None = None,
    debug: bool = False,
    unified: UnifiedConfig | None = None,
) -> Config:
    """Load configuration with unified precedence.

    The caller is responsible for calling ``load_dotenv()`` first so that
    .env values are visible through ``os.getenv()``.

    Args:
        project_id: CLI override for the Firestore project id.
        token: CLI override for the access token.
        base_url: CLI override for the API root.
        collections_dir: CLI override for the collections directory.
        debug: Enable debug logging (CLI flag).
        unified: Parsed YAML config used as fallback values.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If the project id is missing or a value is invalid.
    """
    fb = unified or UnifiedConfig()

    final_project = (
        project_id or os.getenv("MEMO_SYNC_PROJECT_ID") or fb.store.project_id
    )
    if not final_project:
        raise ValueError(
            "Firestore project id not found. Set MEMO_SYNC_PROJECT_ID "
            "environment variable, pass --project-id, or add "
            "'store.project_id' to config.yml."
        )

    max_parallel_raw = os.getenv("MEMO_SYNC_MAX_PARALLEL_REQUESTS")
    if max_parallel_raw is not None:
        try:
            max_parallel = int(max_parallel_raw)
        except ValueError:
            raise ValueError(
                f"Invalid MEMO_SYNC_MAX_PARALLEL_REQUESTS '{max_parallel_raw}': "
                "must be a number between 1 and 100"
            ) from None
        if not (1 <= max_parallel <= 100):
            raise ValueError(
                f"Invalid MEMO_SYNC_MAX_PARALLEL_REQUESTS '{max_parallel_raw}': "
                "must be a number between 1 and 100"
            )
    else:
        max_parallel = fb.store.max_parallel_requests

    config = Config(
        project_id=final_project.strip(),
        token=token or os.getenv("MEMO_SYNC_TOKEN") or fb.store.token,
        database=os.getenv("MEMO_SYNC_DATABASE") or fb.store.database,
        base_url=_resolve_base_url(base_url, fb.store.base_url),
        timeout=fb.store.timeout,
        max_parallel_requests=max_parallel,
        collections_dir=collections_dir
        or os.getenv("MEMO_SYNC_COLLECTIONS_DIR")
        or fb.sync.collections_dir,
        state_dir=fb.sync.state_dir,
        root_collection=fb.sync.root_collection.strip("/"),
        debug=debug,
    )

    validate_config(config)

    return config
