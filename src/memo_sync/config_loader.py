"""
Locate and read memo-sync YAML config files.

Config files are optional.  Discovery order, highest precedence first:

1. ``MEMO_SYNC_CONFIG`` (explicit path; must exist when set)
2. ``.memo_sync/config.yml`` or ``.memo_sync/config.yaml`` in the CWD
3. ``~/.config/memo_sync/config.yml``

Files are merged section by section: a project file that only sets
``store.project_id`` keeps the ``store.token`` of the global file.  Only
the ``store``, ``sync`` and ``logging`` sections are accepted.  String
values may reference the environment as ``${VAR}`` or
``${VAR:-default}``, which keeps tokens out of committed files.

Usage:
    from memo_sync.config_loader import load_unified_config

    unified = load_unified_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from .config_schema import UnifiedConfig, build_config

logger = logging.getLogger(__name__)

SECTIONS = tuple(UnifiedConfig.model_fields)

_ENV_REF = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def expand_env(value: Any) -> Any:
    """Resolve ``${VAR}`` references in every string of *value*.

    An unset or empty variable becomes its ``:-`` default, or ``""``.
    """
    if isinstance(value, str):
        return _ENV_REF.sub(
            lambda m: os.environ.get(m.group(1)) or (m.group(2) or ""),
            value,
        )
    if isinstance(value, dict):
        return {k: expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env(v) for v in value]
    return value


def discover_config_files() -> list[Path]:
    """Existing config files, highest precedence first.

    Raises:
        ValueError: If ``MEMO_SYNC_CONFIG`` names a missing file.
    """
    found: list[Path] = []

    explicit = os.environ.get("MEMO_SYNC_CONFIG")
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ValueError(f"MEMO_SYNC_CONFIG points to a missing file: {path}")
        found.append(path)

    project_dir = Path.cwd() / ".memo_sync"
    for name in ("config.yml", "config.yaml"):
        if (project_dir / name).is_file():
            found.append(project_dir / name)
            break

    global_file = Path.home() / ".config" / "memo_sync" / "config.yml"
    if global_file.is_file():
        found.append(global_file)

    return found


def read_config_file(path: Path) -> dict[str, dict[str, Any]]:
    """Parse one config file into ``{section: settings}``.

    Raises:
        ValueError: If the file is not valid YAML, its root is not a
            mapping, or it holds an unknown or non-mapping section.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"{path}: expected a mapping of sections, got {type(data).__name__}"
        )

    unknown = sorted(set(data) - set(SECTIONS))
    if unknown:
        raise ValueError(
            f"{path}: unknown section(s) {', '.join(map(str, unknown))}; "
            f"expected {', '.join(SECTIONS)}"
        )
    for section, settings in data.items():
        if settings is not None and not isinstance(settings, dict):
            raise ValueError(f"{path}: section '{section}' must be a mapping")
    return {section: settings or {} for section, settings in data.items()}


def merge_sections(
    layers: list[dict[str, dict[str, Any]]],
) -> dict[str, dict[str, Any]]:
    """Merge parsed files given lowest precedence first."""
    merged: dict[str, dict[str, Any]] = {}
    for layer in layers:
        for section, settings in layer.items():
            merged.setdefault(section, {}).update(settings)
    return merged


def load_unified_config(paths: list[Path] | None = None) -> UnifiedConfig:
    """Load, merge and validate the config files.

    Args:
        paths: Files in precedence order (highest first); discovered
            when omitted.

    Returns:
        The validated config; all defaults when no file exists.

    Raises:
        ValueError: On unreadable, malformed or invalid config.
    """
    if paths is None:
        paths = discover_config_files()
    if not paths:
        logger.debug("No config files found; using defaults")
        return UnifiedConfig()

    layers = []
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        layers.append(read_config_file(path))

    return build_config(expand_env(merge_sections(layers)))
