"""Filesystem gateway: encoding-aware reads of local collection files."""

from __future__ import annotations

from pathlib import Path

from charset_normalizer import from_bytes

from memo_sync.core.async_utils import run_sync
from memo_sync.errors import FilesystemError


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect encoding.
    Defaults to UTF-8 for empty files or when detection fails.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    result = from_bytes(raw).best()
    if result is None:
        encoding = "utf-8"
        content = raw.decode(encoding, errors="replace")
    else:
        encoding = result.encoding
        # ascii is a strict subset of utf-8
        if encoding == "ascii":
            encoding = "utf-8"
        content = str(result)
    return (content.lstrip("\ufeff"), encoding)


class FilesystemGateway:
    """Read local files as text."""

    async def read_file_as_string(self, path: str | Path) -> str:
        """Return the text content of *path*.

        Raises:
            FilesystemError: If the path is missing, not a file, or
                cannot be read.
        """
        resolved = Path(path)
        if not resolved.is_file():
            raise FilesystemError(
                f"File not found: {resolved}", path=str(resolved)
            )
        try:
            content, _ = await run_sync(read_file_with_encoding, resolved)
        except OSError as exc:
            raise FilesystemError(
                f"Cannot read {resolved}: {exc}",
                path=str(resolved),
                origin=exc,
            ) from exc
        return content
