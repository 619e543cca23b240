"""Change oracle backed by git.

Collection files live directly under the collections directory as
``<collection_id>.json``.  A checkpoint is a commit-ish; the oracle
reports which collection files changed or were removed between the
checkpoint and ``HEAD``.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
from pathlib import Path, PurePosixPath
from typing import Protocol

from memo_sync.core.async_utils import run_sync
from memo_sync.errors import FilesystemError

logger = logging.getLogger(__name__)

COLLECTION_SUFFIX = ".json"


class ChangeOracle(Protocol):
    """Reports which collections changed locally since a checkpoint."""

    async def changed_collection_ids(self, since: str | None) -> set[str]:
        """Ids of collections added or modified since *since*.

        ``None`` means no checkpoint: every known collection is reported.
        """
        ...

    async def removed_collection_ids(self, since: str | None) -> set[str]:
        """Ids of collections whose source was removed since *since*."""
        ...

    async def head(self) -> str:
        """Checkpoint describing the current local state."""
        ...


class GitChangeOracle:
    """``ChangeOracle`` that asks git about the collections directory.

    Args:
        collections_dir: Directory holding the collection files; must be
            inside a git work tree.
        git: git executable.
        timeout: Seconds to wait for each git invocation.
    """

    def __init__(
        self,
        collections_dir: Path,
        git: str = "git",
        timeout: float = 30.0,
    ) -> None:
        self.collections_dir = collections_dir
        self.git = git
        self.timeout = timeout
        self._changes_cache: dict[
            tuple[str | None, str], asyncio.Future[tuple[set[str], set[str]]]
        ] = {}

    async def changed_collection_ids(self, since: str | None) -> set[str]:
        changed, _ = await self._changes_since(since)
        return set(changed)

    async def removed_collection_ids(self, since: str | None) -> set[str]:
        if since is None:
            return set()
        _, removed = await self._changes_since(since)
        return set(removed)

    async def head(self) -> str:
        return (await run_sync(self._git, "rev-parse", "HEAD")).strip()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _changes_since(
        self, since: str | None
    ) -> tuple[set[str], set[str]]:
        """Shared ``(changed, removed)`` result for *since* at the current head.

        Both id queries of one run resolve to a single git call, even
        when they are awaited concurrently.
        """
        head = await self.head()
        key = (since, head)
        task = self._changes_cache.get(key)
        if task is None:
            task = asyncio.ensure_future(run_sync(self._changes, since, head))
            self._changes_cache[key] = task
        try:
            return await task
        except FilesystemError:
            self._changes_cache.pop(key, None)
            raise

    def _changes(
        self, since: str | None, head: str
    ) -> tuple[set[str], set[str]]:
        """Return ``(changed_ids, removed_ids)`` between *since* and *head*."""
        if since is None:
            output = self._git("ls-files", "-z", "--", ".")
            ids = {
                cid
                for path in output.split("\0")
                if (cid := _collection_id(path))
            }
            logger.debug("No checkpoint: %d tracked collection(s)", len(ids))
            return ids, set()

        output = self._git(
            "diff",
            "--name-status",
            "--no-renames",
            "--relative",
            "-z",
            since,
            head,
            "--",
            ".",
        )
        changed: set[str] = set()
        removed: set[str] = set()
        fields = [f for f in output.split("\0") if f]
        for status, path in zip(fields[::2], fields[1::2]):
            cid = _collection_id(path)
            if not cid:
                continue
            if status.startswith("D"):
                removed.add(cid)
            else:
                changed.add(cid)

        # A file deleted and re-added in the range is a change, not a removal.
        removed -= changed
        logger.debug(
            "Since %s: %d changed, %d removed collection(s)",
            since,
            len(changed),
            len(removed),
        )
        return changed, removed

    def _git(self, *args: str) -> str:
        cmd = [self.git, *args]
        try:
            result = subprocess.run(
                cmd,
                cwd=str(self.collections_dir),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        except subprocess.CalledProcessError as exc:
            raise FilesystemError(
                f"git {' '.join(args)} failed: {exc.stderr.strip()}",
                path=str(self.collections_dir),
                origin=exc,
            ) from exc
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise FilesystemError(
                f"Cannot run git in {self.collections_dir}: {exc}",
                path=str(self.collections_dir),
                origin=exc,
            ) from exc
        return result.stdout


def _collection_id(path: str) -> str | None:
    """Map a path relative to the collections dir to a collection id."""
    p = PurePosixPath(path)
    if len(p.parts) != 1 or p.suffix != COLLECTION_SUFFIX:
        return None
    return p.stem
