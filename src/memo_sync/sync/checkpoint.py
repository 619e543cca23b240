"""Checkpoint persistence.

The checkpoint is the change oracle's marker of the last successfully
synced local state (a git commit).  It is stored as JSON in the state
directory (``.memo_sync/checkpoint.json`` by default).  The sync
use-case only reads it; the CLI advances it after a successful run.

``save()`` writes to a temp file then calls ``os.replace()`` so readers
never see partial data.
"""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

CHECKPOINT_FILE = "checkpoint.json"


class CheckpointStore:
    """Load and save the sync checkpoint.

    Args:
        state_dir: Directory holding the checkpoint file.
    """

    def __init__(self, state_dir: Path) -> None:
        self._state_dir = state_dir

    @property
    def path(self) -> Path:
        return self._state_dir / CHECKPOINT_FILE

    def load(self) -> str | None:
        """Return the stored checkpoint, or ``None`` before the first sync."""
        if not self.path.exists():
            return None
        with open(self.path, encoding="utf-8") as fh:
            return json.load(fh).get("checkpoint")

    def save(self, checkpoint: str) -> None:
        """Persist *checkpoint* atomically with the current UTC timestamp.

        Creates ``state_dir`` if it does not exist.
        """
        self._state_dir.mkdir(parents=True, exist_ok=True)
        state = {
            "version": 1,
            "checkpoint": checkpoint,
            "last_sync": datetime.now(timezone.utc).isoformat(),
        }

        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._state_dir), suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(state, fh, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            # Clean up temp file on any failure.
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
