"""
Snapshot store infrastructure for labelfixer.

Persists the fetched issues and their label timelines as a JSON array:
- Atomic writes (write to temp, then rename)
- Pretty formatting for human readability
- Automatic parent directory creation

The snapshot is a full materialization, never an incremental delta.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, List, Optional, Sequence
import logging

from ..domain.event import Issue
from ..exit_codes import FetchError

logger = logging.getLogger(__name__)


class SnapshotStore:
    """
    JSON snapshot of issues with atomic writes.

    Example:
        store = SnapshotStore(Path("issues.json"))
        if store.exists():
            issues = store.load()
        else:
            store.save(fetched_issues)
    """

    def __init__(self, path: Path):
        """
        Initialize SnapshotStore.

        Args:
            path: Path to the snapshot JSON file
        """
        self.path = Path(path).expanduser()

    def exists(self) -> bool:
        """Check whether a snapshot has been saved."""
        return self.path.is_file()

    def _write_atomic(self, data: Any) -> None:
        """Write data atomically using temp file and rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp"
        )

        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.write('\n')  # Trailing newline

            # Atomic rename
            os.replace(temp_path, self.path)

        except Exception:
            # Clean up temp file on error
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def load(self) -> Optional[List[Issue]]:
        """
        Load the snapshot.

        Returns:
            Issues in snapshot order, or None if no snapshot exists

        Raises:
            FetchError: If the snapshot exists but cannot be parsed
        """
        if not self.exists():
            return None

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise FetchError(f"Cannot read snapshot {self.path}: {e}") from e

        if not isinstance(data, list):
            raise FetchError(f"Snapshot {self.path} must contain a JSON array of issues")

        issues = []
        for index, item in enumerate(data):
            try:
                issues.append(Issue.from_dict(item))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise FetchError(f"Snapshot {self.path} has a malformed issue at index {index}: {e}") from e

        logger.debug(f"Loaded {len(issues)} issues from {self.path}")
        return issues

    def save(self, issues: Sequence[Issue]) -> None:
        """Write the full snapshot, replacing any previous one."""
        self._write_atomic([issue.to_dict() for issue in issues])
        logger.info(f"Saved {len(issues)} issues to {self.path}")
