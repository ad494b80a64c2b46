"""Staging area management for SnapVCS.

The staging area (index) records pending additions and removals between
commits. It is persisted as a single JSON document after every mutation
and read fresh at the start of every operation.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

from snapvcs.constants import STAGE_FILE, STAGE_VERSION
from snapvcs.core.worktree import WorkingTree
from snapvcs.errors import (
    NothingToRemoveError,
    NotARepositoryError,
    StagingError,
    WorkingFileNotFoundError,
)
from snapvcs.storage import ObjectStore

logger = logging.getLogger(__name__)


@dataclass
class Stage:
    """Pending changes: filename -> blob digest for additions and removals.

    A filename is never in both maps at once.
    """

    additions: Dict[str, str] = field(default_factory=dict)
    removals: Dict[str, str] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.additions and not self.removals

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": STAGE_VERSION,
            "additions": dict(sorted(self.additions.items())),
            "removals": dict(sorted(self.removals.items())),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Stage":
        return cls(
            additions=dict(data.get("additions", {})),
            removals=dict(data.get("removals", {})),
        )


class StagingManager:
    """Manager for the staging area (index).

    Stage format (JSON):
    {
        "version": 1,
        "additions": {"path/to/file": "sha256..."},
        "removals": {"other/file": "sha256..."}
    }

    Attributes:
        worktree: Working tree the staged files come from
        stage_path: Path to the stage file (.snapvcs/stage)
        object_store: ObjectStore for blob storage
        head_files: Callable returning HEAD's snapshot
    """

    def __init__(
        self,
        worktree: WorkingTree,
        object_store: ObjectStore,
        head_files: Callable[[], Mapping[str, str]],
    ) -> None:
        """Initialize StagingManager.

        Args:
            worktree: Working tree of the repository
            object_store: ObjectStore for blob management
            head_files: Returns the snapshot of the commit HEAD resolves to
        """
        self.worktree = worktree
        self.store_dir = worktree.store_dir
        self.stage_path = self.store_dir / STAGE_FILE
        self.object_store = object_store
        self.head_files = head_files

        if not self.store_dir.exists():
            raise NotARepositoryError(worktree.workspace_root)

    def add(self, path: "Path | str") -> str:
        """Stage the current contents of one file.

        Re-adding a file identical to HEAD's tracked version unstages it.

        Args:
            path: Path (absolute or relative to the workspace) of the file

        Returns:
            The tracked filename

        Raises:
            WorkingFileNotFoundError: If the file doesn't exist
            StagingError: If the path is outside the working tree
        """
        filename = self.worktree.normalize(path)
        if not self.worktree.exists(filename):
            raise WorkingFileNotFoundError(filename)

        stage = self.load()
        digest = self.object_store.put(self.worktree.read(filename), key=filename)

        stage.removals.pop(filename, None)
        if self.head_files().get(filename) == digest:
            stage.additions.pop(filename, None)
            logger.debug("%s matches HEAD; unstaged", filename)
        else:
            stage.additions[filename] = digest
            logger.debug("Staged %s as %s", filename, digest)

        self._save(stage)
        return filename

    def remove(self, path: "Path | str") -> str:
        """Unstage a pending addition, or stage a tracked file for removal.

        Staging a removal also deletes the working copy.

        Raises:
            NothingToRemoveError: If the file is neither staged nor tracked
        """
        filename = self.worktree.normalize(path)
        stage = self.load()
        head_files = self.head_files()

        if filename in stage.additions:
            del stage.additions[filename]
        elif filename in head_files:
            stage.removals[filename] = head_files[filename]
            self.worktree.delete(filename)
        else:
            raise NothingToRemoveError(filename)

        self._save(stage)
        return filename

    def load(self) -> Stage:
        """Load the stage from disk."""
        if not self.stage_path.exists():
            return Stage()

        try:
            with open(self.stage_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StagingError(f"Corrupted stage file: {e}") from e

        if data.get("version") != STAGE_VERSION:
            raise StagingError(f"Unsupported stage version: {data.get('version')}")

        return Stage.from_dict(data)

    def clear(self) -> None:
        """Reset the stage to empty."""
        self._save(Stage())

    def is_empty(self) -> bool:
        return self.load().is_empty()

    def _save(self, stage: Stage) -> None:
        """Save stage to disk via temp file + rename."""
        fd, tmp_path = tempfile.mkstemp(
            dir=self.store_dir,
            prefix=".tmp_stage_",
            suffix=".json",
        )

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(stage.to_dict(), f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())

            os.replace(tmp_path, self.stage_path)

        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
