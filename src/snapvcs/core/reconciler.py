"""Working-tree reconciliation.

Materializes a commit's snapshot into the working directory without ever
discarding an uncommitted edit or overwriting a file the repository does
not know about. Every check runs before the first file is touched.
"""

import logging
from pathlib import PurePosixPath
from typing import Callable, Mapping

from snapvcs.core.worktree import WorkingTree
from snapvcs.errors import (
    FileNotInCommitError,
    UncommittedChangesError,
    UntrackedFileConflictError,
)
from snapvcs.storage import ObjectStore

logger = logging.getLogger(__name__)


class WorkingTreeReconciler:
    """Restores snapshots into a working tree.

    Attributes:
        worktree: Target working tree
        object_store: Source of blob contents
        clear_stage: Called after every successful restore
    """

    def __init__(
        self,
        worktree: WorkingTree,
        object_store: ObjectStore,
        clear_stage: Callable[[], None],
    ) -> None:
        self.worktree = worktree
        self.object_store = object_store
        self.clear_stage = clear_stage

    def restore(
        self,
        target_snapshot: Mapping[str, str],
        current_snapshot: Mapping[str, str],
    ) -> None:
        """Replace the files of ``current_snapshot`` with ``target_snapshot``.

        Args:
            target_snapshot: filename -> blob digest to materialize
            current_snapshot: filename -> blob digest currently checked out

        Raises:
            UncommittedChangesError: A tracked file is missing or modified
            UntrackedFileConflictError: An untracked file would be overwritten
        """
        self.check_clean(current_snapshot)

        for filename in sorted(target_snapshot):
            if filename not in current_snapshot and self._is_occupied(
                filename, current_snapshot
            ):
                raise UntrackedFileConflictError(filename)

        # Read every blob before deleting anything.
        contents = {
            filename: self.object_store.get(digest)
            for filename, digest in target_snapshot.items()
        }

        for filename in current_snapshot:
            self.worktree.delete(filename)
        for filename, data in sorted(contents.items()):
            self.worktree.write(filename, data)

        self.clear_stage()
        logger.debug(
            "Restored %d file(s), removed %d",
            len(target_snapshot),
            len(set(current_snapshot) - set(target_snapshot)),
        )

    def check_clean(self, current_snapshot: Mapping[str, str]) -> None:
        """Fail unless every tracked file matches its tracked digest."""
        for filename, digest in sorted(current_snapshot.items()):
            if self.worktree.digest(filename) != digest:
                raise UncommittedChangesError(filename)

    def _is_occupied(self, filename: str, current_snapshot: Mapping[str, str]) -> bool:
        """True when something untracked sits at ``filename`` or one of its parents."""
        path = self.worktree.path_of(filename)
        if path.exists() or path.is_symlink():
            return True
        for parent in PurePosixPath(filename).parents:
            name = parent.as_posix()
            if name == "." or name in current_snapshot:
                continue
            candidate = self.worktree.path_of(name)
            if candidate.exists() and not candidate.is_dir():
                return True
        return False

    def checkout_file(self, snapshot: Mapping[str, str], filename: str) -> None:
        """Overwrite one working file with its version in ``snapshot``.

        Bypasses all safety checks.

        Raises:
            FileNotInCommitError: If ``snapshot`` doesn't track the file
        """
        if filename not in snapshot:
            raise FileNotInCommitError(filename)
        self.worktree.write(filename, self.object_store.get(snapshot[filename]))
        logger.debug("Checked out %s at %s", filename, snapshot[filename])
