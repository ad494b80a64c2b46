"""Branch, HEAD and remote references.

References are the only mutable pointers in a repository:

    .snapvcs/branches/<name>   commit digest the branch points to
    .snapvcs/HEAD              a branch name, or a bare commit digest (detached)
    .snapvcs/remote/<name>     path to another repository's .snapvcs directory

Each write replaces a single file atomically.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from snapvcs.constants import BRANCHES_DIR, HEAD_FILE, REMOTE_DIR
from snapvcs.errors import (
    BranchNotFoundError,
    InvalidBranchNameError,
    RemoteExistsError,
    RemoteNotFoundError,
)

logger = logging.getLogger(__name__)


class RefStore:
    """Reads and writes branch, HEAD and remote references.

    Attributes:
        store_dir: Path to the .snapvcs directory
        branches_dir: Directory of branch files
        head_path: Path to the HEAD file
        remote_dir: Directory of remote files
    """

    def __init__(self, store_dir: Path) -> None:
        self.store_dir = Path(store_dir)
        self.branches_dir = self.store_dir / BRANCHES_DIR
        self.head_path = self.store_dir / HEAD_FILE
        self.remote_dir = self.store_dir / REMOTE_DIR

    # Branches

    def branch_exists(self, name: str) -> bool:
        if not name or ".." in name.split("/"):
            return False
        return (self.branches_dir / name).is_file()

    def read_branch(self, name: str) -> str:
        """Return the commit digest a branch points to.

        Raises:
            BranchNotFoundError: If the branch doesn't exist
        """
        if not self.branch_exists(name):
            raise BranchNotFoundError(name)
        return (self.branches_dir / name).read_text(encoding="utf-8").strip()

    def write_branch(self, name: str, digest: str) -> None:
        """Point a branch at ``digest``, creating it if needed.

        Raises:
            InvalidBranchNameError: If ``name`` is malformed, or it would nest
                a branch inside another one (``a`` and ``a/b``)
        """
        self.check_branch_name(name)
        self._write_atomic(self.branches_dir / name, digest)
        logger.debug("Branch %s -> %s", name, digest)

    def check_branch_name(self, name: str) -> None:
        parts = name.split("/")
        if (
            not name
            or "\\" in name
            or "\0" in name
            or any(part in ("", ".", "..") or part.startswith(".tmp_") for part in parts)
        ):
            raise InvalidBranchNameError(name)

        if (self.branches_dir / name).is_dir() or any(
            (self.branches_dir / "/".join(parts[:i])).is_file()
            for i in range(1, len(parts))
        ):
            raise InvalidBranchNameError(
                name, message="Branch name conflicts with an existing branch."
            )

    def delete_branch(self, name: str) -> None:
        if not self.branch_exists(name):
            raise BranchNotFoundError(name)
        path = self.branches_dir / name
        path.unlink()
        # Drop directories left empty by nested names.
        for parent in path.parents:
            if parent == self.branches_dir or any(parent.iterdir()):
                break
            parent.rmdir()
        logger.debug("Deleted branch %s", name)

    def list_branches(self) -> List[str]:
        """List branch names, including nested ones such as ``origin/master``."""
        if not self.branches_dir.exists():
            return []
        return sorted(
            path.relative_to(self.branches_dir).as_posix()
            for path in self.branches_dir.rglob("*")
            if path.is_file() and not path.name.startswith(".tmp_")
        )

    # HEAD

    def read_head(self) -> str:
        """Return the raw HEAD content (branch name or commit digest)."""
        return self.head_path.read_text(encoding="utf-8").strip()

    def current_branch(self) -> Optional[str]:
        """Return the checked-out branch, or None when HEAD is detached."""
        head = self.read_head()
        return head if self.branch_exists(head) else None

    def is_detached(self) -> bool:
        return self.current_branch() is None

    def head_digest(self) -> str:
        """Resolve HEAD to a commit digest."""
        branch = self.current_branch()
        if branch is not None:
            return self.read_branch(branch)
        return self.read_head()

    def set_head_branch(self, name: str) -> None:
        if not self.branch_exists(name):
            raise BranchNotFoundError(name)
        self._write_atomic(self.head_path, name)
        logger.debug("HEAD -> branch %s", name)

    def set_head_detached(self, digest: str) -> None:
        self._write_atomic(self.head_path, digest)
        logger.debug("HEAD -> detached %s", digest)

    def advance_head(self, digest: str) -> None:
        """Move the current branch to ``digest``, or HEAD itself when detached."""
        branch = self.current_branch()
        if branch is not None:
            self.write_branch(branch, digest)
        else:
            self.set_head_detached(digest)

    # Remotes

    def remote_exists(self, name: str) -> bool:
        return bool(name) and (self.remote_dir / name).is_file()

    def add_remote(self, name: str, path: str) -> None:
        if self.remote_exists(name):
            raise RemoteExistsError(name)
        self._write_atomic(self.remote_dir / name, path)
        logger.debug("Added remote %s at %s", name, path)

    def remove_remote(self, name: str) -> None:
        if not self.remote_exists(name):
            raise RemoteNotFoundError(name)
        (self.remote_dir / name).unlink()

    def read_remote(self, name: str) -> str:
        if not self.remote_exists(name):
            raise RemoteNotFoundError(name)
        return (self.remote_dir / name).read_text(encoding="utf-8").strip()

    def _write_atomic(self, path: Path, content: str) -> None:
        """Replace ``path`` with ``content`` via temp file + rename."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_ref_")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
