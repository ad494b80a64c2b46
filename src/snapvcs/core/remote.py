"""Remote synchronization between two repositories on the same filesystem.

A remote is a name bound to the path of another repository's .snapvcs
directory. Push and fetch copy commits and blobs through the other
repository's public handle, re-hashing everything on write, and move a
branch only after every object it needs is in place.
"""

import logging
from pathlib import Path

from snapvcs.constants import REMOTE_BRANCH_SEPARATOR, SNAPVCS_DIR
from snapvcs.core.graph import is_ancestor, iter_ancestors
from snapvcs.core.merge import MergeResult
from snapvcs.core.repository import Repository
from snapvcs.errors import (
    PushRejectedError,
    RemoteBranchNotFoundError,
    RemoteDirectoryNotFoundError,
    RemoteError,
)

logger = logging.getLogger(__name__)


def copy_history(source: Repository, target: Repository, tip: str) -> int:
    """Copy ``tip`` and all of its ancestors missing from ``target``.

    Blobs of a commit are copied before the commit itself.

    Returns:
        Number of commits copied
    """
    copied = 0
    for digest in iter_ancestors(source.get_commit, tip):
        if target.has_object(digest):
            continue

        commit = source.get_commit(digest)
        for filename, blob in commit.snapshot.items():
            if target.has_object(blob):
                continue
            stored = target.put_object(source.get_object_bytes(blob), key=filename)
            if stored != blob:
                raise RemoteError(f"Blob {blob} for {filename} failed verification")

        stored = target.import_commit(source.get_object_bytes(digest))
        if stored != digest:
            raise RemoteError(f"Commit {digest} failed verification")
        copied += 1

    logger.debug("Copied %d commit(s) up to %s", copied, tip)
    return copied


class RemoteManager:
    """Push, fetch and pull for a local repository.

    Attributes:
        repo: The local repository
    """

    def __init__(self, repo: Repository) -> None:
        self.repo = repo

    def add_remote(self, name: str, path: str) -> None:
        self.repo.refs.add_remote(name, path)

    def rm_remote(self, name: str) -> None:
        self.repo.refs.remove_remote(name)

    def open_remote(self, name: str) -> Repository:
        """Open the repository a remote points to.

        Raises:
            RemoteNotFoundError: If no remote has that name
            RemoteDirectoryNotFoundError: If the path is not a repository store
        """
        store_path = Path(self.repo.refs.read_remote(name))
        if not store_path.is_absolute():
            store_path = self.repo.workspace_root / store_path

        if store_path.name != SNAPVCS_DIR or not store_path.is_dir():
            raise RemoteDirectoryNotFoundError()
        return Repository(store_path.parent)

    def push(self, remote_name: str, branch: str) -> str:
        """Fast-forward a remote branch to the local HEAD.

        When the remote has ``branch`` checked out, its working tree is
        reset to the pushed commit, so a dirty remote refuses the push.
        Any other remote branch is moved without touching the working tree.

        Returns:
            The digest the remote branch now points to

        Raises:
            PushRejectedError: If the remote branch has commits HEAD lacks
            UncommittedChangesError, UntrackedFileConflictError: If the
                remote working tree cannot be reset
        """
        remote = self.open_remote(remote_name)
        head = self.repo.get_head_digest()

        remote_tip = remote.branch_digest(branch)
        if remote_tip is not None and not is_ancestor(self.repo.get_commit, remote_tip, head):
            raise PushRejectedError()

        copy_history(self.repo, remote, head)
        if branch == remote.refs.current_branch():
            remote.reset(head)
        else:
            remote.advance_ref(branch, head)
        logger.info("Pushed %s to %s/%s", head, remote_name, branch)
        return head

    def fetch(self, remote_name: str, branch: str) -> str:
        """Copy a remote branch into the local branch ``<remote>/<branch>``.

        Returns:
            The fetched tip digest

        Raises:
            RemoteBranchNotFoundError: If the remote lacks the branch
            InvalidBranchNameError: If the tracking branch name clashes with a
                local branch
        """
        remote = self.open_remote(remote_name)
        tip = remote.branch_digest(branch)
        if tip is None:
            raise RemoteBranchNotFoundError(branch)
        tracking = self.tracking_branch(remote_name, branch)
        self.repo.refs.check_branch_name(tracking)

        copy_history(remote, self.repo, tip)
        self.repo.advance_ref(tracking, tip)
        logger.info("Fetched %s/%s at %s", remote_name, branch, tip)
        return tip

    def pull(self, remote_name: str, branch: str) -> MergeResult:
        """Fetch, then merge the tracking branch into HEAD."""
        self.fetch(remote_name, branch)
        return self.repo.merge(self.tracking_branch(remote_name, branch))

    @staticmethod
    def tracking_branch(remote_name: str, branch: str) -> str:
        return f"{remote_name}{REMOTE_BRANCH_SEPARATOR}{branch}"
