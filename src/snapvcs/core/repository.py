"""The repository handle.

A Repository is an explicit handle on one working tree and its .snapvcs
store. Every operation goes through a handle, so several repositories can
be open in the same process (remote sync relies on this).

Write ordering: blobs and commits are written first, the stage is cleared,
and refs are moved last. An interrupted operation therefore never leaves a
ref pointing at a missing commit.
"""

import logging
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Iterator, List, Mapping, Optional, Tuple

from snapvcs.constants import (
    BRANCHES_DIR,
    DEFAULT_BRANCH,
    HASH_LENGTH,
    HEX_DIGITS,
    OBJECTS_DIR,
    REMOTE_DIR,
    SHORT_HASH_LENGTH,
)
from snapvcs.core.graph import is_ancestor
from snapvcs.core.merge import MergeEngine, MergeResult
from snapvcs.core.reconciler import WorkingTreeReconciler
from snapvcs.core.staging import Stage, StagingManager
from snapvcs.core.worktree import WorkingTree
from snapvcs.diff import DiffEngine, FileDiff
from snapvcs.errors import (
    BranchExistsError,
    BranchNotFoundError,
    CommitNotFoundError,
    CurrentBranchError,
    DirtyStageError,
    EmptyMessageError,
    MergeError,
    NotARepositoryError,
    NothingStagedError,
    RepositoryExistsError,
)
from snapvcs.storage import (
    Commit,
    CommitBuilder,
    CommitBuilderError,
    MetadataDB,
    ObjectNotFoundError,
    ObjectStore,
    RefStore,
)
from snapvcs.storage.commit import now_timestamp

logger = logging.getLogger(__name__)


@dataclass
class Status:
    """Snapshot of branch, stage and working-tree state."""

    head: str
    current_branch: Optional[str]
    branches: List[str] = field(default_factory=list)
    staged: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    modified: List[Tuple[str, str]] = field(default_factory=list)
    untracked: List[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not (self.staged or self.removed or self.modified or self.untracked)


class Repository:
    """Handle on a SnapVCS working tree and its store.

    Attributes:
        workspace_root: Root directory of the working tree
        store_dir: The .snapvcs directory
        worktree: Working-tree accessor
        refs: Branch, HEAD and remote references
    """

    def __init__(self, workspace_root: Path) -> None:
        self.worktree = WorkingTree(workspace_root)
        self.workspace_root = self.worktree.workspace_root
        self.store_dir = self.worktree.store_dir
        self.refs = RefStore(self.store_dir)

    @classmethod
    def open(cls, workspace_root: Path) -> "Repository":
        """Open an existing repository.

        Raises:
            NotARepositoryError: If no .snapvcs directory exists
        """
        repo = cls(workspace_root)
        if not repo.exists():
            raise NotARepositoryError(repo.workspace_root)
        return repo

    def exists(self) -> bool:
        return self.store_dir.is_dir()

    # Components

    @cached_property
    def object_store(self) -> ObjectStore:
        return ObjectStore(self.store_dir)

    @cached_property
    def commits(self) -> CommitBuilder:
        return CommitBuilder(self.store_dir, self.object_store)

    @cached_property
    def staging(self) -> StagingManager:
        return StagingManager(self.worktree, self.object_store, self.head_files)

    @cached_property
    def reconciler(self) -> WorkingTreeReconciler:
        return WorkingTreeReconciler(self.worktree, self.object_store, self.staging.clear)

    @cached_property
    def merge_engine(self) -> MergeEngine:
        return MergeEngine(self.object_store, self.get_commit)

    # Initialization

    def init(self, default_branch: str = DEFAULT_BRANCH) -> str:
        """Create the store, the root commit and the default branch.

        Returns:
            Digest of the root commit

        Raises:
            RepositoryExistsError: If a repository already exists here
        """
        if self.exists():
            raise RepositoryExistsError()

        self.store_dir.mkdir(parents=True)
        for name in (OBJECTS_DIR, BRANCHES_DIR, REMOTE_DIR):
            (self.store_dir / name).mkdir()

        with MetadataDB(self.store_dir) as db:
            db.init_schema()

        self.staging.clear()
        digest = self.commits.write_commit(Commit.initial())
        self.refs.write_branch(default_branch, digest)
        self.refs.set_head_branch(default_branch)

        logger.info("Initialized repository in %s", self.store_dir)
        return digest

    # Collaborator API

    def get_head_digest(self) -> str:
        return self.refs.head_digest()

    def get_commit(self, digest: str) -> Commit:
        return self.commits.read_commit(digest)

    def get_object_bytes(self, digest: str) -> bytes:
        return self.object_store.get(digest)

    def put_object(self, data: bytes, key: Optional[str] = None) -> str:
        return self.object_store.put(data, key=key)

    def has_object(self, digest: str) -> bool:
        return self.object_store.exists(digest)

    def import_commit(self, data: bytes) -> str:
        return self.commits.import_commit(data)

    def branch_digest(self, name: str) -> Optional[str]:
        """Commit digest of a branch, or None if it doesn't exist."""
        if not self.refs.branch_exists(name):
            return None
        return self.refs.read_branch(name)

    def advance_ref(self, name: str, digest: str) -> None:
        """Point a branch at ``digest``, creating it if needed."""
        self.refs.write_branch(name, digest)

    # Lookups

    def head_commit(self) -> Commit:
        return self.get_commit(self.get_head_digest())

    def head_files(self) -> Mapping[str, str]:
        return self.head_commit().snapshot

    def resolve_commit(self, commit_id: str) -> str:
        """Resolve a full or abbreviated commit id to a full digest.

        Raises:
            CommitNotFoundError: If nothing matches, the match is ambiguous,
                or the object is not a commit
        """
        commit_id = commit_id.strip().lower()
        if not commit_id or any(c not in HEX_DIGITS for c in commit_id):
            raise CommitNotFoundError(commit_id)

        if len(commit_id) == HASH_LENGTH:
            candidates = [commit_id]
        else:
            candidates = self.commits.resolve_prefix(commit_id)

        if len(candidates) > 1:
            raise CommitNotFoundError(commit_id, message="Commit id is ambiguous.")
        if not candidates:
            raise CommitNotFoundError(commit_id)

        try:
            self.get_commit(candidates[0])
        except (ObjectNotFoundError, CommitBuilderError, ValueError):
            raise CommitNotFoundError(commit_id)
        return candidates[0]

    # Staging

    def add(self, path: "Path | str") -> str:
        return self.staging.add(path)

    def rm(self, path: "Path | str") -> str:
        return self.staging.remove(path)

    # Commits

    def commit(self, message: str) -> str:
        """Snapshot the staged changes as a new commit on HEAD.

        Returns:
            Digest of the new commit

        Raises:
            EmptyMessageError: If ``message`` is blank
            NothingStagedError: If the stage is empty
        """
        if not message or not message.strip():
            raise EmptyMessageError()

        stage = self.staging.load()
        if stage.is_empty():
            raise NothingStagedError()

        parent = self.get_head_digest()
        snapshot = self._apply_stage(self.get_commit(parent).files(), stage)

        commit = Commit(
            message=message,
            timestamp=now_timestamp(),
            parent=parent,
            snapshot=snapshot,
        )
        digest = self.commits.write_commit(commit)
        self.staging.clear()
        self.refs.advance_head(digest)

        logger.info("Committed %s: %s", digest[:SHORT_HASH_LENGTH], message)
        return digest

    def _apply_stage(self, files: dict, stage: Stage) -> dict:
        files.update(stage.additions)
        for filename in stage.removals:
            files.pop(filename, None)
        # Files deleted outside of rm drop out of the snapshot too.
        return {
            filename: digest
            for filename, digest in files.items()
            if self.worktree.exists(filename)
        }

    # History

    def log(self) -> Iterator[Tuple[str, Commit]]:
        """Yield (digest, commit) along first parents from HEAD to the root."""
        digest: Optional[str] = self.get_head_digest()
        while digest is not None:
            commit = self.get_commit(digest)
            yield digest, commit
            digest = commit.parent

    def global_log(self) -> List[Tuple[str, Commit]]:
        """Every commit ever stored in this repository, oldest first."""
        with MetadataDB(self.store_dir) as db:
            rows = db.get_all_commits()
        return [(row["commit_hash"], self.get_commit(row["commit_hash"])) for row in rows]

    def find(self, message: str) -> List[str]:
        """Digests of commits whose message contains ``message``.

        Raises:
            CommitNotFoundError: If no commit matches
        """
        with MetadataDB(self.store_dir) as db:
            digests = db.find_by_message(message)
        if not digests:
            raise CommitNotFoundError(message, message="Found no commit with that message.")
        return digests

    def status(self) -> Status:
        stage = self.staging.load()
        head_files = self.head_files()

        modified: List[Tuple[str, str]] = []
        for filename, digest in stage.additions.items():
            self._collect_modification(filename, digest, modified)
        for filename, digest in head_files.items():
            if filename not in stage.additions and filename not in stage.removals:
                self._collect_modification(filename, digest, modified)

        tracked = {
            name for name in head_files if name not in stage.removals
        } | set(stage.additions)

        return Status(
            head=self.get_head_digest(),
            current_branch=self.refs.current_branch(),
            branches=self.refs.list_branches(),
            staged=sorted(stage.additions),
            removed=sorted(stage.removals),
            modified=sorted(modified),
            untracked=self.worktree.untracked_files(tracked),
        )

    def _collect_modification(
        self, filename: str, digest: str, modified: List[Tuple[str, str]]
    ) -> None:
        working = self.worktree.digest(filename)
        if working is None:
            modified.append((filename, "deleted"))
        elif working != digest:
            modified.append((filename, "modified"))

    # Branches

    def branch(self, name: str) -> str:
        """Create a branch at HEAD.

        Raises:
            BranchExistsError: If the branch already exists
        """
        if self.refs.branch_exists(name):
            raise BranchExistsError(name)
        digest = self.get_head_digest()
        self.refs.write_branch(name, digest)
        return digest

    def rm_branch(self, name: str) -> None:
        if name == self.refs.current_branch():
            raise CurrentBranchError("Cannot remove the current branch.")
        self.refs.delete_branch(name)

    # Working-tree restores

    def checkout_branch(self, name: str) -> str:
        """Restore a branch's tip and make it the current branch.

        Raises:
            BranchNotFoundError: If the branch doesn't exist
            CurrentBranchError: If it is already checked out
            UncommittedChangesError, UntrackedFileConflictError: See restore
        """
        if not self.refs.branch_exists(name):
            raise BranchNotFoundError(name, message="No such branch exists.")
        if name == self.refs.current_branch():
            raise CurrentBranchError("No need to checkout the current branch.")

        digest = self.refs.read_branch(name)
        self.reconciler.restore(self.get_commit(digest).snapshot, self.head_files())
        self.refs.set_head_branch(name)
        return digest

    def checkout_commit(self, commit_id: str) -> str:
        """Restore a commit and detach HEAD at it."""
        digest = self.resolve_commit(commit_id)
        self.reconciler.restore(self.get_commit(digest).snapshot, self.head_files())
        self.refs.set_head_detached(digest)
        return digest

    def checkout_file(self, filename: str, commit_id: Optional[str] = None) -> str:
        """Overwrite one working file with its version in a commit (HEAD by default)."""
        digest = self.resolve_commit(commit_id) if commit_id else self.get_head_digest()
        filename = self.worktree.normalize(filename)
        self.reconciler.checkout_file(self.get_commit(digest).snapshot, filename)
        return filename

    def reset(self, commit_id: str) -> str:
        """Restore a commit and move the current branch (or detached HEAD) to it."""
        digest = self.resolve_commit(commit_id)
        self.reconciler.restore(self.get_commit(digest).snapshot, self.head_files())
        self.refs.advance_head(digest)
        return digest

    # Merging

    def merge(self, branch_name: str) -> MergeResult:
        """Merge a branch into HEAD with a new merge commit.

        Conflicts do not stop the merge; they are listed in the result.

        Raises:
            DirtyStageError: If the stage has pending changes
            BranchNotFoundError: If the branch doesn't exist
            SelfMergeError, AlreadyAncestorError, FastForwardableError,
            NoCommonAncestorError: Ancestor-search outcomes
            UncommittedChangesError, UntrackedFileConflictError: See restore
        """
        if not self.staging.is_empty():
            raise DirtyStageError()
        if not self.refs.branch_exists(branch_name):
            raise BranchNotFoundError(branch_name)

        current = self.get_head_digest()
        other = self.refs.read_branch(branch_name)
        plan = self.merge_engine.plan(current, other)

        self.reconciler.restore(plan.snapshot, self.get_commit(current).snapshot)

        into = self.refs.current_branch() or current[:SHORT_HASH_LENGTH]
        commit = Commit(
            message=f"Merged {branch_name} into {into}.",
            timestamp=now_timestamp(),
            parent=current,
            merge_parent=other,
            snapshot=plan.snapshot,
        )
        digest = self.commits.write_commit(commit)
        self.staging.clear()
        self.refs.advance_head(digest)

        if plan.conflicts:
            logger.info("Merge of %s left %d conflict(s)", branch_name, len(plan.conflicts))
        return MergeResult(commit=digest, conflicts=plan.conflicts)

    def fast_forward(self, branch_name: str) -> str:
        """Advance HEAD to a branch whose tip descends from it.

        Raises:
            BranchNotFoundError: If the branch doesn't exist
            MergeError: If HEAD is not an ancestor of the branch tip
        """
        if not self.refs.branch_exists(branch_name):
            raise BranchNotFoundError(branch_name)
        current = self.get_head_digest()
        target = self.refs.read_branch(branch_name)
        if not is_ancestor(self.get_commit, current, target):
            raise MergeError("Current branch cannot be fast-forwarded.")

        self.reconciler.restore(self.get_commit(target).snapshot, self.head_files())
        self.refs.advance_head(target)
        return target

    # Inspection

    def diff(self, rev1: Optional[str] = None, rev2: Optional[str] = None) -> Iterator[FileDiff]:
        """Lazily yield per-file diffs.

        With no revisions, compares HEAD against the working tree; with one,
        that commit against the working tree; with two, commit against commit.
        """
        engine = DiffEngine()
        old_digest = self.resolve_commit(rev1) if rev1 else self.get_head_digest()
        old_files = self.get_commit(old_digest).snapshot

        if rev2 is None:
            stage = self.staging.load()
            names = sorted(set(old_files) | set(stage.additions))
            new_files = {name: self.worktree.digest(name) for name in names}
        else:
            new_files = dict(self.get_commit(self.resolve_commit(rev2)).snapshot)
            names = sorted(set(old_files) | set(new_files))

        for name in names:
            old = old_files.get(name)
            new = new_files.get(name)
            if old == new:
                continue
            file_diff = engine.diff_files(
                name,
                self.object_store.get(old) if old else None,
                self._read_new_side(name, new, rev2),
            )
            if file_diff is not None:
                yield file_diff

    def _read_new_side(self, name: str, digest: Optional[str], rev2: Optional[str]) -> Optional[bytes]:
        if digest is None:
            return None
        if rev2 is None:
            return self.worktree.read(name)
        return self.object_store.get(digest)
