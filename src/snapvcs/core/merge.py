"""Three-way merge of commit snapshots.

Files are resolved one at a time by comparing blob digests against the
split point. When both sides changed a file differently the result is a
conflict blob holding both versions between fixed markers; no line-level
merging is attempted.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from snapvcs.constants import CONFLICT_END_MARKER, CONFLICT_HEAD_MARKER, CONFLICT_SEPARATOR
from snapvcs.core.graph import LoadCommit, find_split_point
from snapvcs.storage import ObjectStore

logger = logging.getLogger(__name__)


@dataclass
class MergePlan:
    """Outcome of resolving two tips before anything is written to disk."""

    split: str
    current: str
    other: str
    snapshot: Dict[str, str]
    conflicts: List[str] = field(default_factory=list)


@dataclass
class MergeResult:
    """A completed merge: the new commit and any conflicted filenames."""

    commit: str
    conflicts: List[str] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


def conflict_content(head: Optional[bytes], branch: Optional[bytes]) -> bytes:
    """Build the contents of a conflicted file.

    A missing side contributes nothing between the markers.
    """
    return b"".join(
        (
            CONFLICT_HEAD_MARKER,
            head or b"",
            CONFLICT_SEPARATOR,
            branch or b"",
            CONFLICT_END_MARKER,
        )
    )


def resolve_snapshots(
    split: Mapping[str, str],
    head: Mapping[str, str],
    branch: Mapping[str, str],
    object_store: ObjectStore,
) -> Tuple[Dict[str, str], List[str]]:
    """Resolve every file across three snapshots.

    A file missing from a snapshot is deleted on that side.

    Returns:
        The resolved snapshot and the sorted list of conflicted filenames
    """
    resolved: Dict[str, str] = {}
    conflicts: List[str] = []

    for filename in sorted(set(split) | set(head) | set(branch)):
        base = split.get(filename)
        ours = head.get(filename)
        theirs = branch.get(filename)

        if ours == theirs or theirs == base:
            version = ours
        elif ours == base:
            version = theirs
        else:
            content = conflict_content(
                object_store.get(ours) if ours else None,
                object_store.get(theirs) if theirs else None,
            )
            version = object_store.put(content, key=filename)
            conflicts.append(filename)
            logger.debug("Conflict in %s", filename)

        if version is not None:
            resolved[filename] = version

    return resolved, conflicts


class MergeEngine:
    """Plans merges between two commits.

    Attributes:
        object_store: Source of blobs and sink for conflict blobs
        load_commit: Loads a commit by digest
    """

    def __init__(self, object_store: ObjectStore, load_commit: LoadCommit) -> None:
        self.object_store = object_store
        self.load_commit = load_commit

    def plan(self, current: str, other: str) -> MergePlan:
        """Find the split point and resolve the merged snapshot.

        Only conflict blobs are written; refs and the working tree are
        left alone.

        Raises:
            SelfMergeError, AlreadyAncestorError, FastForwardableError,
            NoCommonAncestorError: See :func:`find_split_point`
        """
        split = find_split_point(self.load_commit, current, other)
        snapshot, conflicts = resolve_snapshots(
            self.load_commit(split).snapshot,
            self.load_commit(current).snapshot,
            self.load_commit(other).snapshot,
            self.object_store,
        )
        logger.debug(
            "Merge plan %s + %s (split %s): %d file(s), %d conflict(s)",
            current,
            other,
            split,
            len(snapshot),
            len(conflicts),
        )
        return MergePlan(
            split=split,
            current=current,
            other=other,
            snapshot=snapshot,
            conflicts=conflicts,
        )
