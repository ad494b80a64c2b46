"""Commit graph traversal.

The commit graph is a DAG: every commit has at most a ``parent`` and a
``merge_parent`` edge. All walks here are breadth-first with a visited set,
so shared history reached through both edges is visited once.
"""

from collections import deque
from typing import Callable, Dict, Iterator, Optional

from snapvcs.errors import (
    AlreadyAncestorError,
    FastForwardableError,
    NoCommonAncestorError,
    SelfMergeError,
)
from snapvcs.storage.commit import Commit

LoadCommit = Callable[[str], Commit]


def iter_ancestors(load_commit: LoadCommit, start: str) -> Iterator[str]:
    """Yield ``start`` and all of its ancestors in breadth-first order."""
    seen = {start}
    queue = deque([start])
    while queue:
        digest = queue.popleft()
        yield digest
        for parent in load_commit(digest).parents():
            if parent not in seen:
                seen.add(parent)
                queue.append(parent)


def ancestor_distances(load_commit: LoadCommit, start: str) -> Dict[str, int]:
    """Map every ancestor of ``start`` (itself included) to its BFS distance."""
    distances = {start: 0}
    queue = deque([start])
    while queue:
        digest = queue.popleft()
        for parent in load_commit(digest).parents():
            if parent not in distances:
                distances[parent] = distances[digest] + 1
                queue.append(parent)
    return distances


def is_ancestor(load_commit: LoadCommit, ancestor: str, descendant: str) -> bool:
    """True when ``ancestor`` is ``descendant`` or reachable from it."""
    return any(digest == ancestor for digest in iter_ancestors(load_commit, descendant))


def find_split_point(load_commit: LoadCommit, current: str, other: str) -> str:
    """Find the nearest common ancestor of two commits.

    Among all common ancestors, the one closest to ``current`` wins; ties
    go to the one reached first when walking back from ``other``.

    Args:
        load_commit: Loads a commit by digest
        current: Tip of the branch being merged into
        other: Tip of the branch being merged

    Returns:
        Digest of the split point

    Raises:
        SelfMergeError: If both tips are the same commit
        AlreadyAncestorError: If ``other`` is an ancestor of ``current``
        FastForwardableError: If ``current`` is an ancestor of ``other``
        NoCommonAncestorError: If the histories are unrelated
    """
    if current == other:
        raise SelfMergeError()

    current_distances = ancestor_distances(load_commit, current)
    if other in current_distances:
        raise AlreadyAncestorError()

    split: Optional[str] = None
    split_distance = 0
    for digest in iter_ancestors(load_commit, other):
        if digest == current:
            raise FastForwardableError(other)
        distance = current_distances.get(digest)
        if distance is not None and (split is None or distance < split_distance):
            split, split_distance = digest, distance

    if split is None:
        raise NoCommonAncestorError()
    return split
