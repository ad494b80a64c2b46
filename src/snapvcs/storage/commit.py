"""Commit objects and their serialization.

A commit is an immutable record of a complete snapshot of the tracked
files: a mapping of filename to blob digest, plus the commit message,
timestamp and parent links. Commits are serialized as canonical JSON
(sorted keys, no whitespace), and the commit digest is the digest of
exactly those bytes.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from snapvcs.constants import INITIAL_COMMIT_MESSAGE, INITIAL_COMMIT_TIMESTAMP


def now_timestamp() -> str:
    """Return the current time as an ISO 8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Commit:
    """An immutable node of the commit graph.

    ``snapshot`` is copied on construction and exposed as a read-only
    mapping, so a commit never shares mutable state with its caller.
    Use :meth:`files` to get a private, mutable copy.
    """

    message: str
    timestamp: str
    parent: Optional[str] = None
    merge_parent: Optional[str] = None
    snapshot: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.merge_parent is not None and self.merge_parent == self.parent:
            raise ValueError("merge_parent must differ from parent")
        frozen = MappingProxyType(dict(sorted(self.snapshot.items())))
        object.__setattr__(self, "snapshot", frozen)

    @classmethod
    def initial(cls) -> "Commit":
        """Build the root commit shared by every repository."""
        return cls(message=INITIAL_COMMIT_MESSAGE, timestamp=INITIAL_COMMIT_TIMESTAMP)

    @property
    def is_merge(self) -> bool:
        return self.merge_parent is not None

    def files(self) -> Dict[str, str]:
        """Return a mutable copy of the snapshot."""
        return dict(self.snapshot)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "timestamp": self.timestamp,
            "parent": self.parent,
            "merge_parent": self.merge_parent,
            "snapshot": dict(self.snapshot),
        }

    def serialize(self) -> bytes:
        """Serialize to canonical JSON bytes."""
        canonical_json = json.dumps(
            self.to_dict(),
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        )
        return canonical_json.encode("utf-8")

    @classmethod
    def deserialize(cls, data: bytes) -> "Commit":
        """Parse a commit from its serialized form.

        Raises:
            ValueError: If ``data`` is not a serialized commit
        """
        try:
            obj = json.loads(data.decode("utf-8"))
            return cls(
                message=obj["message"],
                timestamp=obj["timestamp"],
                parent=obj.get("parent"),
                merge_parent=obj.get("merge_parent"),
                snapshot=obj.get("snapshot", {}),
            )
        except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError) as e:
            raise ValueError(f"Not a commit object: {e}") from e

    def parents(self) -> tuple:
        """Parent digests in traversal order (parent first)."""
        return tuple(p for p in (self.parent, self.merge_parent) if p is not None)
