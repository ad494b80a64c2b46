"""Commit persistence.

This module writes commit objects to the object store, indexes them in the
metadata database, and reads them back. It is the only place that turns a
Commit into stored bytes.
"""

import logging
from pathlib import Path
from typing import List

from snapvcs.errors import SnapVCSError
from snapvcs.storage.commit import Commit
from snapvcs.storage.metadata_db import MetadataDB
from snapvcs.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)


class CommitBuilderError(SnapVCSError):
    """Exception raised when a stored object is not a valid commit."""


class CommitBuilder:
    """Builder for persisting and loading commit objects.

    Commits are stored in the shared object store under the digest of their
    canonical serialization, then indexed in ``metadata.db``.

    Attributes:
        store_dir: Path to .snapvcs directory
        object_store: ObjectStore instance for object storage
    """

    def __init__(self, store_dir: Path, object_store: ObjectStore) -> None:
        """Initialize CommitBuilder.

        Args:
            store_dir: Path to .snapvcs directory
            object_store: ObjectStore for commit storage
        """
        self.store_dir = Path(store_dir)
        self.object_store = object_store

    def write_commit(self, commit: Commit) -> str:
        """Persist a commit and index it.

        Args:
            commit: Commit to persist

        Returns:
            Commit digest
        """
        digest = self.object_store.put(commit.serialize())
        self._index_commit(digest, commit)
        logger.debug("Wrote commit %s (%s)", digest, commit.message)
        return digest

    def import_commit(self, data: bytes) -> str:
        """Store serialized commit bytes copied from another repository.

        The bytes are parsed first, so only valid commits enter the store,
        and the digest is recomputed locally.

        Raises:
            CommitBuilderError: If ``data`` is not a commit
        """
        try:
            commit = Commit.deserialize(data)
        except ValueError as e:
            raise CommitBuilderError(str(e)) from e
        return self.write_commit(commit)

    def read_commit(self, digest: str) -> Commit:
        """Read a commit object.

        Raises:
            ObjectNotFoundError: If no object has that digest
            CommitBuilderError: If the object is not a commit
        """
        data = self.object_store.get(digest)
        try:
            return Commit.deserialize(data)
        except ValueError as e:
            raise CommitBuilderError(f"Object {digest} is not a commit: {e}") from e

    def commit_exists(self, digest: str) -> bool:
        return self.object_store.exists(digest)

    def resolve_prefix(self, prefix: str) -> List[str]:
        """Return indexed commit digests starting with ``prefix``."""
        with MetadataDB(self.store_dir) as db:
            return db.find_commit_hashes(prefix)

    def _index_commit(self, digest: str, commit: Commit) -> None:
        with MetadataDB(self.store_dir) as db:
            db.init_schema()
            db.insert_commit(
                commit_hash=digest,
                parent_hash=commit.parent,
                merge_parent_hash=commit.merge_parent,
                timestamp=commit.timestamp,
                message=commit.message,
            )
