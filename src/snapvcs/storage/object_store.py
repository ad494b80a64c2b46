"""Content-addressable object storage for SnapVCS.

This module implements a Git-like object store using SHA-256 hashing for
content addressing. Blobs and commits share .snapvcs/objects/, sharded by
the first two characters of their digest. Objects are never deleted.
"""

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from snapvcs.constants import HASH_ALGORITHM, HASH_LENGTH, OBJECTS_DIR
from snapvcs.errors import SnapVCSError

logger = logging.getLogger(__name__)


class ObjectNotFoundError(SnapVCSError):
    """Raised when an object cannot be found in the object store."""

    def __init__(self, digest: str) -> None:
        super().__init__(f"Object not found: {digest}")
        self.digest = digest


def compute_digest(data: bytes, key: Optional[str] = None) -> str:
    """Compute the content address of ``data``.

    Blobs pass their filename as ``key`` so identical content stored under
    different names hashes differently. Commits hash their serialized
    record alone.

    Args:
        data: Binary content to hash
        key: Optional logical key mixed into the digest

    Returns:
        Hex digest (64 characters for SHA-256)
    """
    hasher = hashlib.new(HASH_ALGORITHM)
    if key is not None:
        hasher.update(key.encode("utf-8"))
        hasher.update(b"\x00")
    hasher.update(data)
    return hasher.hexdigest()


class ObjectStore:
    """Content-addressable storage for blobs and commits.

    Storage layout:
        .snapvcs/objects/<digest[:2]>/<digest[2:]>

    Attributes:
        store_dir: Path to the .snapvcs directory
        objects_dir: Path to the objects directory

    Example:
        >>> store = ObjectStore(Path(".snapvcs"))
        >>> digest = store.put(b"hello\\n", key="greeting.txt")
        >>> assert store.get(digest) == b"hello\\n"
    """

    def __init__(self, store_dir: Path) -> None:
        """Initialize the object store.

        Args:
            store_dir: Path to .snapvcs directory

        Raises:
            ValueError: If store_dir doesn't exist
        """
        self.store_dir = Path(store_dir)
        self.objects_dir = self.store_dir / OBJECTS_DIR

        if not self.store_dir.exists():
            raise ValueError(f"SnapVCS directory not found: {store_dir}")

    def put(self, data: bytes, key: Optional[str] = None) -> str:
        """Write an object to the store.

        If an object with the same digest already exists the write is
        skipped. Uses atomic write (tmp file + rename) so a reader never
        sees a partially written object.

        Args:
            data: Binary content to store
            key: Logical key (the filename for blobs, None for commits)

        Returns:
            Digest of the object

        Raises:
            OSError: If write fails (permissions, disk full, etc.)
        """
        digest = compute_digest(data, key)

        if self.exists(digest):
            return digest

        object_path = self._get_object_path(digest)
        object_path.parent.mkdir(parents=True, exist_ok=True)

        tmp_fd, tmp_path = tempfile.mkstemp(
            dir=object_path.parent,
            prefix=".tmp_",
            suffix=".obj",
        )
        try:
            with os.fdopen(tmp_fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, object_path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        logger.debug("Stored object %s (%d bytes)", digest, len(data))
        return digest

    def get(self, digest: str) -> bytes:
        """Read an object from the store.

        Args:
            digest: Digest of the object (64 hex characters)

        Returns:
            Binary content of the object

        Raises:
            ObjectNotFoundError: If the object doesn't exist
            ValueError: If digest is not a valid digest
        """
        self._validate_digest(digest)

        object_path = self._get_object_path(digest)
        if not object_path.is_file():
            raise ObjectNotFoundError(digest)

        return object_path.read_bytes()

    def exists(self, digest: str) -> bool:
        """Check if an object exists in the store."""
        try:
            self._validate_digest(digest)
        except ValueError:
            return False
        return self._get_object_path(digest).is_file()

    def _get_object_path(self, digest: str) -> Path:
        """Get the filesystem path for an object.

        Uses Git-like sharding: objects/<digest[:2]>/<digest[2:]>
        """
        return self.objects_dir / digest[:2] / digest[2:]

    def _validate_digest(self, digest: str) -> None:
        """Validate that a digest string is properly formatted.

        Raises:
            ValueError: If digest is invalid format
        """
        if not isinstance(digest, str):
            raise ValueError(f"Digest must be string, got {type(digest)}")

        if len(digest) != HASH_LENGTH:
            raise ValueError(
                f"Digest must be {HASH_LENGTH} characters, got {len(digest)}"
            )

        try:
            int(digest, 16)
        except ValueError as e:
            raise ValueError(f"Digest must be hexadecimal: {e}") from e
