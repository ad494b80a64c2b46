"""Storage layer for SnapVCS.

This module provides the content-addressable object store, commit
persistence, references and the metadata index.
"""

from snapvcs.storage.commit import Commit
from snapvcs.storage.commit_builder import CommitBuilder, CommitBuilderError
from snapvcs.storage.metadata_db import DatabaseError, MetadataDB
from snapvcs.storage.object_store import (
    ObjectNotFoundError,
    ObjectStore,
    compute_digest,
)
from snapvcs.storage.refs import RefStore

__all__ = [
    "Commit",
    "CommitBuilder",
    "CommitBuilderError",
    "DatabaseError",
    "MetadataDB",
    "ObjectNotFoundError",
    "ObjectStore",
    "RefStore",
    "compute_digest",
]
