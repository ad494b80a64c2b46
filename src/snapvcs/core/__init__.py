"""Core engine layer for SnapVCS.

This module provides the version control operations: staging, commit
creation, working-tree restores, merging and remote synchronization.
"""

from snapvcs.core.merge import MergeEngine, MergeResult
from snapvcs.core.reconciler import WorkingTreeReconciler
from snapvcs.core.remote import RemoteManager
from snapvcs.core.repository import Repository, Status
from snapvcs.core.staging import Stage, StagingManager

__all__ = [
    "MergeEngine",
    "MergeResult",
    "RemoteManager",
    "Repository",
    "Stage",
    "StagingManager",
    "Status",
    "WorkingTreeReconciler",
]
