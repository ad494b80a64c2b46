"""Line-level diff rendering for the ``diff`` command."""

from snapvcs.diff.diff_engine import DiffEngine, FileDiff, Hunk, diff_lines

__all__ = ["DiffEngine", "FileDiff", "Hunk", "diff_lines"]
