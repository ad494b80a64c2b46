"""SnapVCS - a small, local, snapshot-based version control system.

SnapVCS stores every commit as a complete snapshot of the tracked files,
addressed by the SHA-256 digest of its contents, and supports branching,
resetting and three-way merging over the resulting commit graph.
"""

__version__ = "0.1.0"
__author__ = "SnapVCS Contributors"

__all__ = ["__version__", "__author__"]
