"""Working-tree access shared by staging, restore and status.

Tracked filenames are POSIX paths relative to the workspace root. Nothing
under .snapvcs/ is ever part of the working tree.
"""

import fnmatch
import logging
from pathlib import Path
from typing import Iterator, List, Optional

from snapvcs.constants import IGNORE_FILE, SNAPVCS_DIR
from snapvcs.errors import StagingError
from snapvcs.storage.object_store import compute_digest

logger = logging.getLogger(__name__)


class WorkingTree:
    """Filesystem view of a repository's working directory.

    Attributes:
        workspace_root: Root directory of the workspace
        store_dir: The .snapvcs directory inside it
    """

    def __init__(self, workspace_root: Path) -> None:
        self.workspace_root = Path(workspace_root).resolve()
        self.store_dir = self.workspace_root / SNAPVCS_DIR

    def path_of(self, filename: str) -> Path:
        return self.workspace_root / filename

    def exists(self, filename: str) -> bool:
        return self.path_of(filename).is_file()

    def read(self, filename: str) -> bytes:
        return self.path_of(filename).read_bytes()

    def digest(self, filename: str) -> Optional[str]:
        """Blob digest of the working copy, or None when it doesn't exist."""
        if not self.exists(filename):
            return None
        return compute_digest(self.read(filename), key=filename)

    def write(self, filename: str, data: bytes) -> None:
        path = self.path_of(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def delete(self, filename: str) -> None:
        """Delete a working file if present; never touches .snapvcs/."""
        path = self.path_of(filename)
        if self._is_store_path(path):
            raise StagingError(f"Refusing to delete repository file: {filename}")
        if path.is_file():
            path.unlink()
            logger.debug("Deleted working file %s", filename)

    def normalize(self, path: "Path | str") -> str:
        """Turn a user-supplied path into a tracked filename.

        Raises:
            StagingError: If the path is outside the workspace or inside .snapvcs/
        """
        path = Path(path)
        if path.is_absolute():
            abs_path = path.resolve()
        else:
            abs_path = (self.workspace_root / path).resolve()

        try:
            rel_path = abs_path.relative_to(self.workspace_root)
        except ValueError:
            raise StagingError(
                f"Path {path} is outside workspace root {self.workspace_root}"
            )

        if self._is_store_path(abs_path):
            raise StagingError(f"Path {path} is inside the repository directory")

        return rel_path.as_posix()

    def iter_files(self) -> Iterator[str]:
        """Yield every file in the working tree, sorted, skipping .snapvcs/."""
        for item in sorted(self.workspace_root.rglob("*")):
            if item.is_file() and not self._is_store_path(item):
                yield item.relative_to(self.workspace_root).as_posix()

    def untracked_files(self, tracked: "set[str]") -> List[str]:
        """Files not in ``tracked`` and not matched by .snapvcsignore."""
        patterns = self._load_ignore_patterns()
        return [
            name
            for name in self.iter_files()
            if name not in tracked and not self._should_ignore(name, patterns)
        ]

    def _is_store_path(self, abs_path: Path) -> bool:
        """Check if path is within .snapvcs directory."""
        try:
            abs_path.relative_to(self.store_dir)
            return True
        except ValueError:
            return False

    def _load_ignore_patterns(self) -> List[str]:
        """Load patterns from .snapvcsignore file."""
        ignore_file = self.workspace_root / IGNORE_FILE

        if not ignore_file.exists():
            return []

        patterns = []
        for line in ignore_file.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            # Skip empty lines and comments
            if line and not line.startswith("#"):
                patterns.append(line)
        return patterns

    def _should_ignore(self, filename: str, patterns: List[str]) -> bool:
        """Check if a filename matches any ignore pattern."""
        name = filename.rsplit("/", 1)[-1]

        for pattern in patterns:
            # Directory patterns end with /
            if pattern.endswith("/"):
                if filename.startswith(pattern):
                    return True
            elif fnmatch.fnmatch(filename, pattern) or fnmatch.fnmatch(name, pattern):
                return True

        return False
