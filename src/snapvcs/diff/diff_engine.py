"""Text diff engine.

Produces hunks between two optional file versions and renders them as
unified-style patches. The merge engine never uses this; it exists only
for human-readable inspection.
"""

import difflib
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple


@dataclass(frozen=True)
class Hunk:
    """One contiguous change, numbered like ``diff -U0``."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    removed_lines: Tuple[str, ...] = ()
    added_lines: Tuple[str, ...] = ()

    def header(self) -> str:
        return (
            f"@@ -{self.old_start},{self.old_count} "
            f"+{self.new_start},{self.new_count} @@"
        )


@dataclass
class FileDiff:
    """All hunks for one filename. ``None`` content means the file is absent."""

    filename: str
    old_exists: bool
    new_exists: bool
    hunks: List[Hunk] = field(default_factory=list)

    @property
    def change_type(self) -> str:
        if not self.old_exists:
            return "added"
        if not self.new_exists:
            return "deleted"
        return "modified"


def _split_lines(content: Optional[bytes]) -> List[str]:
    if content is None:
        return []
    return content.decode("utf-8", errors="replace").splitlines()


def diff_lines(old: Optional[bytes], new: Optional[bytes]) -> Iterator[Hunk]:
    """Lazily yield the hunks turning ``old`` into ``new``.

    Either side may be None, meaning the file does not exist there.
    """
    old_lines = _split_lines(old)
    new_lines = _split_lines(new)
    matcher = difflib.SequenceMatcher(a=old_lines, b=new_lines, autojunk=False)

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        old_count = i2 - i1
        new_count = j2 - j1
        yield Hunk(
            old_start=i1 + 1 if old_count else i1,
            old_count=old_count,
            new_start=j1 + 1 if new_count else j1,
            new_count=new_count,
            removed_lines=tuple(old_lines[i1:i2]),
            added_lines=tuple(new_lines[j1:j2]),
        )


class DiffEngine:
    """Computes and formats file diffs."""

    def diff_files(
        self,
        filename: str,
        old: Optional[bytes],
        new: Optional[bytes],
    ) -> Optional[FileDiff]:
        """Compare two versions of a file.

        Returns:
            FileDiff, or None if both versions are identical
        """
        if old == new:
            return None
        return FileDiff(
            filename=filename,
            old_exists=old is not None,
            new_exists=new is not None,
            hunks=list(diff_lines(old, new)),
        )

    def format_diff(self, file_diff: FileDiff) -> str:
        """Render a FileDiff as a unified-style patch."""
        name = file_diff.filename
        lines = [
            f"diff --snapvcs a/{name} b/{name}",
            f"--- a/{name}" if file_diff.old_exists else "--- /dev/null",
            f"+++ b/{name}" if file_diff.new_exists else "+++ /dev/null",
        ]
        for hunk in file_diff.hunks:
            lines.append(hunk.header())
            lines.extend(f"-{line}" for line in hunk.removed_lines)
            lines.extend(f"+{line}" for line in hunk.added_lines)
        return "\n".join(lines)

    def summarize_diff(self, diffs: Iterable[FileDiff]) -> Dict[str, Any]:
        """Generate summary statistics for a set of file diffs."""
        by_type = {"added": 0, "deleted": 0, "modified": 0}
        lines_added = 0
        lines_removed = 0
        total = 0

        for file_diff in diffs:
            total += 1
            by_type[file_diff.change_type] += 1
            for hunk in file_diff.hunks:
                lines_added += hunk.new_count
                lines_removed += hunk.old_count

        return {
            "total_files": total,
            "by_type": by_type,
            "lines_added": lines_added,
            "lines_removed": lines_removed,
        }
