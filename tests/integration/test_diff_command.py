"""Integration tests for snapvcs diff command."""

from pathlib import Path

from snapvcs.core import Repository


class TestDiffCommand:
    """Test snapvcs diff command."""

    def test_no_changes(self, workspace: Path, cli) -> None:
        result = cli("diff")

        assert result.exit_code == 0
        assert "No changes" in result.stdout

    def test_working_tree_diff(self, workspace: Path, cli) -> None:
        (workspace / "a.txt").write_text("one\ntwo\n")
        cli("add", "a.txt")
        cli("commit", "-m", "base")
        (workspace / "a.txt").write_text("one\n2\n")

        lines = cli("diff").stdout.splitlines()

        assert "--- a/a.txt" in lines
        assert "@@ -2,1 +2,1 @@" in lines
        assert "-two" in lines
        assert "+2" in lines

    def test_commit_to_commit_summary(self, workspace: Path, cli) -> None:
        (workspace / "a.txt").write_text("one\n")
        cli("add", "a.txt")
        cli("commit", "-m", "base")
        first = Repository.open(workspace).get_head_digest()
        (workspace / "b.txt").write_text("b\n")
        cli("add", "b.txt")
        cli("commit", "-m", "more")
        second = Repository.open(workspace).get_head_digest()

        result = cli("diff", first[:8], second[:8], "--summary")

        assert result.exit_code == 0
        assert "1 file(s) changed" in result.stdout
        assert "added: 1" in result.stdout

    def test_unknown_revision(self, workspace: Path, cli) -> None:
        result = cli("diff", "f" * 64)

        assert result.exit_code == 1
        assert "No commit with that id exists." in result.stdout
