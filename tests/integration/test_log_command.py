"""Integration tests for snapvcs log, global-log and find commands."""

from pathlib import Path

from snapvcs.core import Repository


def _commit(workspace: Path, cli, filename: str, text: str, message: str) -> str:
    (workspace / filename).write_text(text)
    cli("add", filename)
    cli("commit", "-m", message)
    return Repository.open(workspace).get_head_digest()


class TestLogCommand:
    """Test snapvcs log command."""

    def test_log_order(self, workspace: Path, cli) -> None:
        first = _commit(workspace, cli, "a.txt", "1\n", "first change")
        second = _commit(workspace, cli, "a.txt", "2\n", "second change")

        result = cli("log")

        assert result.exit_code == 0
        out = result.stdout
        assert out.index(f"commit {second}") < out.index(f"commit {first}")
        assert out.count("===") == 3
        assert "initial commit" in out
        assert "Date: " in out

    def test_log_shows_merge_line(self, workspace: Path, cli) -> None:
        cli("branch", "side")
        master = _commit(workspace, cli, "m.txt", "m\n", "master work")
        cli("checkout", "side")
        side = _commit(workspace, cli, "s.txt", "s\n", "side work")
        cli("checkout", "master")
        cli("merge", "side")

        out = cli("log").stdout

        assert f"Merge: {master[:7]} {side[:7]}" in out
        assert "Merged side into master." in out
        assert "side work" not in out

    def test_global_log_lists_everything(self, workspace: Path, cli) -> None:
        cli("branch", "side")
        cli("checkout", "side")
        _commit(workspace, cli, "s.txt", "s\n", "side work")
        cli("checkout", "master")

        out = cli("global-log").stdout

        assert "side work" in out
        assert "initial commit" in out

    def test_log_with_corrupt_branch_reports_error(self, workspace: Path, cli) -> None:
        repo = Repository.open(workspace)
        blob = repo.put_object(b"not a commit", key="a.txt")
        repo.refs.write_branch("master", blob)

        result = cli("log")

        assert result.exit_code == 1
        assert "Error:" in result.stdout
        assert isinstance(result.exception, SystemExit)


class TestFindCommand:
    """Test snapvcs find command."""

    def test_find_prints_ids(self, workspace: Path, cli) -> None:
        first = _commit(workspace, cli, "a.txt", "1\n", "tweak")
        second = _commit(workspace, cli, "a.txt", "2\n", "tweak")

        result = cli("find", "tweak")

        assert result.exit_code == 0
        assert result.stdout.split() == [first, second]

    def test_find_nothing(self, workspace: Path, cli) -> None:
        result = cli("find", "nothing like this")

        assert result.exit_code == 1
        assert "Found no commit with that message." in result.stdout
