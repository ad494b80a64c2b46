"""Integration tests for merging branches."""

from pathlib import Path

import pytest

from helpers import commit_file, read_file, write_file
from snapvcs.core import Repository
from snapvcs.errors import (
    AlreadyAncestorError,
    BranchNotFoundError,
    DirtyStageError,
    FastForwardableError,
    SelfMergeError,
    UntrackedFileConflictError,
)


@pytest.fixture
def diverged(repo: Repository):
    """x = 1 at the split, 2 on feature, 3 on master."""
    split = commit_file(repo, "x", "1\n", "C1")
    repo.branch("feature")
    repo.checkout_branch("feature")
    feature = commit_file(repo, "x", "2\n", "C2")
    repo.checkout_branch("master")
    master = commit_file(repo, "x", "3\n", "C3")
    return split, feature, master


class TestConflictingMerge:
    """Test the canonical conflict scenario."""

    def test_conflict_commit(self, repo: Repository, diverged) -> None:
        _, feature, master = diverged

        result = repo.merge("feature")

        assert result.conflicts == ["x"]
        merge = repo.get_commit(result.commit)
        assert merge.parent == master
        assert merge.merge_parent == feature
        assert merge.message == "Merged feature into master."
        assert repo.object_store.get(merge.snapshot["x"]) == (
            b"<<<<<<<\n3\n=======\n2\n>>>>>>>\n"
        )
        assert (repo.workspace_root / "x").read_bytes() == (
            b"<<<<<<<\n3\n=======\n2\n>>>>>>>\n"
        )
        assert repo.get_head_digest() == result.commit
        assert repo.staging.is_empty()

    def test_conflict_markers_can_be_resolved(self, repo: Repository, diverged) -> None:
        repo.merge("feature")

        resolved = commit_file(repo, "x", "2\n3\n", "resolve")

        assert repo.get_commit(resolved).merge_parent is None
        assert read_file(repo, "x") == "2\n3\n"


class TestCleanMerge:
    """Test merges without conflicts."""

    def test_changes_from_both_sides(self, repo: Repository) -> None:
        commit_file(repo, "shared.txt", "base\n", "base")
        commit_file(repo, "doomed.txt", "d\n", "doomed")
        repo.branch("feature")
        repo.checkout_branch("feature")
        commit_file(repo, "feature.txt", "f\n", "feature adds")
        repo.rm("doomed.txt")
        repo.commit("feature removes")
        repo.checkout_branch("master")
        commit_file(repo, "shared.txt", "master\n", "master edits")

        result = repo.merge("feature")

        assert not result.has_conflicts
        files = repo.get_commit(result.commit).snapshot
        assert set(files) == {"shared.txt", "feature.txt"}
        assert read_file(repo, "shared.txt") == "master\n"
        assert read_file(repo, "feature.txt") == "f\n"
        assert not (repo.workspace_root / "doomed.txt").exists()

    def test_merged_snapshots_commute(self, repo: Repository) -> None:
        commit_file(repo, "a.txt", "a\n", "base")
        repo.branch("left")
        repo.branch("right")
        repo.checkout_branch("left")
        left = commit_file(repo, "l.txt", "l\n", "left")
        repo.checkout_branch("right")
        right = commit_file(repo, "r.txt", "r\n", "right")

        forward = repo.merge_engine.plan(right, left)
        backward = repo.merge_engine.plan(left, right)

        assert forward.split == backward.split
        assert forward.snapshot == backward.snapshot
        assert set(forward.snapshot) == {"a.txt", "l.txt", "r.txt"}


class TestMergePreconditions:
    """Test merge failures that leave everything untouched."""

    def test_dirty_stage(self, repo: Repository, diverged) -> None:
        write_file(repo, "new.txt", "n")
        repo.add("new.txt")

        with pytest.raises(DirtyStageError, match="You have uncommitted changes."):
            repo.merge("feature")

    def test_unknown_branch(self, repo: Repository) -> None:
        with pytest.raises(BranchNotFoundError):
            repo.merge("nope")

    def test_self_merge(self, repo: Repository) -> None:
        with pytest.raises(SelfMergeError):
            repo.merge("master")

    def test_given_branch_is_ancestor(self, repo: Repository) -> None:
        repo.branch("old")
        commit_file(repo, "a.txt", "a", "ahead")
        head = repo.get_head_digest()

        with pytest.raises(AlreadyAncestorError):
            repo.merge("old")
        assert repo.get_head_digest() == head

    def test_fast_forward(self, repo: Repository) -> None:
        repo.branch("ahead")
        repo.checkout_branch("ahead")
        tip = commit_file(repo, "a.txt", "a\n", "ahead")
        repo.checkout_branch("master")

        with pytest.raises(FastForwardableError) as exc_info:
            repo.merge("ahead")
        assert exc_info.value.target == tip

        assert repo.fast_forward("ahead") == tip
        assert repo.refs.current_branch() == "master"
        assert repo.refs.read_branch("master") == tip
        assert read_file(repo, "a.txt") == "a\n"

    def test_untracked_file_blocks_merge(self, repo: Repository, diverged) -> None:
        repo.checkout_branch("feature")
        commit_file(repo, "incoming.txt", "theirs\n", "feature adds")
        repo.checkout_branch("master")
        write_file(repo, "incoming.txt", "mine\n")
        head = repo.get_head_digest()

        with pytest.raises(UntrackedFileConflictError):
            repo.merge("feature")

        assert read_file(repo, "incoming.txt") == "mine\n"
        assert read_file(repo, "x") == "3\n"
        assert repo.get_head_digest() == head


class TestMergeCommand:
    """Test merge through the CLI."""

    def test_conflict_report(self, workspace: Path, cli) -> None:
        (workspace / "x").write_text("1\n")
        cli("add", "x")
        cli("commit", "-m", "C1")
        cli("branch", "feature")
        cli("checkout", "feature")
        (workspace / "x").write_text("2\n")
        cli("add", "x")
        cli("commit", "-m", "C2")
        cli("checkout", "master")
        (workspace / "x").write_text("3\n")
        cli("add", "x")
        cli("commit", "-m", "C3")

        result = cli("merge", "feature")

        assert result.exit_code == 0
        assert "Encountered a merge conflict." in result.stdout
        assert (workspace / "x").read_text() == "<<<<<<<\n3\n=======\n2\n>>>>>>>\n"

    def test_fast_forward_report(self, workspace: Path, cli) -> None:
        cli("branch", "ahead")
        cli("checkout", "ahead")
        (workspace / "a.txt").write_text("a\n")
        cli("add", "a.txt")
        cli("commit", "-m", "ahead")
        cli("checkout", "master")

        result = cli("merge", "ahead")

        assert result.exit_code == 0
        assert "Current branch fast-forwarded." in result.stdout
        assert (workspace / "a.txt").read_text() == "a\n"

    def test_ancestor_report(self, workspace: Path, cli) -> None:
        cli("branch", "old")
        (workspace / "a.txt").write_text("a\n")
        cli("add", "a.txt")
        cli("commit", "-m", "ahead")

        result = cli("merge", "old")

        assert result.exit_code == 1
        assert "ancestor of the current branch" in result.stdout
