"""Unit tests for the Commit model."""

import pytest

from snapvcs.constants import INITIAL_COMMIT_MESSAGE, INITIAL_COMMIT_TIMESTAMP
from snapvcs.storage.commit import Commit


def test_initial_commit() -> None:
    root = Commit.initial()
    assert root.message == INITIAL_COMMIT_MESSAGE
    assert root.timestamp == INITIAL_COMMIT_TIMESTAMP
    assert root.parent is None
    assert root.merge_parent is None
    assert dict(root.snapshot) == {}


def test_initial_commit_is_deterministic() -> None:
    assert Commit.initial().serialize() == Commit.initial().serialize()


def test_snapshot_is_copied() -> None:
    files = {"a.txt": "1" * 64}
    commit = Commit(message="m", timestamp="t", parent="p" * 64, snapshot=files)

    files["b.txt"] = "2" * 64

    assert "b.txt" not in commit.snapshot


def test_snapshot_is_read_only() -> None:
    commit = Commit(message="m", timestamp="t", snapshot={"a": "1" * 64})
    with pytest.raises(TypeError):
        commit.snapshot["b"] = "2" * 64  # type: ignore[index]


def test_files_returns_private_copy() -> None:
    commit = Commit(message="m", timestamp="t", snapshot={"a": "1" * 64})
    files = commit.files()
    files.pop("a")
    assert "a" in commit.snapshot


def test_merge_parent_must_differ() -> None:
    with pytest.raises(ValueError, match="merge_parent"):
        Commit(message="m", timestamp="t", parent="a" * 64, merge_parent="a" * 64)


def test_serialize_is_canonical() -> None:
    commit = Commit(
        message="msg",
        timestamp="2026-01-01T00:00:00+00:00",
        parent="a" * 64,
        snapshot={"z": "1" * 64, "a": "2" * 64},
    )
    data = commit.serialize()

    assert b" " not in data.replace(b"msg", b"")
    assert data.index(b'"a"') < data.index(b'"z"')
    assert Commit.deserialize(data) == commit


def test_deserialize_rejects_non_commit() -> None:
    with pytest.raises(ValueError, match="Not a commit"):
        Commit.deserialize(b"just some blob content")


def test_parents_order() -> None:
    commit = Commit(message="m", timestamp="t", parent="a" * 64, merge_parent="b" * 64)
    assert commit.parents() == ("a" * 64, "b" * 64)
    assert commit.is_merge
    assert Commit.initial().parents() == ()
