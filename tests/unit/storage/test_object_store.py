"""Unit tests for ObjectStore."""

from pathlib import Path

import pytest

from snapvcs.storage.object_store import (
    ObjectNotFoundError,
    ObjectStore,
    compute_digest,
)


@pytest.fixture
def store_dir(tmp_path: Path) -> Path:
    """Create a temporary .snapvcs directory structure."""
    store = tmp_path / ".snapvcs"
    store.mkdir()
    (store / "objects").mkdir()
    return store


@pytest.fixture
def store(store_dir: Path) -> ObjectStore:
    """Create an ObjectStore instance."""
    return ObjectStore(store_dir)


class TestObjectStoreInit:
    """Test ObjectStore initialization."""

    def test_init_with_valid_dir(self, store_dir: Path) -> None:
        store = ObjectStore(store_dir)
        assert store.store_dir == store_dir
        assert store.objects_dir == store_dir / "objects"

    def test_init_with_nonexistent_dir(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="not found"):
            ObjectStore(tmp_path / "nonexistent")


class TestPut:
    """Test object writing."""

    def test_put_basic(self, store: ObjectStore) -> None:
        digest = store.put(b"hello\n", key="a.txt")

        assert len(digest) == 64
        assert all(c in "0123456789abcdef" for c in digest)
        assert store.exists(digest)

    def test_put_uses_sharded_path(self, store: ObjectStore) -> None:
        digest = store.put(b"sharded")

        path = store.objects_dir / digest[:2] / digest[2:]
        assert path.is_file()
        assert path.read_bytes() == b"sharded"

    def test_put_is_idempotent(self, store: ObjectStore) -> None:
        digest1 = store.put(b"same", key="f")
        path = store._get_object_path(digest1)
        mtime = path.stat().st_mtime_ns

        digest2 = store.put(b"same", key="f")

        assert digest1 == digest2
        assert path.stat().st_mtime_ns == mtime

    def test_key_changes_digest(self, store: ObjectStore) -> None:
        """Identical content under different names hashes differently."""
        assert store.put(b"data", key="a.txt") != store.put(b"data", key="b.txt")

    def test_key_is_not_concatenated_with_content(self) -> None:
        assert compute_digest(b"bc", key="a") != compute_digest(b"c", key="ab")

    def test_unkeyed_digest_is_plain_sha256(self) -> None:
        import hashlib

        assert compute_digest(b"commit") == hashlib.sha256(b"commit").hexdigest()

    def test_no_temp_files_left(self, store: ObjectStore) -> None:
        digest = store.put(b"content")
        shard = store.objects_dir / digest[:2]
        assert [p.name for p in shard.iterdir()] == [digest[2:]]


class TestGet:
    """Test object reading."""

    def test_round_trip(self, store: ObjectStore) -> None:
        content = bytes(range(256)) * 4
        digest = store.put(content, key="binary.bin")
        assert store.get(digest) == content

    def test_get_missing(self, store: ObjectStore) -> None:
        with pytest.raises(ObjectNotFoundError) as exc_info:
            store.get("a" * 64)
        assert exc_info.value.digest == "a" * 64

    def test_get_invalid_digest(self, store: ObjectStore) -> None:
        with pytest.raises(ValueError, match="64 characters"):
            store.get("abc")
        with pytest.raises(ValueError, match="hexadecimal"):
            store.get("z" * 64)

    def test_exists_false_for_invalid(self, store: ObjectStore) -> None:
        assert not store.exists("not-a-digest")
        assert not store.exists("0" * 64)
