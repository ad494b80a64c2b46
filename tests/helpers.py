"""Helpers shared by the test suite."""

from pathlib import Path

from snapvcs.core import Repository


def write_file(repo: Repository, filename: str, text: str) -> Path:
    """Write a working-tree file and return its path."""
    path = repo.workspace_root / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def read_file(repo: Repository, filename: str) -> str:
    return (repo.workspace_root / filename).read_text()


def commit_file(repo: Repository, filename: str, text: str, message: str) -> str:
    """Write, stage and commit a single file; return the commit digest."""
    write_file(repo, filename, text)
    repo.add(filename)
    return repo.commit(message)
