"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from snapvcs.core import Repository


@pytest.fixture
def repo(tmp_path: Path) -> Repository:
    """An initialized repository in an empty workspace."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    repository = Repository(workspace)
    repository.init()
    return repository


@pytest.fixture
def other_repo(tmp_path: Path) -> Repository:
    """A second, independent repository for remote tests."""
    workspace = tmp_path / "other"
    workspace.mkdir()
    repository = Repository(workspace)
    repository.init()
    return repository
