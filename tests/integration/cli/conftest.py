"""Fixtures for subprocess-level CLI tests."""

import subprocess
import sys
from pathlib import Path

import pytest


@pytest.fixture
def run_snapvcs():
    """Run the CLI in a fresh interpreter."""

    def run(cwd: Path, *args: str) -> subprocess.CompletedProcess:
        return subprocess.run(
            [sys.executable, "-m", "snapvcs.cli.main", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
        )

    return run


@pytest.fixture
def initialized_repo(tmp_path, run_snapvcs):
    """Create a temporary directory with an initialized SnapVCS repository.

    Returns:
        Path: Path to the workspace root
    """
    workspace = tmp_path / "test_workspace"
    workspace.mkdir()

    result = run_snapvcs(workspace, "init", "--quiet")

    if result.returncode != 0:
        raise RuntimeError(f"Failed to initialize repo: {result.stdout}\n{result.stderr}")

    return workspace
