"""Fixtures for CLI workflow tests."""

import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from snapvcs.cli.main import app

runner = CliRunner()


@pytest.fixture
def workspace(tmp_path: Path):
    """An initialized workspace that is also the current directory."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    original_cwd = Path.cwd()
    os.chdir(workspace)

    try:
        result = runner.invoke(app, ["init", "--quiet"])
        if result.exit_code != 0:
            raise RuntimeError(f"Failed to initialize repo: {result.stdout}")
        yield workspace
    finally:
        os.chdir(original_cwd)


@pytest.fixture
def cli():
    """Invoke the CLI in the current directory."""

    def invoke(*args: str):
        return runner.invoke(app, list(args))

    return invoke
