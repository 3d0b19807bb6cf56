"""Shared test fixtures for mtfs."""

import shutil
from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture
def cli_runner():
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """A writable copy of the fixture sample project.

    Structure:
        project/
        ├── notes.txt
        ├── data/
        │   ├── records.csv
        │   └── archive/
        │       └── old.log
        └── docs/
            └── readme.md
    """
    project = tmp_path / "project"
    shutil.copytree(Path(__file__).parent / "fixtures" / "sample_project", project)
    return project


@pytest.fixture
def hello_tree(tmp_path: Path) -> Path:
    """root/ with a.txt ("hello") and an empty subdirectory."""
    root = tmp_path / "root"
    root.mkdir()
    (root / "a.txt").write_bytes(b"hello")
    (root / "empty").mkdir()
    return root
