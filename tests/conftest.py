"""Pytest configuration and fixtures."""

import asyncio
import time

import pytest


class Recorder:
    """Handler that records every path it is called with."""

    def __init__(self):
        self.paths = []

    def __call__(self, path):
        self.paths.append(path)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def make_recorder():
    return Recorder


@pytest.fixture
def project_tree(tmp_path):
    """Create a small project tree with an ignored .git subtree."""
    root = tmp_path / "proj"
    (root / "src" / "pkg").mkdir(parents=True)
    (root / "docs").mkdir()
    (root / ".git" / "objects" / "ab").mkdir(parents=True)
    (root / "src" / "main.txt").write_text("hello")
    (root / "README.md").write_text("readme")
    return root


async def wait_until(condition, timeout=5.0, interval=0.02):
    """Poll a condition from inside the event loop."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        await asyncio.sleep(interval)
    return condition()


@pytest.fixture(name="wait_until")
def wait_until_fixture():
    return wait_until
