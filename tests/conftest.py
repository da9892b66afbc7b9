"""Shared fixtures for the mdcmd test suite."""
from pathlib import Path

import pytest

from mdcmd import CommandEngine, EngineConfig


@pytest.fixture
def anyio_backend():
    """Run async tests on asyncio only; the executor uses asyncio subprocesses."""
    return "asyncio"


@pytest.fixture
def write_files(tmp_path):
    """Write a mapping of relative path -> content under tmp_path.

    Example:
        def test_include(write_files):
            base = write_files({"notes.txt": "done"})
    """

    def _write(files: dict[str, str]) -> Path:
        for name, content in files.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _write


@pytest.fixture
def fast_config():
    """EngineConfig with short limits so failure paths finish quickly."""
    return EngineConfig(
        timeout_ms=2000,
        max_output_bytes=4096,
        allowed_commands=frozenset({"echo", "pwd", "cat", "ls", "sleep", "touch"}),
    )


@pytest.fixture
def engine(fast_config):
    return CommandEngine(fast_config)
