"""Shared fixtures for the stagezip test suite."""

import io
import os
from pathlib import Path
from typing import Dict, Optional

import pytest


class NonSeekableStream(io.RawIOBase):
    """Readable, non-seekable stream over in-memory bytes, like a pipe."""

    def __init__(self, data: bytes):
        self._data = io.BytesIO(data)

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        chunk = self._data.read(len(buffer))
        buffer[:len(chunk)] = chunk
        return len(chunk)


def snapshot(root: Path) -> Dict[str, Optional[bytes]]:
    """Map every path below `root` to its bytes (None for directories)."""
    result = {}
    for current, dirs, files in os.walk(root):
        for name in dirs:
            result[Path(current, name).relative_to(root).as_posix() + "/"] = None
        for name in files:
            path = Path(current, name)
            result[path.relative_to(root).as_posix()] = path.read_bytes()
    return result


@pytest.fixture
def sample_tree(tmp_path) -> Path:
    """
    The basic tree:

        root/file1.txt       "hello"
        root/sub/file2.txt   "world"
    """
    root = tmp_path / "root"
    (root / "sub").mkdir(parents=True)
    (root / "file1.txt").write_bytes(b"hello")
    (root / "sub" / "file2.txt").write_bytes(b"world")
    return root


@pytest.fixture
def nested_tree(tmp_path) -> Path:
    """A wider tree with empty directories, binary and multi-buffer files."""
    root = tmp_path / "nested"
    files = {
        "readme.md": b"# artifacts\n",
        "logs/run-1/output.log": b"line\n" * 5000,
        "logs/run-2/output.log": b"",
        "bin/data.bin": bytes(range(256)) * 400,
        "a/b/c/d/deep.txt": b"deep",
    }
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    (root / "empty").mkdir()
    (root / "logs" / "empty-run").mkdir()
    return root
