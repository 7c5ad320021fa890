from __future__ import annotations

import os
from pathlib import Path

import pytest

from gfi.models import EntryKind, FileSystemEntry

# 2024-01-02 03:04:05 local time, as a POSIX timestamp set on the sample files
SAMPLE_MTIME = 1704164645.0


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """root/a.txt (3 bytes), root/sub/b.txt (5), root/sub/deep/c.log (7), root/empty/."""
    root = tmp_path / "root"
    (root / "sub" / "deep").mkdir(parents=True)
    (root / "empty").mkdir()
    (root / "a.txt").write_bytes(b"abc")
    (root / "sub" / "b.txt").write_bytes(b"bbbbb")
    (root / "sub" / "deep" / "c.log").write_bytes(b"ccccccc")
    for p in root.rglob("*"):
        os.utime(p, (SAMPLE_MTIME, SAMPLE_MTIME))
    return root


@pytest.fixture
def make_entry():
    """Factory for FileSystemEntry values with sensible defaults."""

    def _make(
        key: str,
        size: str = "10",
        time: str = "2024/01/02 03:04:05.678",
        mode: str = "-rw-r--r--",
        kind: EntryKind = EntryKind.FILE,
    ) -> FileSystemEntry:
        return FileSystemEntry(
            logical_key=key,
            relative_path=key,
            raw_absolute_path=key,
            name=key.rsplit("/", 1)[-1],
            modified_time=time,
            size=size,
            mode=mode,
            kind=kind,
        )

    return _make

