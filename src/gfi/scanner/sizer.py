"""Directory size summary built on top of a scan."""
from __future__ import annotations

from dataclasses import dataclass

from ..models import FileSystemEntry, Inventory, format_time

SIZE_HEADER = ["Full", "Rel", "Abs", "Name", "Time", "Size", "FileCount", "DirCount"]


@dataclass
class DirectorySize:
    entry: FileSystemEntry
    size: int = 0
    file_count: int = 0
    dir_count: int = 0

    def to_row(self) -> list[str]:
        e = self.entry
        return [
            e.logical_key,
            e.relative_path,
            e.raw_absolute_path,
            e.name,
            format_time(e.modified_time),
            str(self.size),
            str(self.file_count),
            str(self.dir_count),
        ]


def _parent(key: str) -> str:
    # logical keys may be Windows paths even when running elsewhere
    cut = max(key.rfind("/"), key.rfind("\\"))
    return key[:cut] if cut > 0 else key


def summarize_directories(inventory: Inventory) -> list[DirectorySize]:
    """Total size and file/directory counts beneath every directory in the inventory.

    The inventory must come from an unfiltered scan for the totals to be
    complete; only entries present in it are counted.
    """
    dirs = {e.logical_key: DirectorySize(entry=e) for e in inventory if e.is_dir}
    for e in inventory:
        key = e.logical_key
        parent = _parent(key)
        while parent != key:
            acc = dirs.get(parent)
            if acc is not None:
                if e.is_dir:
                    acc.dir_count += 1
                else:
                    acc.file_count += 1
                    acc.size += int(e.size or 0)
            key, parent = parent, _parent(parent)
    return list(dirs.values())

