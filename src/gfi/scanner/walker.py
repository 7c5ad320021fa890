from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Iterator

from ..errors import WalkError
from ..filters import ALLOW_ALL, EntryFilter
from ..models import EntryKind, FileSystemEntry
from ..paths import logical_key
from .pool import WorkerPool

logger = logging.getLogger(__name__)


def entry_from_stat(path: str, name: str, st: os.stat_result) -> FileSystemEntry:
    kind = EntryKind.DIRECTORY if stat.S_ISDIR(st.st_mode) else EntryKind.FILE
    return FileSystemEntry(
        logical_key=logical_key(path),
        relative_path=path,
        raw_absolute_path=os.path.abspath(path),
        name=name,
        modified_time=datetime.fromtimestamp(st.st_mtime),
        size=str(st.st_size),
        mode=stat.filemode(st.st_mode),
        kind=kind,
    )


@dataclass
class TreeWalker:
    """Recursive directory scan on a bounded worker pool.

    Every directory listing is one task; sub-directories are queued as new
    tasks and every child that passes the filter is emitted. Directories are
    descended into whether or not they pass the filter themselves. Symlinks
    are reported as they are and never followed.

    With `skip_errors` off the first unreadable directory or entry aborts the
    walk with WalkError; with it on the error is logged and that entry or
    subtree is left out.
    """

    entry_filter: EntryFilter = ALLOW_ALL
    workers: int | None = None
    skip_errors: bool = False
    queue_depth: int = 1
    skipped: list[WalkError] = field(default_factory=list)

    def walk(self, roots: Iterable[str]) -> Iterator[FileSystemEntry]:
        """Lazily yield entries under every root, in no particular order."""
        pool = WorkerPool(self.workers, self.queue_depth, name="gfi-walk")
        for root in roots:
            pool.submit(self._scan_root, pool, root)
        try:
            for item in pool.results():
                if isinstance(item, WalkError):
                    if not self.skip_errors:
                        raise item
                    logger.warning(f"{item}. continue.")
                    self.skipped.append(item)
                    continue
                yield item
        finally:
            pool.shutdown()

    def _scan_root(self, pool: WorkerPool, root: str) -> None:
        try:
            st = os.stat(root)
        except OSError as e:
            pool.emit(WalkError(root, e))
            return
        if not stat.S_ISDIR(st.st_mode):
            pool.emit(WalkError(root, NotADirectoryError(f"[{root}] is not a directory")))
            return
        logger.info(f"base: [{root}]")
        self._scan_dir(pool, root)

    def _scan_dir(self, pool: WorkerPool, path: str) -> None:
        try:
            with os.scandir(path) as it:
                children = list(it)
        except OSError as e:
            pool.emit(WalkError(path, e))
            return

        for child in children:
            if pool.stopped:
                return
            try:
                entry = entry_from_stat(child.path, child.name, child.stat(follow_symlinks=False))
            except OSError as e:
                pool.emit(WalkError(child.path, e))
                continue
            if entry.is_dir:
                pool.submit(self._scan_dir, pool, child.path)
            if self.entry_filter.accepts(entry.logical_key, entry.kind):
                pool.emit(entry)
