from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Iterable

from ..config import ScanOptions
from ..models import Inventory
from ..paths import to_share
from .walker import TreeWalker


@dataclass
class ScanStats:
    """Statistics from a scan operation."""

    roots: int = 0
    entries: int = 0
    errors_skipped: int = 0
    elapsed_seconds: float = 0.0


@dataclass
class InventoryBuilder:
    """Drain one walk over all roots into a frozen Inventory.

    Each root is an independent unit of work on the walker's pool; `build`
    returns only after all of them have finished.
    """

    options: ScanOptions = field(default_factory=ScanOptions)
    stats: ScanStats = field(default_factory=ScanStats)

    def resolve_roots(self, roots: Iterable[str]) -> list[str]:
        if not self.options.host:
            return list(roots)
        return [to_share(self.options.host, r) for r in roots]

    def walker(self) -> TreeWalker:
        return TreeWalker(
            entry_filter=self.options.entry_filter(),
            workers=self.options.workers,
            skip_errors=self.options.skip_errors,
            queue_depth=self.options.queue_depth,
        )

    def build(self, roots: Iterable[str]) -> Inventory:
        logger = logging.getLogger(__name__)
        start = time.time()

        targets = self.resolve_roots(roots)
        walker = self.walker()
        entries = list(walker.walk(targets))
        inventory = Inventory.from_entries(entries, sort=self.options.sort)

        self.stats = ScanStats(
            roots=len(targets),
            entries=inventory.count,
            errors_skipped=len(walker.skipped),
            elapsed_seconds=time.time() - start,
        )
        logger.info(
            f"Scanned {self.stats.roots} root(s): {self.stats.entries} entries, "
            f"{self.stats.errors_skipped} skipped in {self.stats.elapsed_seconds:.1f}s"
        )
        return inventory
