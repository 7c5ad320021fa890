"""N-way reconciliation of inventories.

Every source is compared against every other source. Each detection only
carries the value seen by the source that reported it; detections are then
folded by (key, field kind) into one row with a slot per source. With more
than two sources this means a slot is filled whenever its source disagreed
with at least one other source, not only with a particular one.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Sequence

from ..config import DiffOptions
from ..errors import InputShapeError, InsufficientInputError
from ..filters import EntryFilter
from ..models import COUNT_KEY, DiffRecord, FieldKind, FileSystemEntry, Inventory, ResultTable
from ..scanner.pool import WorkerPool
from .sorting import check_columns, sort_rows

logger = logging.getLogger(__name__)

DIFF_HEADER = ["Key", "Type", "FieldKind"]


@dataclass(frozen=True)
class Detection:
    """One pairwise finding, before merging."""

    source: int
    key: str
    field_kind: FieldKind
    kind: str
    value: str


def diff_header(sources: Sequence[str]) -> list[str]:
    return [*DIFF_HEADER, *sources]


def detect(
    source: int,
    inventories: Sequence[Inventory],
    indexes: Sequence[dict[str, FileSystemEntry]],
    entry_filter: EntryFilter,
) -> Iterator[Detection]:
    """Yield what `inventories[source]` sees differently from every other inventory."""
    one = inventories[source]
    for j, other in enumerate(inventories):
        if j != source and one.count != other.count:
            yield Detection(source, COUNT_KEY, FieldKind.COUNT, "", str(one.count))

    for e in one:
        if not entry_filter.accepts(e.logical_key, e.kind):
            continue
        kind = e.kind.value
        for j, index in enumerate(indexes):
            if j == source:
                continue
            o = index.get(e.logical_key)
            if o is None:
                yield Detection(source, e.logical_key, FieldKind.FULL, kind, e.logical_key)
                continue
            if e.time_text != o.time_text:
                yield Detection(source, e.logical_key, FieldKind.TIME, kind, e.time_text)
            if e.size != o.size:
                yield Detection(source, e.logical_key, FieldKind.SIZE, kind, e.size)
            if e.mode != o.mode:
                yield Detection(source, e.logical_key, FieldKind.MODE, kind, e.mode)


def merge_detections(detections: Iterable[Detection], width: int) -> list[DiffRecord]:
    """Fold detections into one record per (key, field kind).

    The first detection for a composite key allocates the record; later ones
    only fill their own slot. The Type column comes from the lowest source
    index that reported the key, whatever order detections arrive in.
    """
    merged: dict[tuple[str, FieldKind], DiffRecord] = {}
    kind_source: dict[tuple[str, FieldKind], int] = {}
    for d in detections:
        ck = (d.key, d.field_kind)
        rec = merged.get(ck)
        if rec is None:
            rec = DiffRecord(key=d.key, field_kind=d.field_kind, kind=d.kind, values=[""] * width)
            merged[rec.composite_key] = rec
            kind_source[ck] = d.source
        elif d.source < kind_source[ck]:
            rec.kind = d.kind
            kind_source[ck] = d.source
        rec.values[d.source] = d.value
    return list(merged.values())


@dataclass
class Reconciler:
    options: DiffOptions = field(default_factory=DiffOptions)

    def reconcile(self, inventories: Sequence[Inventory], sources: Sequence[str] | None = None) -> ResultTable:
        """Compare N >= 2 inventories; an empty result means no differences."""
        n = len(inventories)
        if n < 2:
            raise InsufficientInputError(n)
        if sources is None:
            sources = [f"source{i + 1}" for i in range(n)]
        if len(sources) != n:
            raise InputShapeError(f"{len(sources)} source name(s) given for {n} inventories")
        header = diff_header(sources)
        check_columns(self.options.sort_columns, len(header))

        entry_filter = self.options.entry_filter()
        indexes = [inv.by_key() for inv in inventories]

        pool = WorkerPool(self.options.workers, name="gfi-diff")
        for i in range(n):
            pool.submit(self._detect_into, pool, i, inventories, indexes, entry_filter)
        records = merge_detections(pool.results(), n)

        logger.info(f"Reconciled {n} sources: {len(records)} difference row(s)")
        rows = sort_rows([r.to_row() for r in records], self.options.sort_columns)
        return ResultTable(header=header, rows=rows)

    @staticmethod
    def _detect_into(pool: WorkerPool, source: int, inventories, indexes, entry_filter) -> None:
        for d in detect(source, inventories, indexes, entry_filter):
            if not pool.emit(d):
                return
