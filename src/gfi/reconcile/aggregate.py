from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from ..config import SumOptions
from ..errors import InputShapeError, InsufficientInputError
from ..filters import EntryFilter
from ..models import AggregateRow, ResultTable
from ..scanner.pool import WorkerPool
from ..tables import Table, read_table
from .sorting import check_columns, sort_rows

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Line:
    source: int
    key: str
    value: str


def table_lines(source: int, table: Table, key_column: int, value_column: int, key_filter: EntryFilter) -> Iterator[Line]:
    for row in table.rows:
        key = row[key_column]
        if key_filter.match_key(key):
            yield Line(source, key, row[value_column])


def merge_lines(lines: Iterable[Line], width: int) -> list[AggregateRow]:
    """One row per key with a slot per table; a key repeated in one table keeps its last value."""
    merged: dict[str, AggregateRow] = {}
    for line in lines:
        row = merged.get(line.key)
        if row is None:
            row = merged[line.key] = AggregateRow(key=line.key, values=[""] * width)
        row.values[line.source] = line.value
    return list(merged.values())


@dataclass
class ColumnAggregator:
    """Join N delimited tables on a key column, one value column per table."""

    options: SumOptions = field(default_factory=SumOptions)

    def _check_shape(self, tables: Sequence[Table]) -> None:
        need = max(self.options.key_column, self.options.value_column) + 1
        for t in tables:
            if len(t.header) < need:
                raise InputShapeError(f"[{t.path}] header has {len(t.header)} column(s), need {need}")
            for n, row in enumerate(t.rows, start=2):
                if len(row) < need:
                    raise InputShapeError(f"[{t.path}] line {n} has {len(row)} column(s), need {need}")

    def aggregate(self, tables: Sequence[Table]) -> ResultTable:
        n = len(tables)
        if n < 2:
            raise InsufficientInputError(n)
        self._check_shape(tables)
        header = [tables[0].header[self.options.key_column], *(t.path for t in tables)]
        check_columns(self.options.sort_columns, len(header))

        key_filter = self.options.key_filter()
        pool = WorkerPool(self.options.workers, name="gfi-sum")
        for i, t in enumerate(tables):
            pool.submit(self._lines_into, pool, i, t, key_filter)
        merged = merge_lines(pool.results(), n)

        logger.info(f"Aggregated {n} tables: {len(merged)} key(s)")
        rows = sort_rows([r.to_row() for r in merged], self.options.sort_columns)
        return ResultTable(header=header, rows=rows)

    def aggregate_paths(self, paths: Sequence[str | Path]) -> ResultTable:
        if len(paths) < 2:
            raise InsufficientInputError(len(paths))
        tables = []
        for p in paths:
            logger.info(f"Open: {p}")
            tables.append(read_table(p, delimiter=self.options.delimiter, encoding=self.options.encoding))
        return self.aggregate(tables)

    def _lines_into(self, pool: WorkerPool, source: int, table: Table, key_filter: EntryFilter) -> None:
        for line in table_lines(source, table, self.options.key_column, self.options.value_column, key_filter):
            if not pool.emit(line):
                return
