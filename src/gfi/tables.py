"""Delimited text tables: read with a header row, write with CRLF line ends."""
from __future__ import annotations

import csv
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, TextIO

from .errors import InputShapeError, OutputError


@dataclass(frozen=True)
class Table:
    path: str
    header: list[str]
    rows: list[list[str]]

    def column(self, name: str) -> int | None:
        """Index of a header column, compared case-insensitively."""
        wanted = name.strip().lower()
        for i, h in enumerate(self.header):
            if h.strip().lower() == wanted:
                return i
        return None


def read_table(path: str | Path, delimiter: str = ",", encoding: str = "utf-8") -> Table:
    try:
        with open(path, newline="", encoding=encoding) as f:
            records = list(csv.reader(f, delimiter=delimiter))
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise InputShapeError(f"Cannot read table [{path}]: {e}") from e
    if not records:
        raise InputShapeError(f"Table [{path}] has no header row")
    # utf-8 files written by spreadsheet tools may start with a BOM
    header = [records[0][0].lstrip("\ufeff"), *records[0][1:]] if records[0] else []
    return Table(path=str(path), header=header, rows=[r for r in records[1:] if r])


@contextmanager
def staged_output(path: str | Path, encoding: str = "utf-8") -> Iterator[TextIO]:
    """Open `path` for writing through a sibling `.tmp` file.

    The target is only replaced once the body finishes; on any error the
    temporary file is removed and an existing target is left untouched.
    """
    target = Path(path)
    tmp = target.with_name(target.name + ".tmp")
    target.parent.mkdir(parents=True, exist_ok=True)
    try:
        with tmp.open("w", newline="", encoding=encoding) as f:
            yield f
        tmp.replace(target)
    finally:
        tmp.unlink(missing_ok=True)


def write_table(
    path: str | Path,
    header: list[str],
    rows: Iterable[list[str]],
    delimiter: str = ",",
    encoding: str = "utf-8",
) -> int:
    """Write header and rows; returns the number of data rows written.

    Nothing is left at `path` if writing fails part way.
    """
    n = 0
    try:
        with staged_output(path, encoding) as f:
            writer = csv.writer(f, delimiter=delimiter, lineterminator="\r\n")
            writer.writerow(header)
            for row in rows:
                writer.writerow(row)
                n += 1
    except (OSError, LookupError, UnicodeEncodeError, csv.Error) as e:
        raise OutputError(f"Error occur at write [{path}]. [{e}]") from e
    return n
