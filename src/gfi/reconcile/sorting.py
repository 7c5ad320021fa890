from __future__ import annotations

from typing import Sequence

from ..errors import InputShapeError


def parse_sort_columns(text: str) -> tuple[int, ...]:
    """Parse a comma separated column list such as "1,2,0"."""
    cols: list[int] = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            col = int(part)
        except ValueError as e:
            raise InputShapeError(f"Invalid sort column [{part}] in [{text}]") from e
        if col < 0:
            raise InputShapeError(f"Invalid sort column [{part}] in [{text}]")
        cols.append(col)
    return tuple(cols)


def check_columns(columns: Sequence[int], width: int) -> None:
    bad = [c for c in columns if c >= width]
    if bad:
        raise InputShapeError(f"Sort column(s) {bad} out of range for {width} column(s)")


def sort_rows(rows: list[list[str]], columns: Sequence[int]) -> list[list[str]]:
    """Order rows by the string values at `columns`, first differing column decides.

    Rows equal on every requested column are ordered by the whole row, left to
    right, so the result does not depend on the order rows arrived in.
    """
    if not rows:
        return []
    check_columns(columns, min(len(r) for r in rows))
    return sorted(rows, key=lambda r: ([r[c] for c in columns], r))
