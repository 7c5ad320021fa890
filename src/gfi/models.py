from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable

TIME_FORMAT = "%Y/%m/%d %H:%M:%S"
COUNT_KEY = "Count"


class EntryKind(str, Enum):
    FILE = "File"
    DIRECTORY = "Directory"


class FieldKind(str, Enum):
    """Which field a DiffRecord reports.

    FULL means the entry exists in the reporting source but not in another.
    """

    FULL = "Full"
    TIME = "Time"
    SIZE = "Size"
    MODE = "Mode"
    COUNT = "Count"


def format_time(ts: datetime) -> str:
    """Render a timestamp as `YYYY/MM/DD hh:mm:ss.mmm`."""
    return f"{ts.strftime(TIME_FORMAT)}.{ts.microsecond // 1000:03d}"


def parse_time(text: str) -> datetime:
    return datetime.strptime(text.strip(), TIME_FORMAT + ".%f")


def _truncate_ms(ts: datetime) -> datetime:
    return ts.replace(microsecond=(ts.microsecond // 1000) * 1000)


@dataclass(frozen=True)
class FileSystemEntry:
    """One filesystem object captured by a scan.

    `logical_key` is the join key across inventories: the absolute path after
    any network-share rewrite. The remaining path fields keep the path as it
    was reached.
    """

    logical_key: str
    relative_path: str
    raw_absolute_path: str
    name: str
    modified_time: datetime
    size: str
    mode: str
    kind: EntryKind

    def __post_init__(self):
        """Normalize the timestamp to the millisecond precision it is serialized with."""
        if isinstance(self.modified_time, str):
            object.__setattr__(self, "modified_time", parse_time(self.modified_time))
        object.__setattr__(self, "modified_time", _truncate_ms(self.modified_time))
        if not isinstance(self.kind, EntryKind):
            object.__setattr__(self, "kind", EntryKind(self.kind))

    @property
    def time_text(self) -> str:
        return format_time(self.modified_time)

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


@dataclass(frozen=True)
class Inventory:
    """Frozen, ordered collection of entries captured in one scan pass."""

    entries: tuple[FileSystemEntry, ...] = ()

    def __post_init__(self):
        if not isinstance(self.entries, tuple):
            object.__setattr__(self, "entries", tuple(self.entries))

    @classmethod
    def from_entries(cls, entries: Iterable[FileSystemEntry], sort: bool = False) -> "Inventory":
        items = list(entries)
        if sort:
            items.sort(key=lambda e: e.logical_key)
        return cls(entries=tuple(items))

    @property
    def count(self) -> int:
        return len(self.entries)

    def by_key(self) -> dict[str, FileSystemEntry]:
        return {e.logical_key: e for e in self.entries}

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class DiffRecord:
    """A detected discrepancy; `values` holds one slot per input source."""

    key: str
    field_kind: FieldKind
    kind: str
    values: list[str] = field(default_factory=list)

    @property
    def composite_key(self) -> tuple[str, FieldKind]:
        return (self.key, self.field_kind)

    def to_row(self) -> list[str]:
        return [self.key, self.kind, self.field_kind.value, *self.values]


@dataclass
class AggregateRow:
    key: str
    values: list[str] = field(default_factory=list)

    def to_row(self) -> list[str]:
        return [self.key, *self.values]


@dataclass(frozen=True)
class ResultTable:
    """Merged and sorted output of the reconciler or the aggregator.

    An empty table is the "no differences" / "no information" outcome, not an
    error; callers check `is_empty` and skip writing output.
    """

    header: list[str]
    rows: list[list[str]]

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def __len__(self) -> int:
        return len(self.rows)
