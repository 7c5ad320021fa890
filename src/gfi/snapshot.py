"""Persisted inventory snapshots.

Two forms are supported:

- tabular: header `Full, Rel, Abs, Name, Time, Size, Mode, Type`, one row per
  entry, caller-chosen delimiter and encoding;
- structured JSON: `{"count": N, "entries": [{"full": ..., "rel": ..., ...}]}`.

`load_inventory` picks the reader from the file suffix.
"""
from __future__ import annotations

import json
from pathlib import Path

from .errors import InputShapeError, OutputError
from .models import EntryKind, FileSystemEntry, Inventory, format_time, parse_time
from .tables import Table, read_table, staged_output, write_table

INVENTORY_HEADER = ["Full", "Rel", "Abs", "Name", "Time", "Size", "Mode", "Type"]
_JSON_KEYS = ["full", "rel", "abs", "name", "time", "size", "mode", "type"]

_KIND_ALIASES = {
    "file": EntryKind.FILE,
    "directory": EntryKind.DIRECTORY,
    "dir": EntryKind.DIRECTORY,
}


def entry_to_row(e: FileSystemEntry) -> list[str]:
    return [
        e.logical_key,
        e.relative_path,
        e.raw_absolute_path,
        e.name,
        format_time(e.modified_time),
        e.size,
        e.mode,
        e.kind.value,
    ]


def entry_to_dict(e: FileSystemEntry) -> dict[str, str]:
    return dict(zip(_JSON_KEYS, entry_to_row(e)))


def _parse_kind(value: str, where: str) -> EntryKind:
    kind = _KIND_ALIASES.get(value.strip().lower())
    if kind is None:
        raise InputShapeError(f"Unknown entry type [{value}] at {where}")
    return kind


def _entry_from_values(values: list[str], where: str) -> FileSystemEntry:
    full, rel, abs_, name, time_text, size, mode, kind = values
    try:
        modified = parse_time(time_text)
    except ValueError as e:
        raise InputShapeError(f"Bad time [{time_text}] at {where}") from e
    return FileSystemEntry(
        logical_key=full,
        relative_path=rel,
        raw_absolute_path=abs_,
        name=name,
        modified_time=modified,
        size=size,
        mode=mode,
        kind=_parse_kind(kind, where),
    )


def inventory_from_table(table: Table) -> Inventory:
    """Build an inventory from a parsed table, checking every column is present first."""
    indexes = [table.column(name) for name in INVENTORY_HEADER]
    missing = [name for name, i in zip(INVENTORY_HEADER, indexes) if i is None]
    if missing:
        raise InputShapeError(f"[{table.path}] is missing column(s): {', '.join(missing)}")
    width = max(indexes) + 1
    entries = []
    for n, row in enumerate(table.rows, start=2):
        where = f"[{table.path}] line {n}"
        if len(row) < width:
            raise InputShapeError(f"Too few columns at {where}: expected {width}, got {len(row)}")
        entries.append(_entry_from_values([row[i] for i in indexes], where))
    return Inventory.from_entries(entries)


def inventory_from_json(data: object, source: str = "<json>") -> Inventory:
    if not isinstance(data, dict) or "entries" not in data:
        raise InputShapeError(f"[{source}] is not an inventory snapshot (no 'entries')")
    raw = data["entries"] or []
    entries = []
    for n, item in enumerate(raw):
        where = f"[{source}] entry {n}"
        if not isinstance(item, dict):
            raise InputShapeError(f"Entry is not an object at {where}")
        missing = [k for k in _JSON_KEYS if k not in item]
        if missing:
            raise InputShapeError(f"Missing key(s) {', '.join(missing)} at {where}")
        entries.append(_entry_from_values([str(item[k]) for k in _JSON_KEYS], where))
    inventory = Inventory.from_entries(entries)
    count = data.get("count", inventory.count)
    if count != inventory.count:
        raise InputShapeError(f"[{source}] count {count} does not match {inventory.count} entries")
    return inventory


def load_inventory(path: str | Path, delimiter: str = ",", encoding: str = "utf-8") -> Inventory:
    p = Path(path)
    if p.suffix.lower() == ".json":
        try:
            data = json.loads(p.read_text(encoding=encoding))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise InputShapeError(f"Error occur when read json file. [{p}][{e}]") from e
        return inventory_from_json(data, str(p))
    return inventory_from_table(read_table(p, delimiter=delimiter, encoding=encoding))


def write_inventory(
    inventory: Inventory,
    path: str | Path,
    format: str = "csv",
    delimiter: str = ",",
    encoding: str = "utf-8",
) -> int:
    """Write a snapshot; returns the number of entries written."""
    if format == "json":
        doc = {"count": inventory.count, "entries": [entry_to_dict(e) for e in inventory]}
        try:
            with staged_output(path, encoding) as f:
                f.write(json.dumps(doc, indent="\t", ensure_ascii=False))
        except (OSError, LookupError, UnicodeEncodeError) as e:
            raise OutputError(f"Error occur at write [{path}] json file. [{e}]") from e
        return inventory.count
    return write_table(path, INVENTORY_HEADER, (entry_to_row(e) for e in inventory), delimiter, encoding)
