from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import os
import tomllib

from .filters import EntryFilter, KindFilter

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
VALID_FORMATS = ("csv", "json")


def _expand(p: str) -> str:
    return os.path.expandvars(os.path.expanduser(p))


def _kind(value: str | KindFilter) -> KindFilter:
    try:
        return KindFilter(value)
    except ValueError:
        raise ValueError(f"Invalid kind: {value}. Must be one of {[k.value for k in KindFilter]}.") from None


def _workers(value) -> int | None:
    if value is None:
        return None
    n = int(value)
    if n <= 0 or n > 1024:
        raise ValueError(f"Invalid workers: {n}. Must be between 1 and 1024.")
    return n


def _columns(value) -> tuple[int, ...]:
    cols = tuple(int(c) for c in value)
    if any(c < 0 for c in cols):
        raise ValueError(f"Invalid sort columns: {list(cols)}. Column numbers start at 0.")
    return cols


@dataclass(frozen=True)
class ScanOptions:
    """Options for `get` and `size`."""

    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    kind: KindFilter = KindFilter.BOTH
    skip_errors: bool = False
    sort: bool = False
    workers: int | None = None  # None = os.cpu_count()
    queue_depth: int = 1
    host: str = ""  # scan through \\host\X$ admin shares when set

    def __post_init__(self):
        object.__setattr__(self, "include", tuple(self.include))
        object.__setattr__(self, "exclude", tuple(self.exclude))
        object.__setattr__(self, "kind", _kind(self.kind))
        object.__setattr__(self, "workers", _workers(self.workers))
        if self.queue_depth < 1:
            raise ValueError(f"Invalid queue_depth: {self.queue_depth}. Must be at least 1.")

    def entry_filter(self) -> EntryFilter:
        return EntryFilter.from_patterns(self.include, self.exclude, self.kind)


@dataclass(frozen=True)
class DiffOptions:
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    kind: KindFilter = KindFilter.BOTH
    sort_columns: tuple[int, ...] = (0, 1)
    workers: int | None = None

    def __post_init__(self):
        object.__setattr__(self, "include", tuple(self.include))
        object.__setattr__(self, "exclude", tuple(self.exclude))
        object.__setattr__(self, "kind", _kind(self.kind))
        object.__setattr__(self, "sort_columns", _columns(self.sort_columns))
        object.__setattr__(self, "workers", _workers(self.workers))

    def entry_filter(self) -> EntryFilter:
        return EntryFilter.from_patterns(self.include, self.exclude, self.kind)


@dataclass(frozen=True)
class SumOptions:
    key_column: int = 0
    value_column: int = 1
    delimiter: str = "\t"
    encoding: str = "utf-8"
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    sort_columns: tuple[int, ...] = (0,)
    workers: int | None = None

    def __post_init__(self):
        if self.key_column < 0 or self.value_column < 0:
            raise ValueError("Key and value column numbers start at 0.")
        if len(self.delimiter) != 1:
            raise ValueError(f"Invalid delimiter: {self.delimiter!r}. Must be a single character.")
        object.__setattr__(self, "include", tuple(self.include))
        object.__setattr__(self, "exclude", tuple(self.exclude))
        object.__setattr__(self, "sort_columns", _columns(self.sort_columns))
        object.__setattr__(self, "workers", _workers(self.workers))

    def key_filter(self) -> EntryFilter:
        return EntryFilter.from_patterns(self.include, self.exclude)


@dataclass(frozen=True)
class OutputOptions:
    """How results are serialized. Encoding is any Python codec name."""

    directory: Path = Path(".")
    format: str = "csv"
    delimiter: str = ","
    encoding: str = "utf-8"

    def __post_init__(self):
        if isinstance(self.directory, str):
            object.__setattr__(self, "directory", Path(_expand(self.directory)))
        if self.format not in VALID_FORMATS:
            raise ValueError(f"Invalid format: {self.format}. Must be one of {VALID_FORMATS}.")
        if len(self.delimiter) != 1:
            raise ValueError(f"Invalid delimiter: {self.delimiter!r}. Must be a single character.")


@dataclass(frozen=True)
class LoggingOptions:
    level: str = "WARNING"
    file: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "level", self.level.upper())
        if self.level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.level}. Must be one of: {VALID_LOG_LEVELS}")


@dataclass(frozen=True)
class GfiConfig:
    scan: ScanOptions = field(default_factory=ScanOptions)
    diff: DiffOptions = field(default_factory=DiffOptions)
    sum: SumOptions = field(default_factory=SumOptions)
    output: OutputOptions = field(default_factory=OutputOptions)
    logging: LoggingOptions = field(default_factory=LoggingOptions)

    @staticmethod
    def from_toml(path: str | Path) -> "GfiConfig":
        data = tomllib.loads(Path(path).read_text(encoding="utf-8"))
        scan = data.get("scan", {})
        diff = data.get("diff", {})
        sm = data.get("sum", {})
        out = data.get("output", {})
        log = data.get("logging", {})

        return GfiConfig(
            scan=ScanOptions(
                include=scan.get("include", []),
                exclude=scan.get("exclude", []),
                kind=scan.get("kind", "both"),
                skip_errors=bool(scan.get("skip_errors", False)),
                sort=bool(scan.get("sort", False)),
                workers=scan.get("workers"),
                queue_depth=int(scan.get("queue_depth", 1)),
                host=scan.get("host", ""),
            ),
            diff=DiffOptions(
                include=diff.get("include", []),
                exclude=diff.get("exclude", []),
                kind=diff.get("kind", "both"),
                sort_columns=diff.get("sort_columns", [0, 1]),
                workers=diff.get("workers"),
            ),
            sum=SumOptions(
                key_column=int(sm.get("key_column", 0)),
                value_column=int(sm.get("value_column", 1)),
                delimiter=sm.get("delimiter", "\t"),
                encoding=sm.get("encoding", "utf-8"),
                include=sm.get("include", []),
                exclude=sm.get("exclude", []),
                sort_columns=sm.get("sort_columns", [0]),
                workers=sm.get("workers"),
            ),
            output=OutputOptions(
                directory=out.get("directory", "."),
                format=out.get("format", "csv"),
                delimiter=out.get("delimiter", ","),
                encoding=out.get("encoding", "utf-8"),
            ),
            logging=LoggingOptions(
                level=log.get("level", "WARNING"),
                file=log.get("file"),
            ),
        )


def load_config(path: str | Path | None) -> GfiConfig:
    """Load configuration from TOML; a missing file yields the defaults."""
    if path is None or not Path(_expand(str(path))).exists():
        return GfiConfig()
    return GfiConfig.from_toml(_expand(str(path)))
