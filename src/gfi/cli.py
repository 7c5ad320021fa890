from __future__ import annotations

import dataclasses
import logging
import tomllib
from datetime import datetime
from pathlib import Path

import typer

from .config import GfiConfig, load_config
from .errors import GfiError
from .filters import EntryFilter, KindFilter
from .paths import expand_globs
from .reconcile.aggregate import ColumnAggregator
from .reconcile.engine import Reconciler
from .reconcile.sorting import parse_sort_columns, sort_rows
from .scanner.builder import InventoryBuilder
from .scanner.sizer import SIZE_HEADER, summarize_directories
from .snapshot import load_inventory, write_inventory
from .tables import write_table

app = typer.Typer(add_completion=False, no_args_is_help=True)

logger = logging.getLogger("gfi")


def _setup_logging(log_file: str | None, log_level: str, verbose: bool) -> None:
    """Configure the `gfi` logger: console always, rotating file when asked."""
    level = logging.DEBUG if verbose else getattr(logging, log_level.upper(), logging.WARNING)

    fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"

    handlers: list[logging.Handler] = []

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(fmt, datefmt))
    handlers.append(console)

    if log_file:
        from logging.handlers import RotatingFileHandler
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file, maxBytes=10 * 1024 * 1024, backupCount=5
        )
        file_handler.setFormatter(logging.Formatter(fmt, datefmt))
        handlers.append(file_handler)

    logger.handlers.clear()
    logger.setLevel(level)
    for h in handlers:
        logger.addHandler(h)


def _cfg(ctx: typer.Context) -> GfiConfig:
    return ctx.obj


def _default_out(cfg: GfiConfig, ext: str) -> str:
    now = datetime.now()
    name = f"{now.strftime('%Y%m%d-%H%M%S')}.{now.microsecond // 1000:03d}.{ext}"
    return str(cfg.output.directory / name)


def _fail(e: Exception) -> typer.Exit:
    logger.error(str(e))
    typer.echo(f"Error: {e}", err=True)
    return typer.Exit(code=1)


def _overrides(**values) -> dict:
    """Drop options the user did not give so config values stay in effect."""
    return {k: v for k, v in values.items() if v not in (None, [], ())}


@app.callback()
def main(
    ctx: typer.Context,
    config: str = typer.Option("gfi.toml", "--config", help="Config file (TOML); defaults apply when missing"),
    log_level: str = typer.Option(None, "--log-level", help="Log level: DEBUG, INFO, WARNING, ERROR"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose (DEBUG) logging"),
    log_file: str = typer.Option(None, "--log-file", help="Also write logs to this file"),
):
    """Get file information, and diff or sum the outputs."""
    try:
        cfg = load_config(config)
    except (ValueError, tomllib.TOMLDecodeError) as e:
        raise typer.BadParameter(f"Invalid config [{config}]: {e}", param_hint="--config")
    _setup_logging(log_file or cfg.logging.file, log_level or cfg.logging.level, verbose)
    ctx.obj = cfg


@app.command()
def get(
    ctx: typer.Context,
    roots: list[str] = typer.Argument(..., help="Directories to scan (globs allowed)"),
    out: str = typer.Option(None, "--out", "-o", help="Output path"),
    sort: bool = typer.Option(False, "--sort", "-s", help="Sort entries by full path"),
    files: bool = typer.Option(False, "--file", "-f", help="Get information file only"),
    dirs: bool = typer.Option(False, "--dir", "-d", help="Get information directory only"),
    skip_errors: bool = typer.Option(False, "--err", "-e", help="Skip getting file information on error"),
    match: list[str] = typer.Option(None, "--match", "-m", help="Match list (Regexp)"),
    ignore: list[str] = typer.Option(None, "--ignore", "-i", help="Ignore list (Regexp)"),
    host: str = typer.Option(None, "--host", help="Scan through the admin shares of this host"),
    fmt: str = typer.Option(None, "--format", help="csv or json"),
    delimiter: str = typer.Option(None, "--delimiter", "-D", help="Csv delimiter"),
    encoding: str = typer.Option(None, "--encoding", help="Output encoding (e.g. utf-8, shift_jis)"),
    workers: int = typer.Option(None, "--workers", help="Parallel directory listings (default: CPU count)"),
):
    """Scan directories and write an inventory snapshot."""
    cfg = _cfg(ctx)
    try:
        scan = dataclasses.replace(cfg.scan, **_overrides(
            include=match,
            exclude=ignore,
            kind=KindFilter.from_flags(files, dirs) if (files or dirs) else None,
            skip_errors=skip_errors or None,
            sort=sort or None,
            host=host,
            workers=workers,
        ))
        output = dataclasses.replace(cfg.output, **_overrides(format=fmt, delimiter=delimiter, encoding=encoding))
    except ValueError as e:
        raise typer.BadParameter(str(e))

    builder = InventoryBuilder(scan)
    try:
        inventory = builder.build(expand_globs(roots))
    except GfiError as e:
        raise _fail(e)

    if inventory.count == 0:
        typer.echo("There is no information to get.")
        return

    path = out or _default_out(cfg, output.format)
    try:
        n = write_inventory(inventory, path, output.format, output.delimiter, output.encoding)
    except GfiError as e:
        raise _fail(e)
    if builder.stats.errors_skipped:
        typer.echo(f"  ({builder.stats.errors_skipped} unreadable entries skipped)")
    typer.echo(f"Write to [{path}]. ([{n}] row)")


@app.command()
def diff(
    ctx: typer.Context,
    snapshots: list[str] = typer.Argument(..., help="Snapshots to compare (csv or json, globs allowed)"),
    out: str = typer.Option(None, "--out", "-o", help="Output path"),
    sorts: str = typer.Option(None, "--sorts", "-s", help="Sort target column number with comma separated (ex: 1,2,0)"),
    files: bool = typer.Option(False, "--file", "-f", help="Compare files only"),
    dirs: bool = typer.Option(False, "--dir", "-d", help="Compare directories only"),
    match: list[str] = typer.Option(None, "--match", "-m", help="Match list (Regexp)"),
    ignore: list[str] = typer.Option(None, "--ignore", "-i", help="Ignore list (Regexp)"),
    delimiter: str = typer.Option(None, "--delimiter", "-D", help="Csv delimiter of inputs and output"),
    encoding: str = typer.Option(None, "--encoding", help="Encoding of inputs and output"),
):
    """Diff snapshots created by `gfi get`."""
    cfg = _cfg(ctx)
    paths = expand_globs(snapshots)
    try:
        opts = dataclasses.replace(cfg.diff, **_overrides(
            include=match,
            exclude=ignore,
            kind=KindFilter.from_flags(files, dirs) if (files or dirs) else None,
            sort_columns=parse_sort_columns(sorts) if sorts is not None else None,
        ))
        output = dataclasses.replace(cfg.output, **_overrides(delimiter=delimiter, encoding=encoding))
    except (ValueError, GfiError) as e:
        raise typer.BadParameter(str(e))

    try:
        inventories = [load_inventory(p, output.delimiter, output.encoding) for p in paths]
        result = Reconciler(opts).reconcile(inventories, sources=paths)
    except GfiError as e:
        raise _fail(e)

    if result.is_empty:
        typer.echo("There is no difference !")
        return

    path = out or _default_out(cfg, "csv")
    try:
        n = write_table(path, result.header, result.rows, output.delimiter, output.encoding)
    except GfiError as e:
        raise _fail(e)
    typer.echo(f"Write to [{path}]. ([{n}] row)")


@app.command(name="sum")
def sum_(
    ctx: typer.Context,
    tables: list[str] = typer.Argument(..., help="Tables to put together (globs allowed)"),
    out: str = typer.Option(None, "--out", "-o", help="Output path"),
    key: int = typer.Option(None, "--key", "-k", help="Key column number (default is 0)"),
    val: int = typer.Option(None, "--val", "-v", help="Value column number (default is 1)"),
    delimiter: str = typer.Option(None, "--delimiter", "-D", help="Input csv delimiter (default is TAB)"),
    sorts: str = typer.Option(None, "--sorts", "-s", help="Sort target column number with comma separated (ex: 0,1,2)"),
    match: list[str] = typer.Option(None, "--match", "-m", help="Match list for keys (Regexp)"),
    ignore: list[str] = typer.Option(None, "--ignore", "-i", help="Ignore list for keys (Regexp)"),
    encoding: str = typer.Option(None, "--encoding", help="Input encoding"),
):
    """Output tables put together on a key column."""
    cfg = _cfg(ctx)
    paths = expand_globs(tables)
    try:
        opts = dataclasses.replace(cfg.sum, **_overrides(
            key_column=key,
            value_column=val,
            delimiter=delimiter,
            encoding=encoding,
            include=match,
            exclude=ignore,
            sort_columns=parse_sort_columns(sorts) if sorts is not None else None,
        ))
    except (ValueError, GfiError) as e:
        raise typer.BadParameter(str(e))

    try:
        result = ColumnAggregator(opts).aggregate_paths(paths)
    except GfiError as e:
        raise _fail(e)

    if result.is_empty:
        typer.echo("There is no output !")
        return

    path = out or _default_out(cfg, "csv")
    try:
        n = write_table(path, result.header, result.rows, cfg.output.delimiter, cfg.output.encoding)
    except GfiError as e:
        raise _fail(e)
    typer.echo(f"Write to [{path}]. ([{n}] row)")


@app.command()
def size(
    ctx: typer.Context,
    roots: list[str] = typer.Argument(..., help="Directories to measure (globs allowed)"),
    out: str = typer.Option(None, "--out", "-o", help="Output path"),
    sorts: str = typer.Option(None, "--sorts", "-s", help="Sort target column number with comma separated (ex: 1,2,0)"),
    skip_errors: bool = typer.Option(False, "--err", "-e", help="Skip getting directory information on error"),
    match: list[str] = typer.Option(None, "--match", "-m", help="Report directories matching (Regexp)"),
    ignore: list[str] = typer.Option(None, "--ignore", "-i", help="Do not report directories matching (Regexp)"),
):
    """Get the size, file count and directory count of every directory."""
    cfg = _cfg(ctx)
    try:
        # Totals need every entry, so filters only choose which directories are reported.
        scan = dataclasses.replace(
            cfg.scan, include=(), exclude=(), kind=KindFilter.BOTH,
            skip_errors=skip_errors or cfg.scan.skip_errors,
        )
        report = EntryFilter.from_patterns(match or cfg.scan.include, ignore or cfg.scan.exclude)
        columns = parse_sort_columns(sorts) if sorts else ()
    except (ValueError, GfiError) as e:
        raise typer.BadParameter(str(e))

    try:
        inventory = InventoryBuilder(scan).build(expand_globs(roots))
        rows = [d.to_row() for d in summarize_directories(inventory) if report.match_key(d.entry.logical_key)]
        if columns:
            rows = sort_rows(rows, columns)
    except GfiError as e:
        raise _fail(e)

    if not rows:
        typer.echo("There is no information to get.")
        return

    path = out or _default_out(cfg, "tsv")
    try:
        n = write_table(path, SIZE_HEADER, rows, "\t", cfg.output.encoding)
    except GfiError as e:
        raise _fail(e)
    typer.echo(f"Write to [{path}]. ([{n}] row)")


@app.command()
def init(out: str = typer.Option("gfi.toml", help="Write example config to this path")):
    """Write a starter gfi.toml."""
    outp = Path(out)
    outp.write_text("""[scan]
include = []
exclude = ["\\\\.git(/|\\\\\\\\|$)"]
kind = "both"        # both|files|dirs
skip_errors = false
sort = true
# workers = 8        # default: CPU count
# host = "10.0.0.5"  # scan C:\\... through \\\\host\\C$\\...

[diff]
kind = "both"
sort_columns = [0, 1]

[sum]
key_column = 0
value_column = 1
delimiter = "\\t"
sort_columns = [0]

[output]
directory = "."
format = "csv"       # csv|json
delimiter = ","
encoding = "utf-8"   # any Python codec, e.g. shift_jis

[logging]
level = "WARNING"
# file = "logs/gfi.log"
""", encoding="utf-8")
    typer.echo(f"Wrote {outp}")


if __name__ == "__main__":
    app()
