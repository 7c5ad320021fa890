"""
Tests for TOML configuration loading and validation.
"""

from pathlib import Path

import pytest

from gfi.config import DiffOptions, GfiConfig, LoggingOptions, OutputOptions, ScanOptions, SumOptions, load_config
from gfi.filters import KindFilter


def _write(tmp_path: Path, text: str) -> Path:
    p = tmp_path / "gfi.toml"
    p.write_text(text, encoding="utf-8")
    return p


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path: Path):
        assert load_config(tmp_path / "nope.toml") == GfiConfig()
        assert load_config(None) == GfiConfig()

    def test_sections_are_read(self, tmp_path: Path):
        p = _write(
            tmp_path,
            """
[scan]
include = ["\\\\.txt$"]
kind = "files"
workers = 4
host = "fs01"

[diff]
sort_columns = [2, 0]

[sum]
key_column = 1
value_column = 2
delimiter = ","

[output]
directory = "out"
format = "json"
encoding = "shift_jis"

[logging]
level = "debug"
file = "logs/gfi.log"
""",
        )
        cfg = load_config(p)

        assert cfg.scan.include == (r"\.txt$",)
        assert cfg.scan.kind is KindFilter.FILES
        assert cfg.scan.workers == 4
        assert cfg.scan.host == "fs01"
        assert cfg.diff.sort_columns == (2, 0)
        assert (cfg.sum.key_column, cfg.sum.value_column, cfg.sum.delimiter) == (1, 2, ",")
        assert cfg.output.directory == Path("out")
        assert cfg.output.format == "json"
        assert cfg.logging.level == "DEBUG"
        assert cfg.logging.file == "logs/gfi.log"

    def test_unset_sections_keep_defaults(self, tmp_path: Path):
        cfg = load_config(_write(tmp_path, "[scan]\nsort = true\n"))
        assert cfg.scan.sort is True
        assert cfg.diff == DiffOptions()
        assert cfg.sum.delimiter == "\t"


class TestValidation:
    def test_bad_kind(self):
        with pytest.raises(ValueError, match="kind"):
            ScanOptions(kind="links")

    @pytest.mark.parametrize("workers", [0, -1, 5000])
    def test_bad_workers(self, workers):
        with pytest.raises(ValueError, match="workers"):
            DiffOptions(workers=workers)

    def test_bad_queue_depth(self):
        with pytest.raises(ValueError):
            ScanOptions(queue_depth=0)

    def test_negative_sort_column(self):
        with pytest.raises(ValueError):
            SumOptions(sort_columns=(-1,))

    def test_bad_format(self):
        with pytest.raises(ValueError, match="format"):
            OutputOptions(format="xml")

    def test_multi_char_delimiter(self):
        with pytest.raises(ValueError):
            OutputOptions(delimiter="||")

    def test_bad_log_level(self):
        with pytest.raises(ValueError):
            LoggingOptions(level="LOUD")

    def test_filters_built_from_options(self):
        flt = ScanOptions(include=("keep",), exclude=("skip",)).entry_filter()
        assert flt.match_key("/keep/a")
        assert not flt.match_key("/keep/skip")
