"""Index file formats.

One format is picked per process: by name for a new index (see
:mod:`zk.config`), by filename suffix for an existing one.
"""

from __future__ import annotations

from pathlib import Path

from zk.errors import UnsupportedFormat
from zk.formats.base import IndexFormat
from zk.formats.duckdb_format import DuckDBFormat
from zk.formats.json_format import JsonFormat
from zk.formats.yaml_format import YamlFormat

FORMATS: tuple[IndexFormat, ...] = (YamlFormat(), JsonFormat(), DuckDBFormat())


def format_named(name: str) -> IndexFormat:
    for fmt in FORMATS:
        if fmt.name == name:
            return fmt
    raise UnsupportedFormat(f"unrecognized index format {name!r}")


def format_for_path(path: Path) -> IndexFormat:
    suffix = Path(path).suffix.lower()
    if not suffix:
        raise UnsupportedFormat(f"no file suffix for {path}")
    for fmt in FORMATS:
        if suffix in fmt.suffixes:
            return fmt
    raise UnsupportedFormat(f"unrecognized index suffix {suffix}")


__all__ = [
    "FORMATS",
    "IndexFormat",
    "YamlFormat",
    "JsonFormat",
    "DuckDBFormat",
    "format_named",
    "format_for_path",
]
