"""Backing-format protocol for the index file."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class IndexFormat(Protocol):
    """Common interface shared by all index file formats.

    Implementations (YAML, JSON, DuckDB) exchange plain dicts of the shape::

        {"meta": {...}, "template": {...}, "zettels": {id: {...}}}

    so :class:`zk.index.ZettelIndex` never sees format-specific types.
    """

    #: short name used in ``_zettel.toml`` (``format = "yaml"``)
    name: str
    #: filename suffixes handled, first one is used for new indexes
    suffixes: tuple[str, ...]

    def load(self, path: Path) -> dict[str, Any]:
        """Read the index at *path*; raise :class:`IndexParseError` if unreadable."""
        ...

    def dump(self, data: dict[str, Any], path: Path) -> None:
        """Overwrite *path* with *data*."""
        ...
