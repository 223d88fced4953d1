"""YAML frontmatter codec.

A note file looks like::

    ---
    title: My Note
    id: 4kq0c2m9x7b1d3f5h8
    date: '2022-01-02'
    ---

    Body text.

:func:`parse_header` splits the header from the body, :func:`render`
produces a note from a :class:`HeaderTemplate` and a note's metadata.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Mapping

import yaml

from zk.errors import (
    HeaderParseError,
    MissingCloseDelimiter,
    MissingOpenDelimiter,
    UnknownField,
)

if TYPE_CHECKING:
    from zk.note import NoteMeta

DELIMITER = "---"
REFERENCE_MARKER = "@"
DATE_FORMAT = "%Y-%m-%d"

_REFERENCES = ("title", "id", "created")


# ---------------------------------------------------------------------------
# Template
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HeaderTemplate:
    """Ordered ``(output_key, source)`` pairs.

    A source starting with ``@`` references a metadata field (``@title``,
    ``@id`` or ``@created``); anything else is copied verbatim.
    """

    entries: tuple[tuple[str, str], ...]

    @classmethod
    def default(cls) -> "HeaderTemplate":
        return cls((("title", "@title"), ("id", "@id"), ("date", "@created")))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "HeaderTemplate":
        entries: list[tuple[str, str]] = []
        for key, source in mapping.items():
            if not isinstance(key, str) or not isinstance(source, str):
                raise TypeError(f"template entries must be strings, got {key!r}: {source!r}")
            entries.append((key, source))
        return cls(tuple(entries))

    def to_mapping(self) -> dict[str, str]:
        return dict(self.entries)

    def items(self) -> Iterator[tuple[str, str]]:
        return iter(self.entries)

    def validate(self) -> None:
        """Raise :class:`UnknownField` for any unsupported reference token."""
        for _, source in self.entries:
            if is_reference(source) and source[1:] not in _REFERENCES:
                raise UnknownField(source)

    def __len__(self) -> int:
        return len(self.entries)


def is_reference(source: str) -> bool:
    return source.startswith(REFERENCE_MARKER)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _strip_eol(line: str) -> str:
    return line.rstrip("\r\n")


def _collect(lines: Iterable[str]) -> tuple[str, int]:
    """Consume header lines; return the YAML block and the consumed length."""
    it = iter(lines)
    first = next(it, None)
    if first is None or _strip_eol(first) != DELIMITER:
        raise MissingOpenDelimiter(DELIMITER)
    consumed = len(first)
    block: list[str] = []
    for line in it:
        consumed += len(line)
        if _strip_eol(line) == DELIMITER:
            return "".join(block), consumed
        block.append(_strip_eol(line) + "\n")
    raise MissingCloseDelimiter(DELIMITER)


def _load_mapping(block: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise HeaderParseError(str(exc)) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise HeaderParseError(f"header is a {type(data).__name__}, not a mapping")
    return data


def parse_header(text: str) -> tuple[dict[str, Any], int]:
    """Split the YAML header from *text*.

    Returns ``(mapping, body_offset)`` where ``text[body_offset:]`` is the
    body, left unparsed.  Lines end at ``\\n``, ``\\r\\n`` or ``\\r`` only,
    exactly as :func:`read_header` splits a file.
    """
    block, offset = _collect(io.StringIO(text, newline=""))
    return _load_mapping(block), offset


def read_header(path: Path) -> dict[str, Any]:
    """Read only the header of the note at *path*; the body is never loaded."""
    with open(path, encoding="utf-8", newline="") as fh:
        block, _ = _collect(fh)
    return _load_mapping(block)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _resolve(source: str, meta: "NoteMeta") -> str:
    if not is_reference(source):
        return source
    field_name = source[len(REFERENCE_MARKER) :]
    if field_name == "title":
        return meta.title
    if field_name == "id":
        return meta.id
    if field_name == "created":
        return meta.created.strftime(DATE_FORMAT)
    raise UnknownField(source)


def render_header(template: HeaderTemplate, meta: "NoteMeta") -> dict[str, str]:
    return {key: _resolve(source, meta) for key, source in template.items()}


# YAML folds these inside plain and single-quoted scalars.
_LINE_BREAKS = frozenset("\r\n\x85\u2028\u2029")


class _HeaderDumper(yaml.SafeDumper):
    """SafeDumper that double-quotes (and so escapes) strings with line breaks."""


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    if _LINE_BREAKS.intersection(data):
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style='"')
    return dumper.represent_str(data)


_HeaderDumper.add_representer(str, _represent_str)


def render(template: HeaderTemplate, meta: "NoteMeta", body: str) -> str:
    """Render a full note: header built from *template*, then *body*."""
    header = render_header(template, meta)
    block = yaml.dump(
        header,
        Dumper=_HeaderDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    return f"{DELIMITER}\n{block}{DELIMITER}\n\n{body}"
