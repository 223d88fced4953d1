"""Exception hierarchy for zk.

Every error the core raises on purpose derives from :class:`ZkError`.
Plain I/O failures are not wrapped; they surface as the built-in
:class:`OSError` subclasses.
"""

from __future__ import annotations


class ZkError(Exception):
    """Base class for all zk errors."""


# ---------------------------------------------------------------------------
# Header (frontmatter) errors
# ---------------------------------------------------------------------------


class HeaderError(ZkError):
    """A note header could not be read."""


class MissingOpenDelimiter(HeaderError):
    def __init__(self, delimiter: str = "---") -> None:
        super().__init__(f"missing initial delimiter {delimiter}")


class MissingCloseDelimiter(HeaderError):
    def __init__(self, delimiter: str = "---") -> None:
        super().__init__(f"missing final delimiter {delimiter}")


class HeaderParseError(HeaderError):
    """The header block is not a valid YAML mapping."""


# ---------------------------------------------------------------------------
# Template / index errors
# ---------------------------------------------------------------------------


class UnknownField(ZkError):
    """A template references a metadata field that does not exist."""

    def __init__(self, token: str) -> None:
        super().__init__(f"unknown field {token!r}")
        self.token = token


class NotFound(ZkError):
    def __init__(self, zettel_id: str) -> None:
        super().__init__(f"no zettel with id {zettel_id}")
        self.zettel_id = zettel_id


class AlreadyExists(ZkError):
    def __init__(self, path: object) -> None:
        super().__init__(f"path already exists: {path}")
        self.path = path


class UnsupportedFormat(ZkError):
    """The index file suffix (or configured format name) is not recognized."""


class IndexParseError(ZkError):
    """The index file is structurally invalid."""


class ConfigError(ZkError):
    """``_zettel.toml`` contains a value of the wrong shape."""
