"""Zettel metadata and the transient Note used when creating one."""

from __future__ import annotations

import re
import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any, Callable

from zk.frontmatter import DATE_FORMAT

ID_LENGTH = 18
ID_ALPHABET = string.digits + string.ascii_lowercase

_FILENAME_UNSAFE_RE = re.compile(r"[\s/\\]+")


def new_id() -> str:
    """Random fixed-length id; collisions are not checked."""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))


def note_filename(title: str, created: datetime) -> str:
    """``<YYYY-MM-DD>-<title-with-dashes>.md``"""
    stem = _FILENAME_UNSAFE_RE.sub("-", title.strip())
    return f"{created.strftime(DATE_FORMAT)}-{stem}.md"


@dataclass
class NoteMeta:
    """Index entry for a single zettel."""

    id: str
    title: str
    created: datetime
    modified: datetime
    #: slash-separated path relative to the collection root
    path: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "created": self.created.isoformat(),
            "modified": self.modified.isoformat(),
            "path": self.path,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NoteMeta":
        """Inverse of :meth:`to_dict`; raises ``KeyError``/``TypeError``/``ValueError``."""
        return cls(
            id=_require_str(data, "id"),
            title=_require_str(data, "title"),
            created=parse_timestamp(data["created"]),
            modified=parse_timestamp(data["modified"]),
            path=_require_str(data, "path"),
        )


@dataclass
class Note:
    """A zettel about to be written: metadata plus body."""

    meta: NoteMeta
    body: str = ""


def new_note(
    title: str,
    created: datetime,
    *,
    body: str = "",
    subdir: str | None = None,
    id_factory: Callable[[], str] = new_id,
) -> Note:
    """Build a :class:`Note` with a fresh id and a date-prefixed filename."""
    filename = note_filename(title, created)
    path = PurePosixPath(subdir) / filename if subdir else PurePosixPath(filename)
    meta = NoteMeta(
        id=id_factory(),
        title=title,
        created=created,
        modified=created,
        path=path.as_posix(),
    )
    return Note(meta=meta, body=body)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_timestamp(value: Any) -> datetime:
    # YAML may already hand us a datetime when the value was written unquoted
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise TypeError(f"expected an ISO timestamp, got {value!r}")
    return datetime.fromisoformat(value)


def _require_str(data: dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"{key!r} must be a string, got {value!r}")
    return value
