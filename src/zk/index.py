"""ZettelIndex: the side-file index of every known zettel.

The index lives in one file at the collection root (``_zettel.yaml`` by
default) and holds the index timestamps, the header template used for new
notes, and an ``id -> NoteMeta`` map.  All mutations happen in memory;
nothing reaches disk until :meth:`ZettelIndex.commit`.

``commit`` overwrites the file in place and is not atomic: a crash while
writing can leave a truncated index behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterator

from zk.config import ZkConfig
from zk.errors import AlreadyExists, IndexParseError, NotFound
from zk.formats import IndexFormat, format_for_path, format_named
from zk.frontmatter import HeaderTemplate, render
from zk.note import Note, NoteMeta, parse_timestamp

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

#: every file whose name starts with this belongs to zk, not to the notes
INDEX_PREFIX = "_zettel"
#: looked up in this order when opening a directory
INDEX_FILENAMES = tuple(f"{INDEX_PREFIX}{suffix}" for suffix in (".yaml", ".yml", ".json", ".duckdb"))


def local_now() -> datetime:
    """Timezone-aware local time; the default clock."""
    return datetime.now().astimezone()


def find_index_file(root: Path) -> Path | None:
    """Return the conventional index file inside *root*, if there is one."""
    for name in INDEX_FILENAMES:
        candidate = Path(root) / name
        if candidate.is_file():
            return candidate
    return None


# ---------------------------------------------------------------------------
# Persisted contents
# ---------------------------------------------------------------------------


@dataclass
class IndexMeta:
    created: datetime
    modified: datetime

    def to_dict(self) -> dict[str, str]:
        return {"created": self.created.isoformat(), "modified": self.modified.isoformat()}


@dataclass
class IndexContents:
    """Everything that gets serialized into the index file."""

    meta: IndexMeta
    template: HeaderTemplate
    zettels: dict[str, NoteMeta] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "meta": self.meta.to_dict(),
            "template": self.template.to_mapping(),
            # sorted so identical indexes always serialize identically
            "zettels": {zid: self.zettels[zid].to_dict() for zid in sorted(self.zettels)},
        }

    @classmethod
    def from_dict(cls, data: Any) -> "IndexContents":
        """Validate and build contents from a format's raw dict."""
        if not isinstance(data, dict):
            raise IndexParseError(f"index must be a mapping, got {type(data).__name__}")
        try:
            meta = IndexMeta(
                created=parse_timestamp(data["meta"]["created"]),
                modified=parse_timestamp(data["meta"]["modified"]),
            )
            template = HeaderTemplate.from_mapping(data["template"] or {})
            zettels: dict[str, NoteMeta] = {}
            for zid, entry in (data["zettels"] or {}).items():
                entry = {"id": zid, **entry}
                note_meta = NoteMeta.from_dict(entry)
                if note_meta.id != zid:
                    raise IndexParseError(f"entry {zid!r} carries mismatched id {note_meta.id!r}")
                zettels[zid] = note_meta
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise IndexParseError(f"invalid index structure: {exc!r}") from exc
        return cls(meta=meta, template=template, zettels=zettels)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class ZettelIndex:
    """In-memory index bound to a collection root and a backing file."""

    def __init__(
        self,
        root: Path,
        contents: IndexContents,
        *,
        db_name: str,
        index_format: IndexFormat,
        clock: Clock = local_now,
    ) -> None:
        self.root = Path(root)
        self.contents = contents
        #: index file path relative to ``root``
        self.db_name = db_name
        self.format = index_format
        self.clock = clock

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def open(cls, path: Path, *, clock: Clock = local_now) -> "ZettelIndex | None":
        """Load an index from a file, or from the conventional file in a directory.

        Returns ``None`` when there is no index to load; callers decide
        whether to create one.
        """
        path = Path(path)
        if not path.exists():
            return None
        if path.is_dir():
            db_file = find_index_file(path)
            if db_file is None:
                return None
        else:
            db_file = path

        index_format = format_for_path(db_file)
        contents = IndexContents.from_dict(index_format.load(db_file))
        logger.debug("loaded %d zettels from %s", len(contents.zettels), db_file)
        return cls(
            db_file.parent,
            contents,
            db_name=db_file.name,
            index_format=index_format,
            clock=clock,
        )

    @classmethod
    def create(cls, config: ZkConfig, *, clock: Clock = local_now) -> "ZettelIndex":
        """Build a fresh, empty index.  Nothing is written until :meth:`commit`."""
        config.root.mkdir(parents=True, exist_ok=True)
        for subdir in config.subdirs:
            (config.root / subdir).mkdir(parents=True, exist_ok=True)
        index_format = format_named(config.format)
        now = clock()
        contents = IndexContents(meta=IndexMeta(created=now, modified=now), template=config.template)
        return cls(
            config.root,
            contents,
            db_name=f"{INDEX_PREFIX}{index_format.suffixes[0]}",
            index_format=index_format,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def zettels(self) -> dict[str, NoteMeta]:
        return self.contents.zettels

    @property
    def template(self) -> HeaderTemplate:
        return self.contents.template

    @property
    def meta(self) -> IndexMeta:
        return self.contents.meta

    @property
    def db_path(self) -> Path:
        return self.root / self.db_name

    def abs_path(self, rel_path: str) -> Path:
        """Absolute location of a root-relative note path."""
        return self.root / rel_path

    def path_to(self, zettel_id: str) -> Path:
        return self.abs_path(self.get(zettel_id).path)

    def __len__(self) -> int:
        return len(self.contents.zettels)

    def __contains__(self, zettel_id: object) -> bool:
        return zettel_id in self.contents.zettels

    def __iter__(self) -> Iterator[NoteMeta]:
        return iter(self.contents.zettels.values())

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def add(self, note: Note) -> Path:
        """Write *note* to disk and register its metadata.

        Raises :class:`AlreadyExists` (nothing written, nothing registered)
        when the target file is already there.  Returns the file written.
        """
        path = self.abs_path(note.meta.path)
        if path.exists():
            raise AlreadyExists(path)
        text = render(self.template, note.meta, note.body)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "x", encoding="utf-8") as fh:
            fh.write(text)
        self.contents.zettels[note.meta.id] = note.meta
        self.touch()
        logger.debug("added zettel %s at %s", note.meta.id, note.meta.path)
        return path

    def get(self, zettel_id: str) -> NoteMeta:
        try:
            return self.contents.zettels[zettel_id]
        except KeyError:
            raise NotFound(zettel_id) from None

    def remove(self, meta: NoteMeta) -> None:
        """Delete the note file for *meta* and drop its entry.

        Only meant to roll back a just-added note, so a missing file is an
        error (``FileNotFoundError``) rather than a no-op.
        """
        self.abs_path(meta.path).unlink()
        self.contents.zettels.pop(meta.id, None)
        logger.debug("removed zettel %s at %s", meta.id, meta.path)

    def touch(self) -> None:
        """Bump the index ``modified`` timestamp."""
        self.contents.meta.modified = self.clock()

    def commit(self) -> None:
        """Overwrite the index file with the in-memory contents."""
        self.format.dump(self.contents.to_dict(), self.db_path)
        logger.debug("committed %d zettels to %s", len(self), self.db_path)
