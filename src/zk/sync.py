"""Reconcile the index with the notes actually present on disk.

``sync`` walks the collection root and, for every note whose header
carries a known ``id``, re-links the index entry to wherever the file now
lives and picks up a changed ``title``.  Files it cannot use are reported
and skipped; one bad file never stops the pass.

Files with an ``id`` the index does not know are *not* registered; they
are reported as unregistered.  Sync only touches memory, so callers
``commit()`` afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

from zk.errors import HeaderError
from zk.frontmatter import read_header
from zk.index import INDEX_PREFIX, ZettelIndex

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


@dataclass
class SyncDiagnostic:
    #: root-relative path of the skipped file
    path: str
    reason: str


@dataclass
class Relink:
    id: str
    old_path: str
    new_path: str

    def __str__(self) -> str:
        return f"{self.old_path} -> {self.new_path}"


@dataclass
class Retitle:
    id: str
    old_title: str
    new_title: str


@dataclass
class SyncReport:
    scanned: int = 0
    relinked: list[Relink] = field(default_factory=list)
    retitled: list[Retitle] = field(default_factory=list)
    diagnostics: list[SyncDiagnostic] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.relinked or self.retitled)

    def skip(self, path: str, reason: str) -> None:
        logger.warning("skipping %s: %s", path, reason)
        self.diagnostics.append(SyncDiagnostic(path, reason))


# ---------------------------------------------------------------------------
# Walk
# ---------------------------------------------------------------------------


def _is_ignored(path: Path) -> bool:
    return path.name.startswith(INDEX_PREFIX) or path.name.startswith(".")


def iter_note_files(root: Path) -> Iterator[Path]:
    """Yield every candidate note file under *root*, depth first, sorted by name.

    Symlinked directories are not descended into.
    """
    for path in sorted(Path(root).iterdir()):
        if _is_ignored(path):
            continue
        if path.is_dir():
            if path.is_symlink():
                logger.debug("not following symlinked directory %s", path)
                continue
            yield from iter_note_files(path)
        elif path.is_file():
            yield path


def sync(index: ZettelIndex) -> SyncReport:
    """Refresh ``path`` and ``title`` of every registered note found on disk.

    When several files carry the same id, the one the index already points
    at is kept; failing that, the first in walk order.
    """
    report = SyncReport()
    found: dict[str, list[tuple[str, dict[str, Any]]]] = {}
    for path in iter_note_files(index.root):
        report.scanned += 1
        rel_path = path.relative_to(index.root).as_posix()
        zettel_id, header = _read_registered(index, path, rel_path, report)
        if zettel_id is not None:
            found.setdefault(zettel_id, []).append((rel_path, header))

    for zettel_id, copies in found.items():
        _apply(index, zettel_id, copies, report)

    if report.changed:
        index.touch()
    logger.info(
        "sync scanned %d files: %d relinked, %d retitled, %d skipped",
        report.scanned,
        len(report.relinked),
        len(report.retitled),
        len(report.diagnostics),
    )
    return report


def _read_registered(
    index: ZettelIndex, path: Path, rel_path: str, report: SyncReport
) -> tuple[str | None, dict[str, Any]]:
    """Return ``(id, header)`` for a note with a registered id, else ``(None, {})``."""
    try:
        header = read_header(path)
    except (HeaderError, UnicodeDecodeError, OSError) as exc:
        report.skip(rel_path, f"frontmatter error: {exc}")
        return None, {}

    zettel_id = header.get("id")
    if zettel_id is None:
        report.skip(rel_path, "missing key 'id' in frontmatter")
        return None, {}
    if not isinstance(zettel_id, str):
        report.skip(rel_path, "'id' in frontmatter is not a string")
        return None, {}
    if zettel_id not in index.zettels:
        report.skip(rel_path, f"unregistered id {zettel_id}")
        return None, {}
    return zettel_id, header


def _apply(
    index: ZettelIndex,
    zettel_id: str,
    copies: list[tuple[str, dict[str, Any]]],
    report: SyncReport,
) -> None:
    meta = index.zettels[zettel_id]
    rel_path, header = next((c for c in copies if c[0] == meta.path), copies[0])
    for other, _ in copies:
        if other != rel_path:
            report.skip(other, f"duplicate id {zettel_id} (already at {rel_path})")

    if meta.path != rel_path:
        report.relinked.append(Relink(zettel_id, meta.path, rel_path))
        meta.path = rel_path

    title = header.get("title")
    if isinstance(title, str) and title != meta.title:
        report.retitled.append(Retitle(zettel_id, meta.title, title))
        meta.title = title
