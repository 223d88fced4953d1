"""zk: a zettelkasten index kept in sync with the notes on disk."""

__version__ = "0.1.0"

from zk.config import ZkConfig, load_config
from zk.frontmatter import HeaderTemplate, parse_header, read_header, render
from zk.index import IndexContents, IndexMeta, ZettelIndex
from zk.note import Note, NoteMeta, new_note
from zk.sync import SyncReport, sync

__all__ = [
    "HeaderTemplate",
    "IndexContents",
    "IndexMeta",
    "Note",
    "NoteMeta",
    "SyncReport",
    "ZettelIndex",
    "ZkConfig",
    "load_config",
    "new_note",
    "parse_header",
    "read_header",
    "render",
    "sync",
]
