"""DuckDB index file (``_zettel.duckdb``).

The index is kept in three tables of a single-file DuckDB database:

- ``meta``     – one row with the index ``created`` / ``modified`` timestamps
- ``template`` – header template entries, ordered by ``pos``
- ``zettels``  – one row per note

Timestamps are stored as ISO-8601 strings so the UTC offset written by the
clock survives the round trip unchanged.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import duckdb

from zk.errors import IndexParseError

_ZETTEL_COLUMNS = ("id", "title", "created", "modified", "path")


class DuckDBFormat:
    name = "duckdb"
    suffixes = (".duckdb", ".db")

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def load(self, path: Path) -> dict[str, Any]:
        try:
            conn = duckdb.connect(str(path), read_only=True)
        except duckdb.Error as exc:
            raise IndexParseError(f"{path}: {exc}") from exc
        try:
            meta = conn.execute("SELECT created, modified FROM meta").fetchone()
            template = conn.execute("SELECT key, source FROM template ORDER BY pos").fetchall()
            rows = conn.execute(
                f"SELECT {', '.join(_ZETTEL_COLUMNS)} FROM zettels ORDER BY id"
            ).fetchall()
        except duckdb.Error as exc:
            raise IndexParseError(f"{path}: {exc}") from exc
        finally:
            conn.close()

        if meta is None:
            raise IndexParseError(f"{path}: meta table is empty")
        return {
            "meta": {"created": meta[0], "modified": meta[1]},
            "template": {key: source for key, source in template},
            "zettels": {row[0]: dict(zip(_ZETTEL_COLUMNS, row)) for row in rows},
        }

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def dump(self, data: dict[str, Any], path: Path) -> None:
        conn = duckdb.connect(str(path))
        try:
            self._create_schema(conn)
            meta = data["meta"]
            conn.execute("INSERT INTO meta VALUES (?, ?)", [meta["created"], meta["modified"]])

            template_rows = [
                (pos, key, source) for pos, (key, source) in enumerate(data["template"].items())
            ]
            if template_rows:
                conn.executemany("INSERT INTO template VALUES (?, ?, ?)", template_rows)

            zettel_rows = [
                tuple(entry[col] for col in _ZETTEL_COLUMNS) for entry in data["zettels"].values()
            ]
            if zettel_rows:
                conn.executemany("INSERT INTO zettels VALUES (?, ?, ?, ?, ?)", zettel_rows)
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _create_schema(conn: duckdb.DuckDBPyConnection) -> None:
        conn.execute("""
            CREATE OR REPLACE TABLE meta (
                created  VARCHAR NOT NULL,
                modified VARCHAR NOT NULL
            )
        """)
        conn.execute("""
            CREATE OR REPLACE TABLE template (
                pos    INTEGER PRIMARY KEY,
                key    VARCHAR NOT NULL,
                source VARCHAR NOT NULL
            )
        """)
        conn.execute("""
            CREATE OR REPLACE TABLE zettels (
                id       VARCHAR PRIMARY KEY,
                title    VARCHAR NOT NULL,
                created  VARCHAR NOT NULL,
                modified VARCHAR NOT NULL,
                path     VARCHAR NOT NULL
            )
        """)
