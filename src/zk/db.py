"""IndexDB: tabular view over index metadata.

Uses DuckDB (in-memory) as a query engine over the ``id -> NoteMeta`` map
and returns :mod:`polars` DataFrames.  Only index metadata is loaded; note
bodies are never read.

Usage::

    db = IndexDB(index)

    # Free-form SQL
    df = db.query("SELECT id, title FROM zettels WHERE day >= DATE '2022-01-01'")

    # Pre-built views
    table  = db.table_view(title="meeting", order_by="created")
    counts = db.daily_counts()
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import duckdb
import polars as pl

if TYPE_CHECKING:
    from zk.index import ZettelIndex

COLUMNS = ("id", "title", "created", "modified", "day", "path")
_DEFAULT_COLUMNS = ["id", "title", "day", "path"]


class IndexDB:
    """In-memory DuckDB database over the metadata of a :class:`ZettelIndex`."""

    def __init__(self, index: "ZettelIndex") -> None:
        self.conn: duckdb.DuckDBPyConnection = duckdb.connect(":memory:")
        self.refresh(index)

    # ------------------------------------------------------------------
    # Build / refresh
    # ------------------------------------------------------------------

    def refresh(self, index: "ZettelIndex") -> None:
        """(Re-)populate the database from *index* (call after add or sync)."""
        self._index = index
        self._create_schema()
        self._load_zettels()

    def _create_schema(self) -> None:
        self.conn.execute("""
            CREATE OR REPLACE TABLE zettels (
                id       VARCHAR PRIMARY KEY,
                title    VARCHAR,
                created  VARCHAR,
                modified VARCHAR,
                day      DATE,
                path     VARCHAR
            )
        """)

    def _load_zettels(self) -> None:
        rows = [
            (
                meta.id,
                meta.title,
                meta.created.isoformat(),
                meta.modified.isoformat(),
                meta.created.date(),
                meta.path,
            )
            for meta in self._index.zettels.values()
        ]
        if rows:
            self.conn.executemany("INSERT INTO zettels VALUES (?,?,?,?,?,?)", rows)

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def query(self, sql: str) -> pl.DataFrame:
        """Run a raw SQL query and return a Polars DataFrame."""
        return self.conn.execute(sql).pl()

    def table_view(
        self,
        *,
        title: str | None = None,
        columns: list[str] | None = None,
        order_by: str = "created",
    ) -> pl.DataFrame:
        """Return index entries as a Polars DataFrame.

        Parameters
        ----------
        title:
            Case-insensitive substring filter on titles.
        columns:
            Which columns to include.  Defaults to ``id, title, day, path``.
        order_by:
            Column name to sort by.  Unknown column names raise
            :class:`ValueError`.
        """
        cols = list(columns or _DEFAULT_COLUMNS)
        unknown = [name for name in [*cols, order_by] if name not in COLUMNS]
        if unknown:
            raise ValueError(f"unknown column(s): {', '.join(unknown)}")
        params: list[str] = []
        where = ""
        if title:
            where = "WHERE title ILIKE ?"
            params.append(f"%{title}%")
        sql = f"SELECT {', '.join(cols)} FROM zettels {where} ORDER BY {order_by}, id"
        return self.conn.execute(sql, params).pl()

    def daily_counts(self) -> pl.DataFrame:
        """Return a ``day -> note_count`` table, oldest day first."""
        return self.conn.execute(
            """
            SELECT day, COUNT(*) AS note_count
            FROM zettels
            GROUP BY day
            ORDER BY day
            """
        ).pl()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "IndexDB":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
