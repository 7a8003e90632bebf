"""SQLite-backed metric store.

The store owns the single connection to the database. It is created once per
run and injected into the engine and the batch writer; nothing else opens the
database.

Transactions are explicit: the connection runs in autocommit mode
(`isolation_level=None`) and `begin()` / `commit()` / `rollback()` issue the
statements themselves, so "is a transaction open" is always answered by
`in_transaction`.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

from ..exceptions import StorageError
from .schema import (
    INDEXES,
    TABLES_SQL,
    MetricRecord,
    MetricValue,
    ReleaseFile,
    create_index_sql,
    drop_index_sql,
    index_name,
)

logger = logging.getLogger("corpus_metrics.store")


class MetricStore:
    """SQLite store for metric records and release file listings."""

    def __init__(self, path: str = ":memory:", wal_mode: bool = False):
        """Open (creating if needed) the database at `path`.

        Args:
            path: SQLite file path, or ":memory:" for a throwaway store
            wal_mode: If True, enable WAL journaling
        """
        self.path = path
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)

        self.conn = sqlite3.connect(path, isolation_level=None, timeout=30.0)
        self.conn.row_factory = sqlite3.Row
        if wal_mode:
            self.conn.execute("PRAGMA journal_mode=WAL")

        self._init_schema()
        logger.info(f"Opened metric store at {self.path}")

    def _init_schema(self) -> None:
        # Indexes are only created with a fresh schema; a deliberate drop persists.
        fresh = self.conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'file_metric'"
        ).fetchone() is None
        self.conn.executescript(TABLES_SQL)
        if fresh:
            self.create_indexes()

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #

    @property
    def in_transaction(self) -> bool:
        return self.conn.in_transaction

    def begin(self) -> None:
        if self.conn.in_transaction:
            raise StorageError("A transaction is already open")
        self._execute("BEGIN")

    def commit(self) -> None:
        if self.conn.in_transaction:
            self._execute("COMMIT")

    def rollback(self) -> None:
        if self.conn.in_transaction:
            try:
                self.conn.execute("ROLLBACK")
            except sqlite3.Error as e:
                logger.error(f"Rollback failed: {e}")
                raise StorageError(f"Rollback failed: {e}") from e

    def _execute(self, sql: str, params: Tuple = ()) -> sqlite3.Cursor:
        try:
            return self.conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StorageError(f"{e} while executing: {sql}") from e

    # ------------------------------------------------------------------ #
    # Indexes
    # ------------------------------------------------------------------ #

    def drop_indexes(self) -> None:
        for table, column in INDEXES:
            sql = drop_index_sql(table, column)
            logger.info(sql)
            self._execute(sql)

    def create_indexes(self) -> None:
        for table, column in INDEXES:
            sql = create_index_sql(table, column)
            logger.debug(sql)
            self._execute(sql)

    def index_names(self) -> List[str]:
        """Secondary indexes currently present (autoindexes for primary keys excluded)."""
        wanted = {index_name(t, c) for t, c in INDEXES}
        cursor = self._execute("SELECT name FROM sqlite_master WHERE type = 'index' ORDER BY name")
        return [row["name"] for row in cursor.fetchall() if row["name"] in wanted]

    # ------------------------------------------------------------------ #
    # Metric records
    # ------------------------------------------------------------------ #

    def seen_hashes(self, plugin: str, version: int) -> Set[str]:
        """Distinct content hashes already recorded for (plugin, version)."""
        cursor = self._execute(
            "SELECT DISTINCT content_hash FROM file_metric WHERE plugin = ? AND version = ?",
            (plugin, version),
        )
        return {row[0] for row in cursor.fetchall()}

    def delete_metrics(self, content_hash: str, plugin: str, version: Optional[int] = None) -> int:
        """Delete records of (content_hash, plugin), limited to one version if given."""
        if version is None:
            cursor = self._execute(
                "DELETE FROM file_metric WHERE content_hash = ? AND plugin = ?",
                (content_hash, plugin),
            )
        else:
            cursor = self._execute(
                "DELETE FROM file_metric WHERE content_hash = ? AND plugin = ? AND version = ?",
                (content_hash, plugin, version),
            )
        return cursor.rowcount

    def purge_old_versions(self, plugin: str, current_version: int) -> int:
        """Delete every record of `plugin` written by a version other than `current_version`."""
        cursor = self._execute(
            "DELETE FROM file_metric WHERE plugin = ? AND version != ?",
            (plugin, current_version),
        )
        return cursor.rowcount

    def insert_metrics(
        self,
        content_hash: str,
        plugin: str,
        version: int,
        items: Iterable[Tuple[str, MetricValue]],
    ) -> int:
        rows = [(content_hash, plugin, version, name, value) for name, value in items]
        try:
            self.conn.executemany(
                "INSERT OR REPLACE INTO file_metric ( content_hash, plugin, version, name, value ) "
                "VALUES ( ?, ?, ?, ?, ? )",
                rows,
            )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to insert metrics for {plugin} hash={content_hash}: {e}") from e
        return len(rows)

    def metrics_for(self, content_hash: str, plugin: Optional[str] = None) -> List[MetricRecord]:
        if plugin is None:
            cursor = self._execute(
                "SELECT content_hash, plugin, version, name, value FROM file_metric "
                "WHERE content_hash = ? ORDER BY plugin, version, name",
                (content_hash,),
            )
        else:
            cursor = self._execute(
                "SELECT content_hash, plugin, version, name, value FROM file_metric "
                "WHERE content_hash = ? AND plugin = ? ORDER BY version, name",
                (content_hash, plugin),
            )
        return [self._row_to_record(row) for row in cursor.fetchall()]

    def count_metrics(self, plugin: Optional[str] = None) -> int:
        if plugin is None:
            cursor = self._execute("SELECT COUNT(*) FROM file_metric")
        else:
            cursor = self._execute("SELECT COUNT(*) FROM file_metric WHERE plugin = ?", (plugin,))
        return cursor.fetchone()[0]

    # ------------------------------------------------------------------ #
    # Release files
    # ------------------------------------------------------------------ #

    def delete_release(self, release: str) -> int:
        cursor = self._execute("DELETE FROM release_file WHERE release = ?", (release,))
        return cursor.rowcount

    def insert_release_files(self, files: Iterable[ReleaseFile]) -> int:
        rows = [(f.release, f.file, f.content_hash, int(f.indexable)) for f in files]
        try:
            self.conn.executemany(
                "INSERT OR REPLACE INTO release_file ( release, file, content_hash, indexable ) "
                "VALUES ( ?, ?, ?, ? )",
                rows,
            )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to insert release files: {e}") from e
        return len(rows)

    def release_files(self, release: str) -> List[ReleaseFile]:
        cursor = self._execute(
            "SELECT release, file, content_hash, indexable FROM release_file "
            "WHERE release = ? ORDER BY file",
            (release,),
        )
        return [
            ReleaseFile(row["release"], row["file"], row["content_hash"], bool(row["indexable"]))
            for row in cursor.fetchall()
        ]

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        if self.conn is not None:
            self.rollback()
            self.conn.close()
            self.conn = None
            logger.debug("Database connection closed")

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> MetricRecord:
        return MetricRecord(
            content_hash=row["content_hash"],
            plugin=row["plugin"],
            version=row["version"],
            name=row["name"],
            value=row["value"],
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
