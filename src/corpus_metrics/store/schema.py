"""Metric store schema and record types.

Schema supports: Has this content already been measured by this plugin version?
What were the values? Which files (by release) map to which content?

Uniqueness is (content_hash, plugin, version, name); values are SQLite
dynamically typed (integer, real or text).

Secondary indexes are listed separately so bulk loads can drop and restore
them. Index names follow `<table>__<column>`.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Tuple, Union

MetricValue = Union[int, float, str, None]

TABLES_SQL = """
CREATE TABLE IF NOT EXISTS file_metric (
    content_hash TEXT NOT NULL,
    plugin       TEXT NOT NULL,
    version      INTEGER NOT NULL,
    name         TEXT NOT NULL,
    value,
    PRIMARY KEY (content_hash, plugin, version, name)
);

CREATE TABLE IF NOT EXISTS release_file (
    release      TEXT NOT NULL,
    file         TEXT NOT NULL,
    content_hash TEXT NOT NULL,
    indexable    INTEGER NOT NULL DEFAULT 1,
    PRIMARY KEY (release, file)
);
"""

INDEXES: List[Tuple[str, str]] = [
    ("file_metric", "content_hash"),
    ("file_metric", "plugin"),
    ("file_metric", "name"),
    ("file_metric", "value"),
    ("file_metric", "version"),
    ("release_file", "release"),
    ("release_file", "file"),
    ("release_file", "content_hash"),
    ("release_file", "indexable"),
]


def index_name(table: str, column: str) -> str:
    return f"{table}__{column}"


def drop_index_sql(table: str, column: str) -> str:
    return f"DROP INDEX IF EXISTS {index_name(table, column)}"


def create_index_sql(table: str, column: str) -> str:
    return f"CREATE INDEX IF NOT EXISTS {index_name(table, column)} ON {table} ( {column} )"


@dataclass(frozen=True)
class MetricRecord:
    content_hash: str
    plugin: str
    version: int
    name: str
    value: MetricValue


@dataclass(frozen=True)
class ReleaseFile:
    release: str
    file: str
    content_hash: str
    indexable: bool = True
