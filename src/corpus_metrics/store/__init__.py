"""Metric store: SQLite persistence plus the batch writer that owns its transactions."""

from .schema import MetricRecord, ReleaseFile, MetricValue, INDEXES, index_name
from .sqlite_store import MetricStore
from .batch import BatchWriter

__all__ = [
    "MetricRecord",
    "ReleaseFile",
    "MetricValue",
    "INDEXES",
    "index_name",
    "MetricStore",
    "BatchWriter",
]
