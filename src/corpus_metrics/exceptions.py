"""Exception hierarchy.

- Configuration errors are fatal to the invocation and raised before any work.
- Parse errors are recovered per document (warning + skip).
- Metric computation errors are recovered per plugin by the engine.
- Storage errors are fatal to the current batch; the open chunk is rolled back.
"""

from __future__ import annotations
from typing import Optional


class MetricsError(Exception):
    """Base exception for all corpus_metrics errors."""


class ConfigurationError(MetricsError, ValueError):
    """Missing capability, bad path or invalid setting."""


class ParseError(MetricsError, ValueError):
    """Raised by a parser adapter when bytes cannot be turned into a Document."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class StorageError(MetricsError, RuntimeError):
    """Wraps sqlite3 errors raised while writing or committing metrics."""


class MetricComputationError(MetricsError):
    """A single metric function raised while processing a document."""

    def __init__(self, plugin: str, metric: str, content_hash: str, cause: BaseException):
        self.plugin = plugin
        self.metric = metric
        self.content_hash = content_hash
        self.cause = cause
        super().__init__(f"plugin={plugin} metric={metric} hash={content_hash}: {cause!r}")
