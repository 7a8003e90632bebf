"""Batch persistence layer.

All metric writes go through a BatchWriter, which is the sole owner of the
store's transaction.

Two modes:
- single writes (outside a batch): each `write_metrics` call is its own
  transaction
- batch (`bulk_load()` / `transaction()`): writes share one open transaction
  that is committed every `commit_every` processed documents (`tick()`) and
  once more at the end

Bulk loads drop the secondary indexes first and restore them afterwards,
on success and on failure alike. Any exception inside a batch rolls back the
uncommitted chunk; chunks committed before it stay valid.
"""

from __future__ import annotations
from contextlib import contextmanager
import logging
from typing import Callable, Iterable, Iterator, Mapping

from ..exceptions import ConfigurationError
from .schema import MetricValue, ReleaseFile
from .sqlite_store import MetricStore

log = logging.getLogger("corpus_metrics.batch")


class BatchWriter:
    def __init__(self, store: MetricStore, commit_every: int = 100):
        if commit_every <= 0:
            raise ConfigurationError(f"commit_every must be positive, got {commit_every}")
        self.store = store
        self.commit_every = commit_every
        self.processed = 0
        self.pending = 0
        self.commits = 0
        self._batch = False

    def write_metrics(
        self,
        content_hash: str,
        plugin_name: str,
        plugin_version: int,
        metrics: Mapping[str, MetricValue],
        hint_safe: bool = False,
    ) -> int:
        """Replace the metrics of (content_hash, plugin_name, plugin_version) with `metrics`.

        With hint_safe the caller guarantees there are no prior rows for this
        key, and the delete is skipped. Records of other plugin versions are
        left alone.
        """
        def write() -> int:
            if not hint_safe:
                self.store.delete_metrics(content_hash, plugin_name, plugin_version)
            return self.store.insert_metrics(
                content_hash,
                plugin_name,
                plugin_version,
                ((name, metrics[name]) for name in sorted(metrics)),
            )
        return self._write(write)

    def write_release(self, release: str, files: Iterable[ReleaseFile], hint_safe: bool = False) -> int:
        """Replace the file listing of `release`."""
        def write() -> int:
            if not hint_safe:
                self.store.delete_release(release)
            return self.store.insert_release_files(files)
        return self._write(write)

    def _write(self, write: Callable[[], int]) -> int:
        # Outside a batch every write is its own transaction.
        own_txn = not self._batch
        if own_txn or not self.store.in_transaction:
            self.store.begin()
        try:
            n = write()
        except BaseException:
            if own_txn:
                self.store.rollback()
            raise
        if own_txn:
            self.store.commit()
        return n

    def tick(self) -> None:
        """Count one processed document; commit when the chunk is full."""
        self.processed += 1
        self.pending += 1
        if self._batch and self.pending >= self.commit_every:
            self.commit()

    def commit(self) -> None:
        if self.store.in_transaction:
            self.store.commit()
            self.commits += 1
            log.debug(f"Committed chunk: processed={self.processed} commits={self.commits}")
        self.pending = 0

    def rollback(self) -> None:
        if self.store.in_transaction:
            log.warning(f"Rolling back {self.pending} uncommitted document(s)")
            self.store.rollback()
        self.pending = 0

    @contextmanager
    def transaction(self) -> Iterator[BatchWriter]:
        if self._batch:
            raise ConfigurationError("A batch is already in progress")
        # The chunk transaction is opened lazily by the first write.
        self._batch = True
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        else:
            self.commit()
        finally:
            self._batch = False

    @contextmanager
    def bulk_load(self) -> Iterator[BatchWriter]:
        log.info("Removing indexes for faster inserts...")
        self.store.drop_indexes()
        try:
            with self.transaction():
                yield self
        finally:
            log.info("Restoring indexes...")
            self.store.create_indexes()
