"""Metrics processing engine.

Entry points:
- process_file(path): parse one file (unless every plugin has already seen its
  content) and run all plugins over it
- process_directory(path): every matching file under a directory, in path order
- process_cache(): batch run over every cached document not yet fully seen,
  smallest first, with periodic commits and indexes dropped for the duration
- index_release(release, path): record which files (and content hashes) make
  up a named release
- study_plugins(): load each plugin's seen set from the store

Per document, plugins run non-destructive first, then destructive, by name.
Destructive plugins get a clone, except the last plugin, which gets the
original because nothing needs it afterwards.

Error handling:
- unreadable / unparsable / missing documents: warning, skip, continue
- a failing metric: the plugin is skipped for that document (or, with
  on_metric_error=omit_metric, just that metric), processing continues
- missing cache / study for process_cache, bad top-level paths: ConfigurationError
- storage failures: StorageError propagates; the uncommitted chunk is rolled back
"""

from __future__ import annotations
import logging
import os
from typing import Iterable, List, Optional, Sequence

from tqdm import tqdm

from ..config.loader import MetricsSettings
from ..dedup.index import DedupIndex
from ..documents.cache import DocumentCache
from ..documents.context import Document
from ..documents.parser import ParserAdapter
from ..documents.registry import get_parser
from ..exceptions import ConfigurationError, ParseError, StorageError
from ..plugins.base import MetricPlugin
from ..plugins.registry import make_plugins
from ..sources.files import DEFAULT_NO_INDEX, DEFAULT_PATTERNS, find_source_files, release_files
from ..store.batch import BatchWriter
from ..store.schema import ReleaseFile
from ..store.sqlite_store import MetricStore
from ..utils.hashing import file_digest
from .progress import RateTracker
from .stats import RunStats

log = logging.getLogger("corpus_metrics.engine")


class MetricsEngine:
    def __init__(
        self,
        store: MetricStore,
        plugins: Iterable[MetricPlugin],
        *,
        parser: Optional[ParserAdapter] = None,
        cache: Optional[DocumentCache] = None,
        study: bool = False,
        commit_every: int = 100,
        on_metric_error: str = "skip_plugin",
        show_progress: bool = False,
        patterns: Sequence[str] = DEFAULT_PATTERNS,
        no_index: Sequence[str] = DEFAULT_NO_INDEX,
    ):
        self.store = store
        self.plugins: List[MetricPlugin] = list(plugins)
        names = [p.name for p in self.plugins]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Duplicate plugin names: {names}")
        self.parser = parser or get_parser("python")
        self.cache = cache
        self.study = study
        self.omit_failed_metrics = on_metric_error == "omit_metric"
        self.show_progress = show_progress
        self.patterns = list(patterns)
        self.no_index = list(no_index)
        self.writer = BatchWriter(store, commit_every=commit_every)
        self.dedup = DedupIndex(self.plugins)
        self.stats = RunStats()

        if self.study:
            self.study_plugins()

    @classmethod
    def from_settings(cls, settings: MetricsSettings, store: Optional[MetricStore] = None) -> MetricsEngine:
        plugins = make_plugins(settings.plugins)
        parser = get_parser(settings.parser)
        return cls(
            store or MetricStore(settings.store_path),
            plugins,
            parser=parser,
            cache=DocumentCache(settings.cache_path) if settings.cache_path else None,
            study=settings.study,
            commit_every=settings.commit_every,
            on_metric_error=settings.on_metric_error,
            show_progress=settings.show_progress,
            patterns=settings.patterns,
            no_index=settings.no_index,
        )

    # ------------------------------------------------------------------ #
    # Dedup
    # ------------------------------------------------------------------ #

    def study_plugins(self) -> None:
        self.dedup.study(self.store)

    def seen(self, content_hash: str) -> bool:
        return self.dedup.is_fully_seen(content_hash)

    # ------------------------------------------------------------------ #
    # Dispatch
    # ------------------------------------------------------------------ #

    def ordered_plugins(self) -> List[MetricPlugin]:
        return sorted(self.plugins, key=lambda p: (bool(p.destructive), p.name))

    def process_document(self, doc: Document, hint_safe: bool = False) -> bool:
        """Run every plugin over `doc`. Returns False if any plugin failed."""
        ordered = self.ordered_plugins()
        skips_before = self.stats.plugin_skips
        ok = True
        for i, plugin in enumerate(ordered):
            # Clone for destructive plugins, UNLESS it is the last one:
            # nothing needs the document after it.
            if plugin.destructive and i < len(ordered) - 1:
                target = doc.clone()
            else:
                target = doc
            ok = self._run_plugin(plugin, target, hint_safe) and ok
        # Not processed if every plugin had already seen it
        if self.stats.plugin_skips - skips_before < len(ordered):
            self.stats.documents_processed += 1
        return ok

    def _run_plugin(self, plugin: MetricPlugin, doc: Document, hint_safe: bool) -> bool:
        try:
            ran = plugin.process_document(
                doc,
                self.writer,
                hint_safe=hint_safe,
                omit_failed=self.omit_failed_metrics,
            )
        except StorageError:
            raise
        except Exception as e:
            log.exception(f"Plugin {plugin.name} failed on {doc.path or '<cached>'} hash={doc.content_hash}: {e}")
            self.stats.record_plugin_failure(plugin.name)
            return False
        if ran:
            self.stats.plugin_runs += 1
        else:
            self.stats.plugin_skips += 1
        return True

    # ------------------------------------------------------------------ #
    # Files and directories
    # ------------------------------------------------------------------ #

    def process_file(self, path: str) -> bool:
        return self._process_file(_check_path(path, directory=False))

    def _process_file(self, path: str) -> bool:
        self.stats.documents_found += 1
        try:
            if self.study:
                # If and only if every plugin has seen the content
                # we can shortcut and don't need to parse it.
                if self.dedup.is_fully_seen(file_digest(path)):
                    self.stats.documents_skipped += 1
                    return True
            doc = self.parser.parse_file(path)
            size = os.path.getsize(path)
        except ParseError as e:
            log.warning(f"Failed to parse '{path}': {e}")
            self.stats.documents_failed += 1
            return False
        except OSError as e:
            log.warning(f"Failed to read '{path}': {e}")
            self.stats.documents_failed += 1
            return False

        if self.cache is not None:
            try:
                self.cache.store(doc)
            except OSError as e:
                log.warning(f"Failed to cache '{path}' hash={doc.content_hash}: {e}")
        self.stats.bytes_processed += size
        return self.process_document(doc)

    def process_directory(self, path: str) -> bool:
        path = _check_path(path, directory=True)
        files = find_source_files(path, self.patterns)
        log.info(f"{path}: Found {len(files)} files")
        ok = True
        with self.writer.transaction():
            for f in files:
                log.debug(f)
                try:
                    f = _check_path(f, directory=False)
                except ConfigurationError as e:
                    log.warning(f"Skipping: {e}")
                    self.stats.documents_found += 1
                    self.stats.documents_failed += 1
                    ok = False
                    continue
                ok = self._process_file(f) and ok
                self.writer.tick()
        self.stats.commits = self.writer.commits
        log.info(self.stats.summary())
        return ok

    # ------------------------------------------------------------------ #
    # Cache batch
    # ------------------------------------------------------------------ #

    def process_cache(self) -> bool:
        if self.cache is None:
            raise ConfigurationError("No cache provided, cannot process_cache")
        if not self.study:
            raise ConfigurationError("Must have study enabled to process_cache")

        log.info(f"Scanning cache directory {self.cache.path}...")
        entries = list(self.cache.entries())
        log.info(f"Found {len(entries)} documents")

        # Filter out what every plugin has done already; smallest first
        log.info("Cleaning, filtering and sorting documents...")
        todo = sorted(
            (e for e in entries if not self.dedup.is_fully_seen(e.digest)),
            key=lambda e: (e.size, e.digest),
        )
        self.stats.documents_found += len(entries)
        self.stats.documents_skipped += len(entries) - len(todo)
        log.info(f"Filtered to {len(todo)} documents")
        if not todo:
            return True

        tracker = RateTracker(sum(e.size for e in todo))
        ok = True
        with tqdm(total=len(todo), unit="doc", disable=not self.show_progress) as bar:
            with self.writer.bulk_load():
                for i, entry in enumerate(todo, start=1):
                    log.info(tracker.trace_line(entry.digest, i, len(todo)))
                    doc = self.cache.get_document(entry.digest)
                    if doc is None:
                        log.warning(f"Failed to retrieve {entry.digest} from the cache")
                        self.stats.documents_failed += 1
                        ok = False
                    else:
                        # Unseen at the current plugin versions, so no rows to replace
                        ok = self.process_document(doc, hint_safe=True) and ok
                    tracker.advance(entry.size)
                    self.stats.bytes_processed += entry.size
                    self.writer.tick()
                    bar.update(1)

        self.stats.commits = self.writer.commits
        log.info(self.stats.summary())
        return ok

    # ------------------------------------------------------------------ #
    # Releases
    # ------------------------------------------------------------------ #

    def index_release(self, release: str, path: str, hint_safe: bool = False) -> int:
        """Record every readable matching file of `path` under `release`. Returns the file count."""
        if not release:
            raise ConfigurationError("Release name must not be empty")
        path = _check_path(path, directory=True)
        records: List[ReleaseFile] = []
        for rel, indexable in release_files(path, self.patterns, self.no_index).items():
            try:
                digest = file_digest(os.path.join(path, rel))
            except OSError as e:
                log.warning(f"Release {release}: skipping unreadable '{rel}': {e}")
                continue
            records.append(ReleaseFile(release, rel, digest, indexable))
        self.writer.write_release(release, records, hint_safe=hint_safe)
        log.info(f"Release {release}: indexed {len(records)} files from {path}")
        return len(records)

    def close(self) -> None:
        self.store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def _check_path(path: str, directory: bool) -> str:
    if not isinstance(path, str) or not path:
        raise ConfigurationError("Did not pass a path")
    path = os.path.normpath(path)
    if not os.path.isabs(path):
        raise ConfigurationError(f"Cannot index relative path '{path}'. Must be absolute")
    exists = os.path.isdir(path) if directory else os.path.isfile(path)
    if not exists:
        kind = "Directory" if directory else "File"
        raise ConfigurationError(f"Cannot index '{path}'. {kind} does not exist")
    if not os.access(path, os.R_OK):
        raise ConfigurationError(f"Cannot index '{path}'. No read permissions")
    return path
