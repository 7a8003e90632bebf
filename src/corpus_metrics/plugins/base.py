"""Metric plugin interface.

The engine does not compute any metrics itself; plugins do.

A plugin declares:
- `name`: stable identity, stored with every record
- `version`: bump it whenever a metric definition changes; records of older
  versions are then no longer "seen" and every document is reprocessed
- `destructive`: whether metric functions may mutate the Document they get.
  Defaults to True; the engine clones the document for destructive plugins
  unless nothing runs after them
- `metrics()`: explicit mapping of metric name -> function(Document) -> value

Implementing a plugin:

    class MagicPlugin(MetricPlugin):
        name = "magic"
        version = 1
        destructive = False

        def metrics(self):
            return {"dunder_names": self.dunder_names}

        def dunder_names(self, doc):
            return sum(1 for t in doc.tokens if t.kind == "NAME" and t.text.startswith("__"))

`seen` holds the content hashes this plugin version has already recorded.
It is filled once by `study()` and only grows during a run.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
import logging
from typing import Callable, Dict, Set, TYPE_CHECKING

from ..documents.context import Document
from ..exceptions import ConfigurationError, MetricComputationError
from ..store.schema import MetricValue

if TYPE_CHECKING:
    from ..store.batch import BatchWriter
    from ..store.sqlite_store import MetricStore

log = logging.getLogger("corpus_metrics.plugins")

MetricFn = Callable[[Document], MetricValue]


class MetricPlugin(ABC):
    name: str = "plugin"
    version: int = 1
    destructive: bool = True

    def __init__(self):
        self.seen: Set[str] = set()
        self._metrics: Dict[str, MetricFn] = dict(self.metrics())
        for metric in self._metrics:
            if not metric.isidentifier():
                raise ConfigurationError(f"Bad metric name '{metric}' in plugin {self.name}")

    @abstractmethod
    def metrics(self) -> Dict[str, MetricFn]:
        ...

    def metric_names(self):
        return sorted(self._metrics)

    def study(self, store: MetricStore) -> int:
        """Prepopulate the seen set from records of this plugin name + version."""
        self.seen.update(store.seen_hashes(self.name, self.version))
        return len(self.seen)

    def has_seen(self, content_hash: str) -> bool:
        return content_hash in self.seen

    def process_metrics(self, doc: Document, omit_failed: bool = False) -> Dict[str, MetricValue]:
        values: Dict[str, MetricValue] = {}
        for metric in self.metric_names():
            try:
                values[metric] = self._metrics[metric](doc)
            except Exception as e:
                if not omit_failed:
                    raise MetricComputationError(self.name, metric, doc.content_hash, e) from e
                log.warning(f"Omitting metric {self.name}.{metric} for {doc.path or doc.content_hash}: {e!r}")
        return values

    def process_document(
        self,
        doc: Document,
        writer: BatchWriter,
        hint_safe: bool = False,
        omit_failed: bool = False,
    ) -> bool:
        """Compute and write this plugin's metrics. Returns False if already seen."""
        content_hash = doc.content_hash
        if content_hash in self.seen:
            return False

        values = self.process_metrics(doc, omit_failed=omit_failed)
        writer.write_metrics(content_hash, self.name, self.version, values, hint_safe=hint_safe)

        # Remember that we have processed this content
        self.seen.add(content_hash)
        return True
