"""Dedup index over the registered plugins.

"Has this content already been fully processed?" is answered from the plugins'
own seen sets, which `study()` fills with one bulk query per plugin.

- `is_fully_seen(h)` is true only if every plugin has seen `h` at its current
  version; it lets the engine skip loading and parsing a document altogether
- the per-plugin check at dispatch time stays authoritative; this index is
  only a fast path and skipping here never changes what ends up stored
"""

from __future__ import annotations
import logging
from typing import Iterable, List

from ..plugins.base import MetricPlugin
from ..store.sqlite_store import MetricStore

log = logging.getLogger("corpus_metrics.dedup")


class DedupIndex:
    def __init__(self, plugins: Iterable[MetricPlugin]):
        self.plugins: List[MetricPlugin] = sorted(plugins, key=lambda p: p.name)
        self.studied = False

    def study(self, store: MetricStore) -> None:
        for plugin in self.plugins:
            n = plugin.study(store)
            log.info(f"Studied plugin={plugin.name} version={plugin.version} seen={n}")
        self.studied = True

    def is_fully_seen(self, content_hash: str) -> bool:
        if not self.plugins:
            return False
        return all(p.has_seen(content_hash) for p in self.plugins)
