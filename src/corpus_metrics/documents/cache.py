"""On-disk cache of parsed documents.

Purpose:
- parse each unique file once, then re-run plugins from the cache
- enumerate everything cached, with byte sizes, for batch runs (`process_cache`)

Layout:
  <root>/<first two hex digits>/<content_hash>.json

Writes are atomic (tmp file + os.replace) so an interrupted run never leaves
a truncated entry behind. A corrupt entry is treated as a cache miss.
"""

from __future__ import annotations
from dataclasses import dataclass
import glob
import json
import logging
import os
import re
from typing import Iterator, Optional, Tuple

from .context import Document

log = logging.getLogger("corpus_metrics.cache")

_ENTRY_RE = re.compile(r"([a-f0-9]+)\.json\Z")


@dataclass(frozen=True)
class CacheEntry:
    digest: str
    path: str
    size: int


class DocumentCache:
    def __init__(self, path: str):
        self.path = path
        os.makedirs(self.path, exist_ok=True)

    def paths(self, digest: str) -> Tuple[str, str]:
        """Return (directory, file) for a digest."""
        directory = os.path.join(self.path, digest[:2])
        return directory, os.path.join(directory, f"{digest}.json")

    def store(self, doc: Document) -> str:
        directory, path = self.paths(doc.content_hash)
        os.makedirs(directory, exist_ok=True)
        tmp = path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(doc.to_dict(), f, ensure_ascii=False)
        os.replace(tmp, path)
        return path

    def contains(self, digest: str) -> bool:
        return os.path.exists(self.paths(digest)[1])

    def get_document(self, digest: str) -> Optional[Document]:
        _, path = self.paths(digest)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                obj = json.load(f)
        except (OSError, ValueError) as e:
            log.warning(f"Unreadable cache entry {path}: {e}")
            return None
        try:
            doc = Document.from_dict(obj)
        except (KeyError, TypeError, AttributeError) as e:
            log.warning(f"Malformed cache entry {path}: {e!r}")
            return None
        if doc.content_hash != digest:
            log.warning(f"Cache entry {path} holds hash {doc.content_hash}, expected {digest}")
            return None
        return doc

    def entries(self) -> Iterator[CacheEntry]:
        for path in sorted(glob.glob(os.path.join(self.path, "*", "*.json"))):
            m = _ENTRY_RE.search(os.path.basename(path))
            if not m:
                continue
            yield CacheEntry(digest=m.group(1), path=path, size=os.path.getsize(path))
