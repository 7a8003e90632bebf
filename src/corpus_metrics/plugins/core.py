"""Core metrics plugin.

A sampling of cheap structural metrics computed from the token stream only:

- bytes: UTF-8 size of the serialized document
- lines: raw line count (newlines + 1)
- sloc: source lines of code; raw lines minus comments, bare string
  statements (docstrings) and blank lines
- tokens: total number of tokens, whitespace included
- significant_tokens: tokens that change what the code does

`sloc` prunes a private clone, so the plugin never mutates its input and is
declared non-destructive.
"""

from __future__ import annotations
from typing import Dict, List, Set

from ..documents.context import Document, Token
from .base import MetricFn, MetricPlugin

_LINE_BREAKS = {"NEWLINE", "INDENT", "DEDENT"}
_SKIPPABLE = {"WHITESPACE", "NL", "COMMENT"}


class CorePlugin(MetricPlugin):
    name = "core"
    version = 1
    destructive = False

    def metrics(self) -> Dict[str, MetricFn]:
        return {
            "bytes": self.metric_bytes,
            "lines": self.metric_lines,
            "sloc": self.metric_sloc,
            "tokens": self.metric_tokens,
            "significant_tokens": self.metric_significant_tokens,
        }

    def metric_bytes(self, doc: Document) -> int:
        return len(doc.serialize().encode("utf-8"))

    def metric_lines(self, doc: Document) -> int:
        return doc.serialize().count("\n") + 1

    def metric_sloc(self, doc: Document) -> int:
        source = doc.clone()
        docstrings = _bare_string_ids(source.tokens)
        source.prune(lambda t: t.kind == "COMMENT" or id(t) in docstrings)
        return sum(1 for line in source.serialize().split("\n") if line.strip())

    def metric_tokens(self, doc: Document) -> int:
        return len(doc.tokens)

    def metric_significant_tokens(self, doc: Document) -> int:
        return sum(1 for t in doc.tokens if t.significant)


def _bare_string_ids(tokens: List[Token]) -> Set[int]:
    """ids of STRING tokens that are a whole statement on their own."""
    found: Set[int] = set()
    n = len(tokens)
    for i, tok in enumerate(tokens):
        if tok.kind != "STRING":
            continue
        j = i - 1
        while j >= 0 and tokens[j].kind in _SKIPPABLE:
            j -= 1
        if j >= 0 and tokens[j].kind not in _LINE_BREAKS:
            continue
        k = i + 1
        while k < n and tokens[k].kind in _SKIPPABLE - {"NL"}:
            k += 1
        if k == n or tokens[k].kind in ("NEWLINE", "ENDMARKER"):
            found.add(id(tok))
    return found
