"""Core document model.

Document is the *parsed* representation handed to metric plugins.
It is produced by a ParserAdapter (see `parser.py`) or restored from the
DocumentCache, and is owned by the engine for one processing call.

Design goal:
- `serialize()` reproduces the original source exactly (token texts are lossless)
- `clone()` is cheap: tokens are frozen, so only the list is copied
- `content_hash` is fixed at parse time; pruning never changes identity
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


@dataclass(frozen=True)
class Token:
    kind: str           # tokenize name: NAME, OP, STRING, COMMENT, WHITESPACE, ...
    text: str
    significant: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "text": self.text, "significant": self.significant}

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> Token:
        return cls(kind=obj["kind"], text=obj["text"], significant=bool(obj.get("significant", True)))


@dataclass
class Document:
    content_hash: str
    tokens: List[Token] = field(default_factory=list)
    path: Optional[str] = None
    parser: str = "python"

    def serialize(self) -> str:
        return "".join(t.text for t in self.tokens)

    def significant_tokens(self) -> List[Token]:
        return [t for t in self.tokens if t.significant]

    def clone(self) -> Document:
        return Document(
            content_hash=self.content_hash,
            tokens=list(self.tokens),
            path=self.path,
            parser=self.parser,
        )

    def prune(self, predicate: Callable[[Token], bool]) -> int:
        """Remove every token matching `predicate` in place. Returns the number removed."""
        kept = [t for t in self.tokens if not predicate(t)]
        removed = len(self.tokens) - len(kept)
        self.tokens = kept
        return removed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content_hash": self.content_hash,
            "parser": self.parser,
            "path": self.path,
            "tokens": [t.to_dict() for t in self.tokens],
        }

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> Document:
        return cls(
            content_hash=obj["content_hash"],
            tokens=[Token.from_dict(t) for t in obj.get("tokens", [])],
            path=obj.get("path"),
            parser=obj.get("parser", "python"),
        )
