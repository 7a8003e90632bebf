"""Parser adapter plugin.

The metrics pipeline never parses text itself. It hands raw bytes to a
ParserAdapter and gets back a Document whose token stream plugins can walk.

Minimal contract:
- parse(data, path=None) -> Document
- raise ParseError on anything that cannot be tokenized

The built-in adapter tokenizes Python source with the stdlib `tokenize`
module and fills the gaps between tokens with WHITESPACE tokens so the token
texts concatenate back to the exact decoded source.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
import io
import tokenize
from typing import List, Optional

from ..exceptions import ParseError
from ..utils.hashing import content_digest
from .context import Document, Token

WHITESPACE = "WHITESPACE"

# Tokens that do not change what the code does.
INSIGNIFICANT_KINDS = frozenset({
    WHITESPACE, "COMMENT", "NL", "NEWLINE", "INDENT", "DEDENT", "ENDMARKER", "ENCODING",
})


class ParserAdapter(ABC):
    name: str = "parser"

    @abstractmethod
    def parse(self, data: bytes, path: Optional[str] = None) -> Document:
        raise NotImplementedError

    def parse_file(self, path: str) -> Document:
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise ParseError(f"cannot read file: {e}", path=path) from e
        return self.parse(data, path=path)


class PythonSourceParser(ParserAdapter):
    name = "python"

    def parse(self, data: bytes, path: Optional[str] = None) -> Document:
        try:
            encoding, _ = tokenize.detect_encoding(io.BytesIO(data).readline)
            text = data.decode(encoding)
        except (SyntaxError, UnicodeDecodeError, LookupError) as e:
            raise ParseError(f"cannot decode source: {e}", path=path) from e

        try:
            tokens = _lossless_tokens(text)
        except (tokenize.TokenError, SyntaxError) as e:
            raise ParseError(f"cannot tokenize source: {e}", path=path) from e

        return Document(
            content_hash=content_digest(data),
            tokens=tokens,
            path=path,
            parser=self.name,
        )


def _lossless_tokens(text: str) -> List[Token]:
    lines = io.StringIO(text).readlines()
    starts = [0]
    for line in lines:
        starts.append(starts[-1] + len(line))

    def offset(row: int, col: int) -> int:
        if row - 1 >= len(lines):
            return len(text)
        return starts[row - 1] + col

    out: List[Token] = []
    pos = 0
    for tok in tokenize.generate_tokens(io.StringIO(text).readline):
        start = min(offset(*tok.start), len(text))
        end = min(offset(*tok.end), len(text))
        if start > pos:
            out.append(Token(WHITESPACE, text[pos:start], significant=False))
            pos = start
        if end <= pos:
            continue
        kind = tokenize.tok_name.get(tok.type, "OP")
        out.append(Token(kind, text[pos:end], significant=kind not in INSIGNIFICANT_KINDS))
        pos = end
    if pos < len(text):
        out.append(Token(WHITESPACE, text[pos:], significant=False))
    return out
