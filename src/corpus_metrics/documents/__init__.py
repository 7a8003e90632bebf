"""Documents: parsed token model, parser adapters and the on-disk document cache."""

from .context import Document, Token
from .parser import ParserAdapter, PythonSourceParser, INSIGNIFICANT_KINDS
from .registry import register_parser, get_parser, list_parsers
from .cache import DocumentCache, CacheEntry

__all__ = [
    "Document",
    "Token",
    "ParserAdapter",
    "PythonSourceParser",
    "INSIGNIFICANT_KINDS",
    "register_parser",
    "get_parser",
    "list_parsers",
    "DocumentCache",
    "CacheEntry",
]
