"""Parser registry.

Parsers are selected by name in the config (`processing.parser`).
For now, we keep a simple in-process registry with the Python tokenizer
registered by default; other languages register their adapter at startup.
"""

from __future__ import annotations
from typing import Dict, List
from ..exceptions import ConfigurationError
from .parser import ParserAdapter, PythonSourceParser

_PARSERS: Dict[str, ParserAdapter] = {
    "python": PythonSourceParser(),
}


def register_parser(name: str, parser: ParserAdapter) -> None:
    _PARSERS[name] = parser


def list_parsers() -> List[str]:
    return sorted(_PARSERS)


def get_parser(name: str) -> ParserAdapter:
    if name not in _PARSERS:
        raise ConfigurationError(
            f"Unknown parser: {name}. "
            f"Available: {list_parsers()}. "
            f"Register with register_parser()"
        )
    return _PARSERS[name]
