"""Source file discovery.

Walks a directory for files matching the configured patterns (default `*.py`),
skipping version-control and tooling directories.

For releases, each file is also flagged `indexable`: files under a `no_index`
directory (tests, examples, ...) are listed but are not part of the release's
public code.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Dict, Iterable, List, Sequence

VCS_DIRS = frozenset({
    ".git", ".hg", ".svn", "CVS", ".bzr",
    "__pycache__", ".tox", ".nox", ".venv", ".mypy_cache", ".pytest_cache",
})

DEFAULT_PATTERNS = ("*.py",)
DEFAULT_NO_INDEX = ("tests", "test", "t", "examples", "docs")


def _walk(root: Path, patterns: Sequence[str]) -> Iterable[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in VCS_DIRS)
        for fn in sorted(filenames):
            p = Path(dirpath) / fn
            if any(p.match(pat) for pat in patterns):
                yield p


def find_source_files(root: str, patterns: Sequence[str] = DEFAULT_PATTERNS) -> List[str]:
    """Absolute paths of matching files under `root`, in sorted order."""
    return sorted(str(p.resolve()) for p in _walk(Path(root), patterns) if p.is_file())


def release_files(
    root: str,
    patterns: Sequence[str] = DEFAULT_PATTERNS,
    no_index: Sequence[str] = DEFAULT_NO_INDEX,
) -> Dict[str, bool]:
    """Map of relative path (posix) -> indexable for every matching file."""
    base = Path(root)
    skip = set(no_index)
    files: Dict[str, bool] = {}
    for p in _walk(base, patterns):
        if not p.is_file():
            continue
        rel = p.relative_to(base)
        files[rel.as_posix()] = not any(part in skip for part in rel.parts[:-1])
    return dict(sorted(files.items()))
