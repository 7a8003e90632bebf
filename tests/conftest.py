import logging
import os
from typing import List

import pytest

from corpus_metrics.documents import Document, DocumentCache, PythonSourceParser
from corpus_metrics.plugins import MetricPlugin
from corpus_metrics.store import BatchWriter, MetricStore


SAMPLE_SOURCE = b'''"""Module docstring."""
# a comment
import os


def f():
    return os.sep
'''


# ----------------------------------------------------------------------------
# Test plugins
# ----------------------------------------------------------------------------


class RecordingPlugin(MetricPlugin):
    """Non-destructive; remembers every document object it was handed."""

    name = "recording"
    version = 1
    destructive = False

    def __init__(self):
        self.docs: List[Document] = []
        super().__init__()

    def metrics(self):
        return {"ntokens": self.ntokens}

    def ntokens(self, doc):
        self.docs.append(doc)
        return len(doc.tokens)


class PruningPlugin(MetricPlugin):
    """Destructive; strips whitespace tokens from whatever it gets."""

    name = "alpha_prune"
    version = 1
    destructive = True

    def __init__(self):
        self.docs: List[Document] = []
        super().__init__()

    def metrics(self):
        return {"pruned": self.pruned}

    def pruned(self, doc):
        self.docs.append(doc)
        return doc.prune(lambda t: t.kind == "WHITESPACE")


class CountingPlugin(MetricPlugin):
    """Destructive; counts whitespace tokens, so it notices earlier pruning."""

    name = "beta_count"
    version = 1
    destructive = True

    def __init__(self):
        self.docs: List[Document] = []
        super().__init__()

    def metrics(self):
        return {"whitespace": self.whitespace}

    def whitespace(self, doc):
        self.docs.append(doc)
        return sum(1 for t in doc.tokens if t.kind == "WHITESPACE")


class FailingPlugin(MetricPlugin):
    """One good metric and one that always raises."""

    name = "failing"
    version = 1
    destructive = False

    def metrics(self):
        return {"good": lambda doc: 1, "broken": self.broken}

    def broken(self, doc):
        raise RuntimeError("boom")


class InterruptingPlugin(MetricPlugin):
    """Raises KeyboardInterrupt on the `stop_at`-th document, simulating a kill."""

    name = "interrupting"
    version = 1
    destructive = False

    def __init__(self, stop_at=None):
        self.stop_at = stop_at
        self.calls = 0
        super().__init__()

    def metrics(self):
        return {"calls": self.count}

    def count(self, doc):
        self.calls += 1
        if self.stop_at is not None and self.calls >= self.stop_at:
            raise KeyboardInterrupt
        return self.calls


# ----------------------------------------------------------------------------
# Fixtures
# ----------------------------------------------------------------------------


@pytest.fixture
def parser():
    return PythonSourceParser()


@pytest.fixture
def store(tmp_path):
    s = MetricStore(str(tmp_path / "metrics.sqlite"))
    yield s
    s.close()


@pytest.fixture
def writer(store):
    return BatchWriter(store, commit_every=100)


@pytest.fixture
def cache(tmp_path):
    return DocumentCache(str(tmp_path / "cache"))


@pytest.fixture
def sample_doc(parser):
    return parser.parse(SAMPLE_SOURCE, path="/src/sample.py")


@pytest.fixture
def filled_cache(cache, parser):
    """Cache holding 250 distinct small documents."""
    for i in range(250):
        cache.store(parser.parse(f"x = {i}\n".encode("utf-8")))
    return cache


@pytest.fixture
def source_tree(tmp_path):
    """A small project: package code, a test file and a duplicate module."""
    root = tmp_path / "project"
    (root / "pkg").mkdir(parents=True)
    (root / "tests").mkdir()
    (root / ".git").mkdir()
    (root / "pkg" / "__init__.py").write_bytes(b"")
    (root / "pkg" / "a.py").write_bytes(SAMPLE_SOURCE)
    (root / "pkg" / "copy_of_a.py").write_bytes(SAMPLE_SOURCE)
    (root / "pkg" / "notes.txt").write_text("not python\n")
    (root / "tests" / "test_a.py").write_bytes(b"def test_a():\n    assert True\n")
    (root / ".git" / "hook.py").write_bytes(b"ignored = True\n")
    return root


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)


def write_file(path, data: bytes) -> str:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)
    return str(path)
