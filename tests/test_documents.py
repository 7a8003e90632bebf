import json
import os

import pytest

from conftest import SAMPLE_SOURCE
from corpus_metrics.documents import Document, Token, get_parser, list_parsers
from corpus_metrics.exceptions import ConfigurationError, ParseError
from corpus_metrics.utils.hashing import content_digest, file_digest


# ----------------------------------------------------------------------------
# Parser
# ----------------------------------------------------------------------------


class TestPythonSourceParser:
    def test_simple_assignment(self, parser):
        doc = parser.parse(b"x = 1\n")
        assert [t.kind for t in doc.tokens] == ["NAME", "WHITESPACE", "OP", "WHITESPACE", "NUMBER", "NEWLINE"]
        assert len(doc.significant_tokens()) == 3

    def test_lossless(self, parser):
        src = b"def f(a,  b):\n    # note\n    return a + b  # sum\n\n\nclass C:\n    pass\n"
        doc = parser.parse(src)
        assert doc.serialize().encode("utf-8") == src

    def test_lossless_without_trailing_newline(self, parser):
        doc = parser.parse(b"y = 2")
        assert doc.serialize() == "y = 2"

    def test_hash_is_of_raw_bytes(self, parser):
        doc = parser.parse(SAMPLE_SOURCE, path="/x.py")
        assert doc.content_hash == content_digest(SAMPLE_SOURCE)
        assert doc.path == "/x.py"
        assert doc.parser == "python"

    def test_unterminated_string_is_parse_error(self, parser):
        with pytest.raises(ParseError):
            parser.parse(b'x = """never closed\n')

    def test_bad_encoding_is_parse_error(self, parser):
        with pytest.raises(ParseError):
            parser.parse(b"# -*- coding: utf-8 -*-\nx = '\xff\xfe'\n")

    def test_parse_file_missing(self, parser, tmp_path):
        with pytest.raises(ParseError) as exc:
            parser.parse_file(str(tmp_path / "missing.py"))
        assert exc.value.path == str(tmp_path / "missing.py")


class TestParserRegistry:
    def test_python_registered(self):
        assert "python" in list_parsers()
        assert get_parser("python").name == "python"

    def test_unknown_parser(self):
        with pytest.raises(ConfigurationError):
            get_parser("cobol")


# ----------------------------------------------------------------------------
# Document model
# ----------------------------------------------------------------------------


class TestDocument:
    def test_clone_is_independent(self, sample_doc):
        original = sample_doc.serialize()
        clone = sample_doc.clone()
        removed = clone.prune(lambda t: t.kind == "COMMENT")
        assert removed == 1
        assert sample_doc.serialize() == original
        assert clone.serialize() != original
        assert clone.content_hash == sample_doc.content_hash

    def test_prune_keeps_hash(self, sample_doc):
        h = sample_doc.content_hash
        sample_doc.prune(lambda t: not t.significant)
        assert sample_doc.content_hash == h

    def test_dict_round_trip(self, sample_doc):
        restored = Document.from_dict(json.loads(json.dumps(sample_doc.to_dict())))
        assert restored == sample_doc

    def test_token_defaults(self):
        assert Token.from_dict({"kind": "NAME", "text": "x"}).significant is True


# ----------------------------------------------------------------------------
# Cache
# ----------------------------------------------------------------------------


class TestDocumentCache:
    def test_store_and_get(self, cache, sample_doc):
        path = cache.store(sample_doc)
        assert os.path.basename(os.path.dirname(path)) == sample_doc.content_hash[:2]
        assert cache.contains(sample_doc.content_hash)
        assert cache.get_document(sample_doc.content_hash) == sample_doc

    def test_miss(self, cache):
        assert cache.get_document("ab" * 32) is None

    def test_corrupt_entry_is_a_miss(self, cache, sample_doc):
        path = cache.store(sample_doc)
        with open(path, "w", encoding="utf-8") as f:
            f.write("{not json")
        assert cache.get_document(sample_doc.content_hash) is None

    @pytest.mark.parametrize("payload", ['{"tokens": []}', "[1, 2]", '{"content_hash": "x", "tokens": [7]}'])
    def test_wrong_shape_entry_is_a_miss(self, cache, sample_doc, payload):
        path = cache.store(sample_doc)
        with open(path, "w", encoding="utf-8") as f:
            f.write(payload)
        assert cache.get_document(sample_doc.content_hash) is None

    def test_entries_sorted_with_sizes(self, cache, parser):
        for src in (b"a = 1\n", b"b = 22\n", b"c = 333\n"):
            cache.store(parser.parse(src))
        entries = list(cache.entries())
        assert len(entries) == 3
        assert [e.path for e in entries] == sorted(e.path for e in entries)
        assert all(e.size == os.path.getsize(e.path) for e in entries)

    def test_entries_ignore_foreign_files(self, cache, sample_doc):
        cache.store(sample_doc)
        with open(os.path.join(cache.path, sample_doc.content_hash[:2], "README.json"), "w") as f:
            f.write("{}")
        assert [e.digest for e in cache.entries()] == [sample_doc.content_hash]


def test_file_digest_matches_content_digest(tmp_path):
    p = tmp_path / "f.py"
    p.write_bytes(SAMPLE_SOURCE)
    assert file_digest(str(p)) == content_digest(SAMPLE_SOURCE)
