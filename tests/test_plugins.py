import pytest

from conftest import FailingPlugin, RecordingPlugin
from corpus_metrics.exceptions import ConfigurationError, MetricComputationError
from corpus_metrics.plugins import (
    CorePlugin,
    MetricPlugin,
    list_plugins,
    make_plugins,
    register_plugin,
    unregister_plugin,
)


class TestCorePlugin:
    def test_sample_metrics(self, sample_doc):
        values = CorePlugin().process_metrics(sample_doc)
        source = sample_doc.serialize()
        assert values["bytes"] == len(source.encode("utf-8"))
        assert values["lines"] == source.count("\n") + 1
        assert values["sloc"] == 3
        assert values["tokens"] == len(sample_doc.tokens)
        assert values["significant_tokens"] == len(sample_doc.significant_tokens())

    def test_sloc_ignores_function_docstring(self, parser):
        doc = parser.parse(b'def f():\n    """Doc."""\n    return 1\n')
        assert CorePlugin().metric_sloc(doc) == 2

    def test_sloc_keeps_assigned_strings(self, parser):
        doc = parser.parse(b'x = "not a docstring"\n')
        assert CorePlugin().metric_sloc(doc) == 1

    def test_does_not_mutate_input(self, sample_doc):
        before = list(sample_doc.tokens)
        CorePlugin().process_metrics(sample_doc)
        assert sample_doc.tokens == before

    def test_metric_names_sorted(self):
        assert CorePlugin().metric_names() == ["bytes", "lines", "significant_tokens", "sloc", "tokens"]


class TestMetricPlugin:
    def test_study_loads_seen(self, store, sample_doc):
        store.insert_metrics(sample_doc.content_hash, "recording", 1, [("ntokens", 1)])
        store.insert_metrics("f" * 64, "recording", 2, [("ntokens", 1)])
        plugin = RecordingPlugin()
        assert plugin.study(store) == 1
        assert plugin.has_seen(sample_doc.content_hash)
        assert not plugin.has_seen("f" * 64)

    def test_process_document_writes_and_marks_seen(self, store, writer, sample_doc):
        plugin = RecordingPlugin()
        assert plugin.process_document(sample_doc, writer) is True
        assert plugin.has_seen(sample_doc.content_hash)
        assert plugin.process_document(sample_doc, writer) is False
        assert len(plugin.docs) == 1
        assert store.count_metrics("recording") == 1

    def test_failing_metric_raises(self, writer, sample_doc):
        plugin = FailingPlugin()
        with pytest.raises(MetricComputationError) as exc:
            plugin.process_document(sample_doc, writer)
        assert exc.value.metric == "broken"
        assert not plugin.has_seen(sample_doc.content_hash)

    def test_failing_metric_omitted(self, store, writer, sample_doc):
        plugin = FailingPlugin()
        assert plugin.process_document(sample_doc, writer, omit_failed=True)
        assert [r.name for r in store.metrics_for(sample_doc.content_hash)] == ["good"]

    def test_bad_metric_name(self):
        class Bad(MetricPlugin):
            name = "bad"

            def metrics(self):
                return {"not valid": lambda doc: 0}

        with pytest.raises(ConfigurationError):
            Bad()


class TestRegistry:
    def test_core_registered(self):
        assert "core" in list_plugins()

    def test_register_and_make(self):
        register_plugin(RecordingPlugin)
        try:
            plugins = make_plugins(["core", "recording", "core"])
            assert [p.name for p in plugins] == ["core", "recording"]
        finally:
            unregister_plugin("recording")
        assert "recording" not in list_plugins()

    def test_name_clash(self):
        class OtherCore(CorePlugin):
            pass

        with pytest.raises(ValueError):
            register_plugin(OtherCore)

    def test_unknown_plugin(self):
        with pytest.raises(ConfigurationError):
            make_plugins(["nope"])
