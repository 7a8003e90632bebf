"""Example: Adding a new metric plugin without modifying registry.py.

Registers a plugin at runtime, then runs it next to the core plugin over a
directory given on the command line.

    python examples/add_plugin_example.py /abs/path/to/project
"""

import sys

from corpus_metrics.pipeline.engine import MetricsEngine
from corpus_metrics.plugins import MetricPlugin, list_plugins, make_plugins, register_plugin
from corpus_metrics.store import MetricStore


@register_plugin
class NamingPlugin(MetricPlugin):
    """Counts identifiers by shape."""

    name = "naming"
    version = 1
    destructive = False

    def metrics(self):
        return {
            "dunder_names": self.dunder_names,
            "private_names": self.private_names,
        }

    def dunder_names(self, doc):
        return sum(1 for t in doc.tokens if t.kind == "NAME" and t.text.startswith("__") and t.text.endswith("__"))

    def private_names(self, doc):
        return sum(1 for t in doc.tokens if t.kind == "NAME" and t.text.startswith("_") and not t.text.startswith("__"))


print("Registered plugins:")
for name in list_plugins():
    print(f"  {name}")

if len(sys.argv) > 1:
    with MetricStore(":memory:") as store:
        engine = MetricsEngine(store, make_plugins(["core", "naming"]))
        engine.process_directory(sys.argv[1])
        print(engine.stats.summary())

# Now you can use it in config (after registering it at startup):
# plugins: [core, naming]
