"""corpus_metrics

Content-addressed, restartable metrics collection for large source corpora.

Public API surface:
- corpus_metrics.cli.main : CLI entrypoint
- corpus_metrics.pipeline.engine.MetricsEngine : process files / directories / cache
- corpus_metrics.plugins : add/extend metric plugins
- corpus_metrics.documents : parser adapters, Document model, document cache
- corpus_metrics.store : SQLite metric store and batch writer

Plugins only compute values; the engine owns ordering, dedup and persistence.
"""
__all__ = ["__version__"]
__version__ = "0.4.0"
