"""CLI entrypoint.

Commands (all take `--config <file.yaml>`; without it the defaults apply):
- `corpus-metrics file /abs/path/module.py`
- `corpus-metrics directory /abs/path/project`
- `corpus-metrics cache`                      (needs cache.path and study on)
- `corpus-metrics release NAME /abs/path [--hint-safe]`
- `corpus-metrics indexes {drop,restore}`
- `corpus-metrics plugins`                    (list registered plugins)

Exit status is 0 on success, 1 if any document or plugin failed, 2 on
configuration errors, 3 on storage errors (the open chunk is rolled back).
"""

from __future__ import annotations
import argparse
import logging
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from .config.loader import load_settings
from .exceptions import ConfigurationError, StorageError
from .logging_ import setup_logging
from .pipeline.engine import MetricsEngine
from .pipeline.stats import RunStats
from .plugins.registry import list_plugins
from .store.sqlite_store import MetricStore

log = logging.getLogger("corpus_metrics.cli")


def _stats_table(stats: RunStats, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    for k, v in stats.rows():
        table.add_row(k, v)
    return table


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="corpus-metrics")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add(name: str, text: str) -> argparse.ArgumentParser:
        sp = sub.add_parser(name, help=text)
        sp.add_argument("--config", default=None, help="YAML config file")
        return sp

    pf = add("file", "Process a single file")
    pf.add_argument("path")

    pd = add("directory", "Process every matching file under a directory")
    pd.add_argument("path")

    add("cache", "Process every cached document not yet seen by all plugins")

    pr = add("release", "Record the files of a release")
    pr.add_argument("name")
    pr.add_argument("path")
    pr.add_argument("--hint-safe", action="store_true", help="Skip deleting existing rows for the release")

    pi = add("indexes", "Drop or restore the secondary indexes")
    pi.add_argument("action", choices=["drop", "restore"])

    add("plugins", "List registered plugins")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    console = Console()

    if args.cmd == "plugins":
        for name in list_plugins():
            console.print(name)
        return 0

    try:
        settings = load_settings(args.config)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        return 2
    setup_logging(settings.log_dir, settings.run_id)

    try:
        if args.cmd == "indexes":
            with MetricStore(settings.store_path) as store:
                if args.action == "drop":
                    store.drop_indexes()
                else:
                    store.create_indexes()
            return 0

        with MetricsEngine.from_settings(settings) as engine:
            if args.cmd == "file":
                ok = engine.process_file(args.path)
            elif args.cmd == "directory":
                ok = engine.process_directory(args.path)
            elif args.cmd == "cache":
                ok = engine.process_cache()
            else:
                n = engine.index_release(args.name, args.path, hint_safe=args.hint_safe)
                console.print(f"Release {args.name}: {n} files")
                return 0
            console.print(_stats_table(engine.stats, f"Run {settings.run_id}"))
    except ConfigurationError as e:
        log.error(str(e))
        return 2
    except StorageError as e:
        log.error(f"Storage failure in '{args.cmd}' on {settings.store_path}: {e}")
        return 3
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
