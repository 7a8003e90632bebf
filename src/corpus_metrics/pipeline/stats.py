"""Per-run counters. Logged at the end of every run; the CLI renders them as a table."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Tuple


@dataclass
class RunStats:
    """Documents found/skipped/processed/failed, plugin failures, bytes and commits."""

    documents_found: int = 0
    documents_skipped: int = 0    # fully seen before loading
    documents_processed: int = 0  # at least one plugin ran
    documents_failed: int = 0     # could not be read / parsed / retrieved
    plugin_runs: int = 0
    plugin_skips: int = 0         # plugin had already seen the content
    plugin_failures: int = 0
    bytes_processed: int = 0
    commits: int = 0
    failures_by_plugin: Dict[str, int] = field(default_factory=dict)

    def record_plugin_failure(self, plugin: str) -> None:
        self.plugin_failures += 1
        self.failures_by_plugin[plugin] = self.failures_by_plugin.get(plugin, 0) + 1

    def rows(self) -> List[Tuple[str, str]]:
        rows = [
            ("Documents found", f"{self.documents_found:,}"),
            ("Skipped (already seen)", f"{self.documents_skipped:,}"),
            ("Processed", f"{self.documents_processed:,}"),
            ("Failed to load", f"{self.documents_failed:,}"),
            ("Plugin runs", f"{self.plugin_runs:,}"),
            ("Plugin skips (seen)", f"{self.plugin_skips:,}"),
            ("Plugin failures", f"{self.plugin_failures:,}"),
            ("Bytes processed", f"{self.bytes_processed:,}"),
            ("Commits", f"{self.commits:,}"),
        ]
        for plugin, n in sorted(self.failures_by_plugin.items()):
            rows.append((f"  failures in {plugin}", f"{n:,}"))
        return rows

    def summary(self) -> str:
        lines = ["=== Metrics Run Summary ==="]
        lines.extend(f"{k}: {v}" for k, v in self.rows())
        return "\n".join(lines)
