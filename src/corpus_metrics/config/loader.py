"""Config loader.

Configuration is a single YAML file. Every key is optional:

    run:
      run_id: null          # explicit, else "metrics_<YYYYMMDDHHMMSS>"
      log_dir: logs
    store:
      path: metrics.sqlite
    cache:
      path: null            # document cache directory; null disables the cache
    processing:
      study: true
      commit_every: 100
      on_metric_error: skip_plugin   # skip_plugin | omit_metric
      show_progress: false
      parser: python
    plugins: [core]
    scan:
      patterns: ["*.py"]
      no_index: [tests, test, t, examples, docs]
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import yaml

from ..exceptions import ConfigurationError
from ..sources.files import DEFAULT_NO_INDEX, DEFAULT_PATTERNS

METRIC_ERROR_MODES = {"skip_plugin", "omit_metric"}


def load_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@dataclass
class MetricsSettings:
    run_id: str = "metrics"
    log_dir: str = "logs"
    store_path: str = "metrics.sqlite"
    cache_path: Optional[str] = None
    study: bool = True
    commit_every: int = 100
    on_metric_error: str = "skip_plugin"
    show_progress: bool = False
    parser: str = "python"
    plugins: List[str] = field(default_factory=lambda: ["core"])
    patterns: List[str] = field(default_factory=lambda: list(DEFAULT_PATTERNS))
    no_index: List[str] = field(default_factory=lambda: list(DEFAULT_NO_INDEX))

    def validate(self) -> MetricsSettings:
        if self.commit_every <= 0:
            raise ConfigurationError(f"processing.commit_every must be positive, got {self.commit_every}")
        if self.on_metric_error not in METRIC_ERROR_MODES:
            raise ConfigurationError(
                f"processing.on_metric_error must be one of {sorted(METRIC_ERROR_MODES)}, "
                f"got {self.on_metric_error!r}"
            )
        if not self.plugins:
            raise ConfigurationError("No plugins configured")
        return self


def resolve_run_id(cfg: Dict[str, Any]) -> str:
    """Return run.run_id, or 'metrics_' + a UTC timestamp."""
    explicit = (cfg.get("run") or {}).get("run_id")
    if explicit is not None and str(explicit).strip():
        return str(explicit).strip()
    return "metrics_" + datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")


def settings_from_dict(cfg: Dict[str, Any]) -> MetricsSettings:
    run = cfg.get("run") or {}
    store = cfg.get("store") or {}
    cache = cfg.get("cache") or {}
    proc = cfg.get("processing") or {}
    scan = cfg.get("scan") or {}
    defaults = MetricsSettings()
    try:
        settings = MetricsSettings(
            run_id=resolve_run_id(cfg),
            log_dir=run.get("log_dir", defaults.log_dir),
            store_path=store.get("path", defaults.store_path),
            cache_path=cache.get("path"),
            study=bool(proc.get("study", defaults.study)),
            commit_every=int(proc.get("commit_every", defaults.commit_every)),
            on_metric_error=str(proc.get("on_metric_error", defaults.on_metric_error)),
            show_progress=bool(proc.get("show_progress", defaults.show_progress)),
            parser=str(proc.get("parser", defaults.parser)),
            plugins=list(cfg.get("plugins") or defaults.plugins),
            patterns=list(scan.get("patterns") or defaults.patterns),
            no_index=list(scan.get("no_index", defaults.no_index)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
    return settings.validate()


def load_settings(path: Optional[str]) -> MetricsSettings:
    if not path:
        return settings_from_dict({})
    return settings_from_dict(load_yaml(path))
