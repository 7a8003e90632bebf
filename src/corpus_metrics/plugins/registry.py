"""Plugin registry.

Plugins are configured by name in the config file (`plugins: [core, ...]`).

Adding a plugin:
1) implement a MetricPlugin subclass
2) call `register_plugin(MyPlugin)` at startup (or add it to the static map below)
3) reference its `name` in the config

The registry is static: no module scanning, no method-name reflection.
"""

from __future__ import annotations
from typing import Dict, List, Type

from ..exceptions import ConfigurationError
from .base import MetricPlugin
from .core import CorePlugin

_PLUGINS: Dict[str, Type[MetricPlugin]] = {
    CorePlugin.name: CorePlugin,
}


def register_plugin(cls: Type[MetricPlugin]) -> Type[MetricPlugin]:
    """Register a plugin class under its `name`. Usable as a class decorator."""
    existing = _PLUGINS.get(cls.name)
    if existing is not None and existing is not cls:
        raise ValueError(f"Plugin '{cls.name}' is already registered by {existing.__qualname__}")
    _PLUGINS[cls.name] = cls
    return cls


def unregister_plugin(name: str) -> None:
    if name in _PLUGINS and name != CorePlugin.name:
        del _PLUGINS[name]


def list_plugins() -> List[str]:
    return sorted(_PLUGINS)


def make_plugins(names: List[str]) -> List[MetricPlugin]:
    """Instantiate the named plugins, once each."""
    plugins: List[MetricPlugin] = []
    for n in dict.fromkeys(names):
        if n not in _PLUGINS:
            raise ConfigurationError(
                f"Unknown plugin: {n}. Available: {list_plugins()}. "
                f"Register it with corpus_metrics.plugins.registry.register_plugin"
            )
        plugins.append(_PLUGINS[n]())
    return plugins
