"""Metric plugins: the interface, the core sampling plugin and the static registry."""

from .base import MetricPlugin, MetricFn
from .core import CorePlugin
from .registry import register_plugin, unregister_plugin, list_plugins, make_plugins

__all__ = [
    "MetricPlugin",
    "MetricFn",
    "CorePlugin",
    "register_plugin",
    "unregister_plugin",
    "list_plugins",
    "make_plugins",
]
