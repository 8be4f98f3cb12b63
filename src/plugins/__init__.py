"""
Plugin system for the YouTube provider.

This package provides the gateway and reconciler plugins and the registry
the provider session uses to look them up.
"""

from plugins.base import ReconcilePhase, ReconcileResult, RemoteSnapshot
from plugins.gateways.base import Gateway
from plugins.reconcilers.base import DataSourcePlugin, ResourcePlugin
from plugins.registry import PluginRegistry, get_registry

__all__ = [
    "ReconcilePhase",
    "ReconcileResult",
    "RemoteSnapshot",
    "Gateway",
    "DataSourcePlugin",
    "ResourcePlugin",
    "PluginRegistry",
    "get_registry",
]
