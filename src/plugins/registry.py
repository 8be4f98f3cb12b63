"""
Plugin Registry - Registration of resource and data source reconcilers.

The provider session looks reconciler classes up here by short name and
instantiates them with its gateway.
"""

import logging
from typing import Dict, List, Optional, Type

from plugins.reconcilers.base import DataSourcePlugin, ResourcePlugin

logger = logging.getLogger(__name__)


class PluginRegistry:
    """
    Central registry for reconciler plugins.

    Resource and data source plugins live in separate namespaces, so a
    resource and a data source may share a name (as 'video' does).
    """

    def __init__(self):
        self._resource_plugins: Dict[str, Type[ResourcePlugin]] = {}
        self._data_source_plugins: Dict[str, Type[DataSourcePlugin]] = {}

    # Registration methods

    def register_resource_plugin(self, plugin_class: Type[ResourcePlugin]) -> None:
        """
        Register a resource plugin class.

        Args:
            plugin_class: The ResourcePlugin subclass to register
        """
        name = plugin_class.name

        if name in self._resource_plugins:
            logger.warning(f"Overwriting existing resource plugin: {name}")

        self._resource_plugins[name] = plugin_class
        logger.debug(f"Registered resource plugin: {name}")

    def register_data_source_plugin(
        self, plugin_class: Type[DataSourcePlugin]
    ) -> None:
        """
        Register a data source plugin class.

        Args:
            plugin_class: The DataSourcePlugin subclass to register
        """
        name = plugin_class.name

        if name in self._data_source_plugins:
            logger.warning(f"Overwriting existing data source plugin: {name}")

        self._data_source_plugins[name] = plugin_class
        logger.debug(f"Registered data source plugin: {name}")

    # Lookup methods

    def get_resource_plugin(self, name: str) -> Type[ResourcePlugin]:
        """
        Get a registered resource plugin class.

        Raises:
            ValueError: If the name is not registered
        """
        if name not in self._resource_plugins:
            available = ", ".join(self._resource_plugins.keys()) or "none"
            raise ValueError(
                f"Unknown resource plugin: {name}. Available resources: {available}"
            )
        return self._resource_plugins[name]

    def get_data_source_plugin(self, name: str) -> Type[DataSourcePlugin]:
        """
        Get a registered data source plugin class.

        Raises:
            ValueError: If the name is not registered
        """
        if name not in self._data_source_plugins:
            available = ", ".join(self._data_source_plugins.keys()) or "none"
            raise ValueError(
                f"Unknown data source plugin: {name}. "
                f"Available data sources: {available}"
            )
        return self._data_source_plugins[name]

    def list_resource_plugins(self) -> List[str]:
        """List all registered resource plugin names."""
        return list(self._resource_plugins.keys())

    def list_data_source_plugins(self) -> List[str]:
        """List all registered data source plugin names."""
        return list(self._data_source_plugins.keys())

    def has_resource_plugin(self, name: str) -> bool:
        return name in self._resource_plugins

    def has_data_source_plugin(self, name: str) -> bool:
        return name in self._data_source_plugins


# Global registry instance
_registry: Optional[PluginRegistry] = None


def get_registry() -> PluginRegistry:
    """Get the global plugin registry singleton."""
    global _registry
    if _registry is None:
        _registry = PluginRegistry()
    return _registry


def reset_registry() -> None:
    """Reset the global registry (mainly for testing)."""
    global _registry
    _registry = None


def register_builtin_plugins(
    registry: Optional[PluginRegistry] = None,
) -> PluginRegistry:
    """
    Register the plugins that ship with the provider.

    Args:
        registry: Registry to fill. Defaults to the global registry.

    Returns:
        The registry the plugins were registered in.
    """
    from plugins.reconcilers.video import VideoDataSource, VideoResource

    registry = registry or get_registry()
    registry.register_resource_plugin(VideoResource)
    registry.register_data_source_plugin(VideoDataSource)
    return registry
