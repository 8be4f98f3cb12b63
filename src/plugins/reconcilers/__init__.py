"""
Reconciler plugins package.

Reconcilers map declarations of one resource type onto gateway calls.
"""

from plugins.reconcilers.base import (
    DataSourcePlugin,
    ReconcilerPlugin,
    ResourcePlugin,
)

__all__ = ["DataSourcePlugin", "ReconcilerPlugin", "ResourcePlugin"]
