"""
Gateway plugins package.

Gateways wrap the remote API calls used by reconcilers.
"""

from plugins.gateways.base import Gateway

__all__ = ["Gateway"]
