"""
Gateway Base - Abstract interface for remote resource gateways.

A gateway wraps the two remote calls the reconcilers need: fetch one item by
identifier and apply a partial update. One gateway is built per provider
session and shared by every reconciler it hands out.
"""

from abc import ABC, abstractmethod
from typing import AbstractSet

from plugins.base import RemoteSnapshot


class Gateway(ABC):
    """
    Abstract base class for remote resource gateways.

    Implementations must be safe for concurrent use by several reconciler
    calls running on the same event loop.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this gateway (e.g., 'youtube')."""
        pass

    @abstractmethod
    async def open(self) -> None:
        """Create the underlying transport. Called once by the provider session."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying transport."""
        pass

    @abstractmethod
    async def fetch_by_id(
        self, resource_id: str, parts: AbstractSet[str]
    ) -> RemoteSnapshot:
        """
        Fetch one remote item.

        Args:
            resource_id: Remote identifier. Must be non-empty.
            parts: Part names to fetch. Must be non-empty.

        Returns:
            RemoteSnapshot of the first returned item.

        Raises:
            ValidationError: If resource_id or parts is empty.
            NotFoundError: If the remote API returned zero items.
            GatewayError: On transport, auth or cancellation failure.
        """
        pass

    @abstractmethod
    async def apply_partial_update(
        self, parts: AbstractSet[str], snapshot: RemoteSnapshot
    ) -> RemoteSnapshot:
        """
        Write the given parts of a previously fetched snapshot.

        The full sub-document of every part in `parts` is sent; the gateway
        never builds a partial sub-document of its own.

        Args:
            parts: Part names to write. Must all be present in the snapshot.
            snapshot: Snapshot from fetch_by_id, possibly with parts replaced.

        Returns:
            RemoteSnapshot of the item returned by the remote API.

        Raises:
            ValidationError: If parts is empty or names parts not in the snapshot.
            GatewayError: On transport, auth or cancellation failure.
        """
        pass

    async def __aenter__(self) -> "Gateway":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
