"""
Reconciler Plugin Base - Abstract interface for resource and data source reconcilers.

A reconciler maps a decoded declaration onto gateway calls for one resource
type. Every public operation runs behind a boundary that turns raised
provider errors into diagnostics, so callers always get a ReconcileResult:
either with persisted state or with at least one error and no state.
"""

import logging
from abc import ABC, abstractmethod
from typing import AbstractSet, Any, Awaitable, Callable, Dict, Optional

from errors import GatewayError, NotFoundError, ProviderError, UnsupportedOperationError
from plugins.base import ReconcilePhase, ReconcileResult, RemoteSnapshot
from plugins.gateways.base import Gateway
from resource_schema import ResourceSchema

logger = logging.getLogger(__name__)

Handler = Callable[[ReconcileResult], Awaitable[Dict[str, Any]]]


class ReconcilerPlugin(ABC):
    """
    Common base for resource and data source reconcilers.

    The gateway is injected by the provider session at construction time.
    Reconcilers hold no state between calls.
    """

    def __init__(self, gateway: Gateway, provider_type_name: str = "youtube"):
        self.gateway = gateway
        self.type_name = f"{provider_type_name}_{self.name}"

    @property
    @abstractmethod
    def name(self) -> str:
        """Short resource name (e.g., 'video')."""
        pass

    @property
    @abstractmethod
    def schema(self) -> ResourceSchema:
        """Attribute schema of this resource type."""
        pass

    async def _run(
        self,
        operation: str,
        summary: str,
        resource_id: Optional[str],
        handler: Handler,
    ) -> ReconcileResult:
        """
        Run one operation behind the diagnostics boundary.

        Args:
            operation: Operation name used in logs (e.g., 'read').
            summary: Diagnostic summary for errors that carry none.
            resource_id: Identifier being reconciled, if known.
            handler: Coroutine function returning the state to persist.

        Returns:
            ReconcileResult in phase PERSISTED with state, or FAILED without.
        """
        result = ReconcileResult(
            operation=f"{self.type_name}.{operation}", resource_id=resource_id
        )

        try:
            state = await handler(result)
        except NotFoundError as e:
            result.transition(ReconcilePhase.NOT_FOUND)
            self._fail(result, e.summary or summary, e.message)
        except GatewayError as e:
            result.transition(ReconcilePhase.GATEWAY_FAILED)
            self._fail(result, e.summary or summary, e.message)
        except ProviderError as e:
            self._fail(result, e.summary or summary, e.message)
        except Exception as e:
            logger.exception(f"Unexpected error during {result.operation}")
            self._fail(result, summary, f"Unexpected error: {e}")
        else:
            result.state = state
            result.transition(ReconcilePhase.PERSISTED)
            logger.info(f"{result.operation} succeeded for {result.resource_id}")

        return result

    @staticmethod
    def _fail(result: ReconcileResult, summary: str, detail: str) -> None:
        result.diagnostics.add_error(summary, detail)
        result.state = None
        result.transition(ReconcilePhase.FAILED)
        logger.warning(f"{result.operation} failed: {summary}: {detail}")

    async def _fetch(
        self, result: ReconcileResult, resource_id: str, parts: AbstractSet[str]
    ) -> RemoteSnapshot:
        """Fetch a fresh snapshot, moving the result through FETCHING."""
        result.resource_id = resource_id
        result.transition(ReconcilePhase.FETCHING)
        snapshot = await self.gateway.fetch_by_id(resource_id, parts)
        result.transition(ReconcilePhase.RECONCILING)
        return snapshot


class DataSourcePlugin(ReconcilerPlugin):
    """Read-only projection of a remote resource."""

    @abstractmethod
    async def read(self, config: Dict[str, Any]) -> ReconcileResult:
        """
        Read the remote resource named by the configuration.

        Args:
            config: Raw configuration attributes.

        Returns:
            ReconcileResult whose state holds every schema attribute.
        """
        pass


class ResourcePlugin(ReconcilerPlugin):
    """
    Managed resource with a restricted lifecycle.

    Resources are onboarded with import_state() only. create() always fails
    and delete() only detaches tracking; neither calls the gateway.
    """

    create_detail = "Please use an import mechanism to start tracking it."
    delete_detail = "The remote resource was left in place and is no longer tracked."

    @abstractmethod
    async def read(self, state: Dict[str, Any]) -> ReconcileResult:
        """Refresh prior state from the remote resource."""
        pass

    @abstractmethod
    async def update(self, plan: Dict[str, Any]) -> ReconcileResult:
        """Push the mutable attributes of the plan to the remote resource."""
        pass

    async def import_state(self, identifier: str) -> ReconcileResult:
        """Seed a declaration with the identifier only and read it."""
        seeded = self.schema.null_declaration()
        seeded[self.schema.identifier] = identifier
        logger.debug(f"Importing {self.type_name} {identifier}")
        return await self.read(seeded)

    async def create(self, plan: Optional[Dict[str, Any]] = None) -> ReconcileResult:
        """Always fails: this provider never creates remote resources."""

        async def refuse(result: ReconcileResult) -> Dict[str, Any]:
            raise UnsupportedOperationError(
                f"{self.type_name} resources cannot be created. {self.create_detail}",
                summary="Creation not supported",
            )

        return await self._run("create", "Creation not supported", None, refuse)

    async def delete(self, state: Optional[Dict[str, Any]] = None) -> ReconcileResult:
        """
        Stop tracking the resource without any remote call.

        The result is always successful and carries no state; a warning
        diagnostic records that the remote resource still exists.
        """
        resource_id = (state or {}).get(self.schema.identifier)
        result = ReconcileResult(
            operation=f"{self.type_name}.delete", resource_id=resource_id
        )
        result.diagnostics.add_warning(
            f"{self.type_name} not deleted remotely", self.delete_detail
        )
        result.transition(ReconcilePhase.PERSISTED)
        logger.info(f"Detached {self.type_name} {resource_id} without remote deletion")
        return result
