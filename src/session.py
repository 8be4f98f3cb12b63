"""
Provider Session - Builds the gateway from the bootstrap credential.

The session owns the single gateway of a provider run and hands it to every
resource and data source reconciler it creates. If configuration fails no
gateway exists and no reconciler can be obtained; only detaching a resource,
which never calls the gateway, still works.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from config import YouTubeConfig
from diagnostics import Diagnostics
from errors import SessionNotConfiguredError, ValidationError
from plugins.base import ReconcileResult
from plugins.gateways.base import Gateway
from plugins.gateways.youtube import YouTubeGateway
from plugins.reconcilers.base import DataSourcePlugin, ResourcePlugin
from plugins.registry import PluginRegistry, register_builtin_plugins
from resource_schema import PROVIDER_SCHEMA, DeclarationSource, ResourceSchema

logger = logging.getLogger(__name__)

GatewayFactory = Callable[..., Gateway]


class ProviderSession:
    """
    One configured provider instance.

    Args:
        version: Provider version, "dev" for local builds.
        settings: Client settings other than the credential.
        registry: Registry of reconciler plugins. A private registry with the
            built-in plugins is used when omitted.
        gateway_factory: Callable building a gateway from access_token,
            api_base_url and timeout keyword arguments.
    """

    type_name = "youtube"

    def __init__(
        self,
        version: str = "dev",
        settings: Optional[YouTubeConfig] = None,
        registry: Optional[PluginRegistry] = None,
        gateway_factory: GatewayFactory = YouTubeGateway,
    ):
        self.version = version
        self.settings = settings or YouTubeConfig()
        self.registry = registry or register_builtin_plugins(PluginRegistry())
        self._gateway_factory = gateway_factory
        self._gateway: Optional[Gateway] = None
        self.diagnostics = Diagnostics()

    @property
    def schema(self) -> ResourceSchema:
        return PROVIDER_SCHEMA

    @property
    def configured(self) -> bool:
        return self._gateway is not None

    async def configure(self, config: Dict[str, Any]) -> Diagnostics:
        """
        Build and open the gateway from the provider configuration.

        Args:
            config: Raw provider attributes (access_token).

        Returns:
            Diagnostics of the configuration step. Errors are fatal for the
            session; they are also kept on self.diagnostics.
        """
        diagnostics = Diagnostics()

        try:
            data = self.schema.decode(config, DeclarationSource.CONFIG)
        except ValidationError as e:
            diagnostics.add_error("Invalid provider configuration", e.message)
            return self._finish_configure(diagnostics)

        logger.debug(f"Configuring provider with {self.schema.redact(data)}")
        if not data["access_token"]:
            diagnostics.add_error(
                "Missing YouTube Access Token",
                "The provider cannot create the YouTube API client because the "
                "access_token value is empty. Set access_token in the provider "
                "configuration or the YOUTUBE_ACCESS_TOKEN environment variable.",
            )
            return self._finish_configure(diagnostics)

        try:
            gateway = self._gateway_factory(
                access_token=data["access_token"],
                api_base_url=self.settings.api_base_url,
                timeout=self.settings.timeout,
            )
            await gateway.open()
        except Exception as e:
            logger.error(f"Failed to create YouTube API client: {e}")
            diagnostics.add_error(
                "Unable to Create YouTube API Client",
                "An unexpected error occurred when creating the YouTube API "
                "client. If the error is not clear, please contact the provider "
                f"developers.\n\nYouTube Client Error: {e}",
            )
            return self._finish_configure(diagnostics)

        if self._gateway is not None:
            await self._gateway.close()
        self._gateway = gateway
        logger.info(f"Configured {self.type_name} provider {self.version}")
        return self._finish_configure(diagnostics)

    def _finish_configure(self, diagnostics: Diagnostics) -> Diagnostics:
        self.diagnostics = diagnostics
        if diagnostics.has_error():
            logger.error(
                f"{self.type_name} provider configuration failed: "
                f"{'; '.join(d.summary for d in diagnostics.errors)}"
            )
        return diagnostics

    def resource_type_names(self) -> List[str]:
        return [f"{self.type_name}_{n}" for n in self.registry.list_resource_plugins()]

    def data_source_type_names(self) -> List[str]:
        return [
            f"{self.type_name}_{n}" for n in self.registry.list_data_source_plugins()
        ]

    def resource(self, type_name: str) -> ResourcePlugin:
        """
        Create a resource reconciler bound to this session's gateway.

        Raises:
            SessionNotConfiguredError: If configure() has not succeeded.
            ValueError: If the type name is unknown.
        """
        plugin_class = self.registry.get_resource_plugin(self._short_name(type_name))
        return plugin_class(self._require_gateway(), provider_type_name=self.type_name)

    def data_source(self, type_name: str) -> DataSourcePlugin:
        """
        Create a data source reconciler bound to this session's gateway.

        Raises:
            SessionNotConfiguredError: If configure() has not succeeded.
            ValueError: If the type name is unknown.
        """
        plugin_class = self.registry.get_data_source_plugin(
            self._short_name(type_name)
        )
        return plugin_class(self._require_gateway(), provider_type_name=self.type_name)

    async def detach(
        self, type_name: str, state: Optional[Dict[str, Any]] = None
    ) -> ReconcileResult:
        """
        Run a resource delete, which needs no credential.

        Delete never calls the gateway, so it works on a session whose
        configuration failed or never ran.
        """
        plugin_class = self.registry.get_resource_plugin(self._short_name(type_name))
        plugin = plugin_class(self._gateway, provider_type_name=self.type_name)
        return await plugin.delete(state)

    def _short_name(self, type_name: str) -> str:
        prefix = f"{self.type_name}_"
        if not type_name.startswith(prefix):
            raise ValueError(
                f"Type name '{type_name}' does not belong to the "
                f"{self.type_name} provider"
            )
        return type_name[len(prefix):]

    def _require_gateway(self) -> Gateway:
        if self._gateway is None:
            detail = "The provider has not been configured."
            if self.diagnostics.has_error():
                detail = "; ".join(str(d) for d in self.diagnostics.errors)
            raise SessionNotConfiguredError(
                detail, summary="Provider not configured"
            )
        return self._gateway

    async def close(self) -> None:
        if self._gateway is not None:
            await self._gateway.close()
            self._gateway = None

    async def __aenter__(self) -> "ProviderSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
