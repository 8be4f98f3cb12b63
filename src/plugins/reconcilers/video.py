"""
Video reconcilers - the youtube_video resource and data source.

The data source exposes every fetched part as an encoded string. The
resource tracks title and description, which are the only attributes it
writes back, through the snippet part.
"""

import logging
from typing import Any, Dict

from errors import GatewayError
from plugins.base import VIDEO_PARTS, ReconcileResult, encode_document
from plugins.reconcilers.base import DataSourcePlugin, ResourcePlugin
from resource_schema import (
    VIDEO_DATA_SOURCE_SCHEMA,
    VIDEO_RESOURCE_SCHEMA,
    DeclarationSource,
)

logger = logging.getLogger(__name__)

SNIPPET = "snippet"

# Data source attribute -> video part it encodes
PART_ATTRIBUTES = {
    "content_details": "contentDetails",
    "live_streaming_details": "liveStreamingDetails",
    "localizations": "localizations",
    "player": "player",
    "recording_details": "recordingDetails",
    "snippet": "snippet",
    "statistics": "statistics",
    "status": "status",
    "topic_details": "topicDetails",
}

READ_SUMMARY = "Unable to get Video"
UPDATE_SUMMARY = "Unable to update Video"


def _promoted(snippet: Any, field: str) -> Any:
    """Pull a field out of the snippet, tolerating a missing snippet."""
    if not isinstance(snippet, dict):
        return None
    return snippet.get(field)


class VideoDataSource(DataSourcePlugin):
    """Read-only view of one YouTube video."""

    name = "video"
    schema = VIDEO_DATA_SOURCE_SCHEMA

    async def read(self, config: Dict[str, Any]) -> ReconcileResult:
        async def handler(result: ReconcileResult) -> Dict[str, Any]:
            declaration = self.schema.decode(config, DeclarationSource.CONFIG)
            snapshot = await self._fetch(result, declaration["id"], VIDEO_PARTS)

            state = dict(declaration)
            state["res"] = encode_document(snapshot.to_item())
            for attribute, part in PART_ATTRIBUTES.items():
                state[attribute] = encode_document(snapshot.get(part))

            snippet = snapshot.get(SNIPPET)
            state["title"] = _promoted(snippet, "title")
            state["description"] = _promoted(snippet, "description")
            return state

        return await self._run("read", READ_SUMMARY, (config or {}).get("id"), handler)


class VideoResource(ResourcePlugin):
    """
    A YouTube video tracked by this provider.

    Videos are imported, never created or deleted. Updates copy the fetched
    snippet, apply the declared title and description, and write the whole
    snippet back.
    """

    create_detail = (
        "Please use an import mechanism, as YouTube videos cannot be "
        "uploaded by this provider."
    )
    delete_detail = (
        "The video was left on YouTube and is no longer tracked. "
        "Delete it from YouTube Studio if that was intended."
    )

    name = "video"
    schema = VIDEO_RESOURCE_SCHEMA

    async def read(self, state: Dict[str, Any]) -> ReconcileResult:
        async def handler(result: ReconcileResult) -> Dict[str, Any]:
            declaration = self.schema.decode(state, DeclarationSource.STATE)
            snapshot = await self._fetch(result, declaration["id"], VIDEO_PARTS)

            snippet = snapshot.get(SNIPPET)
            refreshed = dict(declaration)
            refreshed["title"] = _promoted(snippet, "title")
            refreshed["description"] = _promoted(snippet, "description")
            refreshed["res"] = encode_document(snippet)
            return refreshed

        return await self._run("read", READ_SUMMARY, (state or {}).get("id"), handler)

    async def update(self, plan: Dict[str, Any]) -> ReconcileResult:
        async def handler(result: ReconcileResult) -> Dict[str, Any]:
            declaration = self.schema.decode(plan, DeclarationSource.PLAN)
            snapshot = await self._fetch(result, declaration["id"], VIDEO_PARTS)

            snippet = snapshot.get(SNIPPET)
            if not isinstance(snippet, dict):
                raise GatewayError(
                    f"Video {declaration['id']} was returned without a snippet",
                    summary=UPDATE_SUMMARY,
                )
            snippet["title"] = declaration["title"]
            snippet["description"] = declaration["description"]
            logger.debug(f"Writing snippet of video {declaration['id']}")

            response = await self.gateway.apply_partial_update(
                frozenset({SNIPPET}), snapshot.with_part(SNIPPET, snippet)
            )

            updated = dict(declaration)
            updated["res"] = encode_document(response.to_item())
            return updated

        return await self._run(
            "update", UPDATE_SUMMARY, (plan or {}).get("id"), handler
        )
