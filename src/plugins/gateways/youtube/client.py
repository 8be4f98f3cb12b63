"""
YouTube Gateway - Implements Gateway for the YouTube Data API v3 videos collection.

Fetches videos with videos.list and writes them back with videos.update,
authenticating with a static OAuth bearer token.
"""

import asyncio
import json
import logging
from typing import AbstractSet, Any, Dict, Optional

import aiohttp

from config import DEFAULT_API_BASE_URL
from errors import AuthenticationError, GatewayError, NotFoundError, ValidationError
from plugins.base import VIDEO_PARTS, RemoteSnapshot
from plugins.gateways.base import Gateway

logger = logging.getLogger(__name__)


class YouTubeGateway(Gateway):
    """
    Gateway for YouTube videos.

    Holds a single aiohttp.ClientSession for its lifetime; the session is
    shared by all concurrent reconciler calls. A 401 from the API marks the
    credential as rejected and every later call fails without a request.
    """

    def __init__(
        self,
        access_token: str,
        api_base_url: str = DEFAULT_API_BASE_URL,
        timeout: int = 30,
    ):
        if not access_token:
            raise ValueError("access_token must not be empty")
        self._access_token = access_token
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None
        self._credential_rejected = False

    @property
    def name(self) -> str:
        return "youtube"

    @property
    def videos_url(self) -> str:
        return f"{self.api_base_url}/videos"

    @property
    def credential_rejected(self) -> bool:
        return self._credential_rejected

    async def open(self) -> None:
        if self._session is not None:
            return
        self._session = aiohttp.ClientSession(
            headers=self._get_headers(),
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        )
        logger.debug(
            f"YouTube gateway opened: api_base_url={self.api_base_url}, "
            f"timeout={self.timeout}s"
        )

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None
            logger.debug("YouTube gateway closed")

    async def fetch_by_id(
        self, resource_id: str, parts: AbstractSet[str]
    ) -> RemoteSnapshot:
        if not resource_id:
            raise ValidationError("Video ID must not be empty")
        self._check_parts(parts)

        body = await self._request(
            "GET",
            params={"part": ",".join(sorted(parts)), "id": resource_id},
        )

        items = body.get("items") or []
        if not items:
            raise NotFoundError("no videos found for ID")

        logger.info(f"Fetched video {resource_id} ({len(parts)} parts)")
        return RemoteSnapshot.from_item(items[0], parts)

    async def apply_partial_update(
        self, parts: AbstractSet[str], snapshot: RemoteSnapshot
    ) -> RemoteSnapshot:
        self._check_parts(parts)
        missing = sorted(p for p in parts if not snapshot.has_part(p))
        if missing:
            raise ValidationError(
                f"Cannot update parts not present in the fetched video: "
                f"{', '.join(missing)}"
            )
        if not snapshot.resource_id:
            raise ValidationError("Snapshot has no video ID")

        payload: Dict[str, Any] = {"id": snapshot.resource_id}
        for part in sorted(parts):
            payload[part] = snapshot.get(part)

        body = await self._request(
            "PUT",
            params={"part": ",".join(sorted(parts))},
            payload=payload,
        )

        logger.info(
            f"Updated video {snapshot.resource_id} "
            f"(parts: {', '.join(sorted(parts))})"
        )
        return RemoteSnapshot.from_item(body, parts)

    # Private helper methods

    def _get_headers(self) -> Dict[str, str]:
        """Get HTTP headers for YouTube API requests."""
        return {
            "Accept": "application/json",
            "Authorization": f"Bearer {self._access_token}",
        }

    @staticmethod
    def _check_parts(parts: AbstractSet[str]) -> None:
        if not parts:
            raise ValidationError("At least one video part must be requested")
        unknown = sorted(set(parts) - VIDEO_PARTS)
        if unknown:
            raise ValidationError(f"Unknown video parts: {', '.join(unknown)}")

    async def _request(
        self,
        method: str,
        params: Dict[str, str],
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send one request to the videos collection and return the JSON body."""
        if self._credential_rejected:
            raise AuthenticationError(
                "The access token was rejected by the YouTube API earlier in "
                "this session",
                summary="YouTube credential rejected",
                status_code=401,
            )
        if self._session is None:
            raise GatewayError("YouTube gateway is not open")

        try:
            async with self._session.request(
                method, self.videos_url, params=params, json=payload
            ) as response:
                if response.status >= 400:
                    await self._raise_for_status(response)
                return await response.json()
        except aiohttp.ClientError as e:
            logger.warning(f"YouTube API {method} failed: {e}")
            raise GatewayError(f"YouTube API request failed: {e}") from e
        except asyncio.TimeoutError as e:
            logger.warning(f"YouTube API {method} timed out after {self.timeout}s")
            raise GatewayError(
                f"YouTube API request timed out after {self.timeout}s"
            ) from e
        except asyncio.CancelledError as e:
            logger.warning(f"YouTube API {method} cancelled")
            raise GatewayError("YouTube API request cancelled") from e

    async def _raise_for_status(self, response: aiohttp.ClientResponse) -> None:
        message = await self._error_message(response)
        if response.status == 401:
            self._credential_rejected = True
            logger.error("YouTube API rejected the access token")
            raise AuthenticationError(
                f"HTTP 401: {message}",
                summary="YouTube credential rejected",
                status_code=401,
            )
        logger.warning(f"YouTube API returned HTTP {response.status}: {message}")
        raise GatewayError(
            f"HTTP {response.status}: {message}", status_code=response.status
        )

    @staticmethod
    async def _error_message(response: aiohttp.ClientResponse) -> str:
        """Extract the API error message, falling back to the raw body."""
        text = await response.text()
        try:
            body = json.loads(text)
        except ValueError:
            return text
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            return body["error"].get("message") or text
        return text
