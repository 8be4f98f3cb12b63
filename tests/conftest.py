"""Pytest configuration and fixtures."""

import copy

import pytest
from unittest.mock import AsyncMock, MagicMock

from plugins.base import VIDEO_PARTS, RemoteSnapshot
from plugins.gateways.base import Gateway


@pytest.fixture
def sample_video_item():
    """A videos.list item with every part the reconcilers request."""
    return {
        "kind": "youtube#video",
        "etag": "etag-1",
        "id": "XYZ",
        "snippet": {
            "publishedAt": "2024-01-01T00:00:00Z",
            "channelId": "UC123",
            "title": "Old Title",
            "description": "Old Desc",
            "categoryId": "22",
            "tags": ["a", "b"],
        },
        "contentDetails": {"duration": "PT4M13S", "definition": "hd"},
        "statistics": {"viewCount": "10", "likeCount": "2"},
        "status": {"privacyStatus": "public", "embeddable": True},
        "player": {"embedHtml": "<iframe src=\"//youtube.com/embed/XYZ\"></iframe>"},
        "topicDetails": {"topicCategories": ["https://en.wikipedia.org/wiki/Music"]},
        "localizations": {"fr": {"title": "Titre", "description": "Desc"}},
    }


@pytest.fixture
def sample_snapshot(sample_video_item):
    """Snapshot built from the sample item."""
    return RemoteSnapshot.from_item(sample_video_item, VIDEO_PARTS)


@pytest.fixture
def mock_gateway(sample_snapshot):
    """Gateway whose fetch returns the sample snapshot and whose update echoes."""
    gateway = MagicMock(spec=Gateway)
    gateway.fetch_by_id = AsyncMock(return_value=sample_snapshot)

    async def echo_update(parts, snapshot):
        item = {"kind": "youtube#video", "etag": "etag-2", "id": snapshot.resource_id}
        for part in parts:
            item[part] = copy.deepcopy(snapshot.get(part))
        return RemoteSnapshot.from_item(item, parts)

    gateway.apply_partial_update = AsyncMock(side_effect=echo_update)
    return gateway


@pytest.fixture
def response_cm():
    """Factory for async context manager mocks standing in for aiohttp responses."""

    def make(status=200, json_body=None, text=""):
        response = AsyncMock()
        response.status = status
        response.json = AsyncMock(return_value=json_body)
        response.text = AsyncMock(return_value=text)
        return AsyncMock(
            __aenter__=AsyncMock(return_value=response),
            __aexit__=AsyncMock(return_value=False),
        )

    return make
