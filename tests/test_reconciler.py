"""Unit tests for the reconciler plugin system and the video reconcilers."""

import json
from unittest.mock import MagicMock

import pytest

from diagnostics import Severity
from errors import AuthenticationError, GatewayError, NotFoundError
from plugins.base import (
    VIDEO_PARTS,
    ReconcilePhase,
    ReconcileResult,
    RemoteSnapshot,
    decode_document,
    encode_document,
)
from plugins.gateways.base import Gateway
from plugins.reconcilers.base import ReconcilerPlugin, ResourcePlugin
from plugins.reconcilers.video import VideoDataSource, VideoResource
from resource_schema import VIDEO_RESOURCE_SCHEMA

# ==================== Test Helpers ====================


class DummyResource(ResourcePlugin):
    """Concrete resource for testing the base class behaviour."""

    name = "dummy"
    schema = VIDEO_RESOURCE_SCHEMA

    async def read(self, state):
        async def handler(result):
            return dict(state)

        return await self._run("read", "Unable to read", state.get("id"), handler)

    async def update(self, plan):
        async def handler(result):
            raise RuntimeError("boom")

        return await self._run("update", "Unable to update", plan.get("id"), handler)


def _assert_failed(result, summary=None):
    assert result.success is False
    assert result.phase is ReconcilePhase.FAILED
    assert result.state is None
    assert result.diagnostics.has_error()
    if summary is not None:
        assert result.diagnostics.errors[0].summary == summary


# ==================== ReconcileResult Tests ====================


class TestReconcileResult:
    """Tests for ReconcileResult dataclass."""

    def test_default_values(self):
        result = ReconcileResult(operation="youtube_video.read")
        assert result.phase is ReconcilePhase.PENDING
        assert result.state is None
        assert result.resource_id is None
        assert len(result.diagnostics) == 0
        assert result.success is False

    def test_transition(self):
        result = ReconcileResult(operation="op")
        result.transition(ReconcilePhase.FETCHING)
        result.transition(ReconcilePhase.RECONCILING)
        result.transition(ReconcilePhase.PERSISTED)
        assert result.success is True

    def test_no_transition_after_terminal_phase(self):
        result = ReconcileResult(operation="op")
        result.transition(ReconcilePhase.FAILED)
        with pytest.raises(RuntimeError):
            result.transition(ReconcilePhase.PERSISTED)

    def test_persisted_with_error_is_not_success(self):
        result = ReconcileResult(operation="op")
        result.diagnostics.add_error("bad")
        result.transition(ReconcilePhase.PERSISTED)
        assert result.success is False


# ==================== Encoding Tests ====================


class TestDocumentEncoding:
    """Tests for the canonical string form of sub-documents."""

    def test_missing_document_encodes_empty(self):
        assert encode_document(None) == ""
        assert decode_document("") is None

    def test_key_order_does_not_matter(self):
        assert encode_document({"b": 1, "a": 2}) == encode_document({"a": 2, "b": 1})

    def test_encoding_is_lossless(self, sample_video_item):
        encoded = encode_document(sample_video_item["snippet"])
        assert decode_document(encoded) == sample_video_item["snippet"]

    def test_non_ascii_preserved(self):
        assert encode_document({"title": "Été"}) == '{"title":"Été"}'


# ==================== RemoteSnapshot Tests ====================


class TestRemoteSnapshot:
    """Tests for RemoteSnapshot immutability and local mutation."""

    def test_only_requested_present_parts_kept(self, sample_video_item):
        snapshot = RemoteSnapshot.from_item(
            sample_video_item, {"snippet", "recordingDetails"}
        )
        assert snapshot.has_part("snippet")
        assert not snapshot.has_part("recordingDetails")
        assert not snapshot.has_part("statistics")
        assert snapshot.get("recordingDetails") is None

    def test_parts_are_read_only(self, sample_snapshot):
        with pytest.raises(TypeError):
            sample_snapshot.parts["snippet"] = {}

    def test_get_returns_copy(self, sample_snapshot):
        snippet = sample_snapshot.get("snippet")
        snippet["title"] = "changed"
        assert sample_snapshot.get("snippet")["title"] == "Old Title"

    def test_source_item_changes_do_not_leak(self, sample_video_item):
        snapshot = RemoteSnapshot.from_item(sample_video_item, VIDEO_PARTS)
        sample_video_item["snippet"]["title"] = "changed"
        assert snapshot.get("snippet")["title"] == "Old Title"

    def test_with_part_returns_new_snapshot(self, sample_snapshot):
        updated = sample_snapshot.with_part("snippet", {"title": "New"})
        assert updated.get("snippet") == {"title": "New"}
        assert sample_snapshot.get("snippet")["title"] == "Old Title"
        assert updated.resource_id == sample_snapshot.resource_id
        assert updated.item["etag"] == "etag-1"

    def test_with_part_rejects_unfetched_part(self, sample_video_item):
        snapshot = RemoteSnapshot.from_item(sample_video_item, {"snippet"})
        with pytest.raises(KeyError):
            snapshot.with_part("status", {})


# ==================== ReconcilerPlugin Base Tests ====================


class TestReconcilerPlugin:
    """Tests for the reconciler abstract base classes."""

    def test_cannot_instantiate_abstract(self):
        with pytest.raises(TypeError):
            ReconcilerPlugin(MagicMock(spec=Gateway))

    def test_incomplete_subclass_raises(self):
        class IncompleteResource(ResourcePlugin):
            name = "incomplete"
            schema = VIDEO_RESOURCE_SCHEMA

        with pytest.raises(TypeError):
            IncompleteResource(MagicMock(spec=Gateway))

    def test_type_name(self):
        resource = DummyResource(MagicMock(spec=Gateway), provider_type_name="yt")
        assert resource.type_name == "yt_dummy"

    @pytest.mark.asyncio
    async def test_success_persists_state(self):
        resource = DummyResource(MagicMock(spec=Gateway))
        result = await resource.read({"id": "a"})
        assert result.success is True
        assert result.phase is ReconcilePhase.PERSISTED
        assert result.state == {"id": "a"}

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_diagnostic(self):
        resource = DummyResource(MagicMock(spec=Gateway))
        result = await resource.update({"id": "a"})
        _assert_failed(result, "Unable to update")
        assert "boom" in result.diagnostics.errors[0].detail


# ==================== VideoDataSource Tests ====================


@pytest.mark.asyncio
class TestVideoDataSource:
    """Tests for the youtube_video data source."""

    async def test_read_encodes_every_part(self, mock_gateway, sample_video_item):
        data_source = VideoDataSource(mock_gateway)

        result = await data_source.read({"id": "XYZ"})

        assert result.success is True
        mock_gateway.fetch_by_id.assert_awaited_once_with("XYZ", VIDEO_PARTS)
        state = result.state
        assert list(state) == VideoDataSource.schema.attribute_names
        assert state["id"] == "XYZ"
        assert state["title"] == "Old Title"
        assert state["description"] == "Old Desc"
        assert json.loads(state["statistics"]) == sample_video_item["statistics"]
        assert json.loads(state["snippet"]) == sample_video_item["snippet"]
        assert json.loads(state["player"]) == sample_video_item["player"]
        assert json.loads(state["res"]) == sample_video_item

    async def test_absent_parts_encode_empty(self, mock_gateway):
        mock_gateway.fetch_by_id.return_value = RemoteSnapshot.from_item(
            {"id": "XYZ", "status": {"privacyStatus": "private"}}, VIDEO_PARTS
        )
        data_source = VideoDataSource(mock_gateway)

        result = await data_source.read({"id": "XYZ"})

        assert result.success is True
        assert result.state["recording_details"] == ""
        assert result.state["live_streaming_details"] == ""
        assert result.state["snippet"] == ""
        assert result.state["title"] is None
        assert result.state["description"] is None
        assert result.state["status"] == '{"privacyStatus":"private"}'

    async def test_repeated_read_is_identical(self, mock_gateway):
        data_source = VideoDataSource(mock_gateway)

        first = await data_source.read({"id": "XYZ"})
        second = await data_source.read({"id": "XYZ"})

        assert json.dumps(first.state) == json.dumps(second.state)
        assert mock_gateway.fetch_by_id.await_count == 2

    async def test_not_found(self, mock_gateway):
        mock_gateway.fetch_by_id.side_effect = NotFoundError("no videos found for ID")
        data_source = VideoDataSource(mock_gateway)

        result = await data_source.read({"id": "nope"})

        _assert_failed(result, "Unable to get Video")
        assert result.diagnostics.errors[0].detail == "no videos found for ID"

    async def test_missing_id_fails_before_fetch(self, mock_gateway):
        data_source = VideoDataSource(mock_gateway)

        result = await data_source.read({})

        _assert_failed(result, "Invalid declaration")
        mock_gateway.fetch_by_id.assert_not_called()

    async def test_computed_attribute_in_config_rejected(self, mock_gateway):
        data_source = VideoDataSource(mock_gateway)

        result = await data_source.read({"id": "XYZ", "title": "mine"})

        _assert_failed(result, "Invalid declaration")
        assert "title" in result.diagnostics.errors[0].detail
        mock_gateway.fetch_by_id.assert_not_called()

    async def test_unknown_attribute_rejected(self, mock_gateway):
        data_source = VideoDataSource(mock_gateway)

        result = await data_source.read({"id": "XYZ", "colour": "red"})

        _assert_failed(result, "Invalid declaration")
        assert "colour" in result.diagnostics.errors[0].detail
        mock_gateway.fetch_by_id.assert_not_called()


# ==================== VideoResource Tests ====================


@pytest.mark.asyncio
class TestVideoResourceRead:
    """Tests for VideoResource.read and import_state."""

    async def test_read_refreshes_title_and_description(self, mock_gateway):
        resource = VideoResource(mock_gateway)
        prior = {"id": "XYZ", "title": "stale", "description": "stale", "res": "x"}

        result = await resource.read(prior)

        assert result.success is True
        assert result.state["title"] == "Old Title"
        assert result.state["description"] == "Old Desc"
        assert decode_document(result.state["res"])["categoryId"] == "22"
        assert prior["title"] == "stale"

    async def test_read_not_found_persists_nothing(self, mock_gateway):
        mock_gateway.fetch_by_id.side_effect = NotFoundError("no videos found for ID")
        resource = VideoResource(mock_gateway)

        result = await resource.read({"id": "gone"})

        _assert_failed(result)
        assert result.resource_id == "gone"

    async def test_read_gateway_failure(self, mock_gateway):
        mock_gateway.fetch_by_id.side_effect = GatewayError("HTTP 500: backend error")
        resource = VideoResource(mock_gateway)

        result = await resource.read({"id": "XYZ"})

        _assert_failed(result, "Unable to get Video")
        assert result.diagnostics.errors[0].detail == "HTTP 500: backend error"

    async def test_auth_failure_keeps_its_summary(self, mock_gateway):
        mock_gateway.fetch_by_id.side_effect = AuthenticationError(
            "HTTP 401: Invalid Credentials", summary="YouTube credential rejected"
        )
        resource = VideoResource(mock_gateway)

        result = await resource.read({"id": "XYZ"})

        _assert_failed(result, "YouTube credential rejected")

    async def test_state_without_id_rejected(self, mock_gateway):
        resource = VideoResource(mock_gateway)

        result = await resource.read({"title": "t"})

        _assert_failed(result)
        mock_gateway.fetch_by_id.assert_not_called()

    async def test_import_matches_read(self, mock_gateway):
        resource = VideoResource(mock_gateway)

        imported = await resource.import_state("abc123")
        read = await resource.read({"id": "abc123"})

        assert imported.success is True
        assert imported.state == read.state
        assert imported.state["id"] == "abc123"
        mock_gateway.fetch_by_id.assert_awaited_with("abc123", VIDEO_PARTS)

    async def test_import_not_found(self, mock_gateway):
        mock_gateway.fetch_by_id.side_effect = NotFoundError("no videos found for ID")
        resource = VideoResource(mock_gateway)

        result = await resource.import_state("abc123")

        _assert_failed(result, "Unable to get Video")


@pytest.mark.asyncio
class TestVideoResourceUpdate:
    """Tests for VideoResource.update."""

    async def test_update_propagates_title_and_description(self, mock_gateway):
        resource = VideoResource(mock_gateway)
        plan = {"id": "XYZ", "title": "New Title", "description": "New Desc"}

        result = await resource.update(plan)

        assert result.success is True
        mock_gateway.apply_partial_update.assert_awaited_once()
        parts, written = mock_gateway.apply_partial_update.call_args.args
        assert parts == frozenset({"snippet"})
        snippet = written.get("snippet")
        assert snippet["description"] == "New Desc"
        assert snippet["title"] == "New Title"
        # Untouched snippet fields are written back as fetched
        assert snippet["categoryId"] == "22"
        assert snippet["tags"] == ["a", "b"]

    async def test_update_persists_plan_and_raw_response(self, mock_gateway):
        resource = VideoResource(mock_gateway)
        plan = {"id": "XYZ", "title": "New Title", "description": "New Desc"}

        result = await resource.update(plan)

        assert result.state["id"] == "XYZ"
        assert result.state["title"] == "New Title"
        assert result.state["description"] == "New Desc"
        response = decode_document(result.state["res"])
        assert response["etag"] == "etag-2"
        assert response["snippet"]["description"] == "New Desc"

    async def test_fetch_happens_before_write(self, mock_gateway):
        calls = []
        fetch = mock_gateway.fetch_by_id.return_value

        async def record_fetch(*args):
            calls.append("fetch")
            return fetch

        update = mock_gateway.apply_partial_update.side_effect

        async def record_update(*args):
            calls.append("update")
            return await update(*args)

        mock_gateway.fetch_by_id.side_effect = record_fetch
        mock_gateway.apply_partial_update.side_effect = record_update
        resource = VideoResource(mock_gateway)

        await resource.update({"id": "XYZ", "title": "t", "description": "d"})

        assert calls == ["fetch", "update"]

    async def test_not_found_never_writes(self, mock_gateway):
        mock_gateway.fetch_by_id.side_effect = NotFoundError("no videos found for ID")
        resource = VideoResource(mock_gateway)

        result = await resource.update(
            {"id": "XYZ", "title": "t", "description": "d"}
        )

        _assert_failed(result)
        assert result.phase is ReconcilePhase.FAILED
        mock_gateway.apply_partial_update.assert_not_called()

    async def test_fetch_failure_never_writes(self, mock_gateway):
        mock_gateway.fetch_by_id.side_effect = GatewayError("request cancelled")
        resource = VideoResource(mock_gateway)

        result = await resource.update(
            {"id": "XYZ", "title": "t", "description": "d"}
        )

        _assert_failed(result)
        mock_gateway.apply_partial_update.assert_not_called()

    async def test_write_failure_persists_nothing(self, mock_gateway):
        mock_gateway.apply_partial_update.side_effect = GatewayError(
            "HTTP 400: invalidDescription"
        )
        resource = VideoResource(mock_gateway)

        result = await resource.update(
            {"id": "XYZ", "title": "t", "description": "d"}
        )

        _assert_failed(result, "Unable to update Video")
        assert "invalidDescription" in result.diagnostics.errors[0].detail

    async def test_missing_title_rejected_before_fetch(self, mock_gateway):
        resource = VideoResource(mock_gateway)

        result = await resource.update({"id": "XYZ", "description": "d"})

        _assert_failed(result, "Invalid declaration")
        mock_gateway.fetch_by_id.assert_not_called()

    async def test_snippet_missing_from_fetch(self, mock_gateway):
        mock_gateway.fetch_by_id.return_value = RemoteSnapshot.from_item(
            {"id": "XYZ", "status": {}}, VIDEO_PARTS
        )
        resource = VideoResource(mock_gateway)

        result = await resource.update(
            {"id": "XYZ", "title": "t", "description": "d"}
        )

        _assert_failed(result, "Unable to update Video")
        mock_gateway.apply_partial_update.assert_not_called()


@pytest.mark.asyncio
class TestVideoResourceLifecycle:
    """Tests for the create and delete restrictions."""

    @pytest.mark.parametrize(
        "plan",
        [
            {"id": "XYZ", "title": "t", "description": "d"},
            {},
            None,
            {"unexpected": True},
        ],
    )
    async def test_create_always_unsupported(self, mock_gateway, plan):
        resource = VideoResource(mock_gateway)

        result = await resource.create(plan)

        _assert_failed(result, "Creation not supported")
        assert "import" in result.diagnostics.errors[0].detail
        mock_gateway.fetch_by_id.assert_not_called()
        mock_gateway.apply_partial_update.assert_not_called()

    async def test_delete_is_remote_noop(self, mock_gateway):
        resource = VideoResource(mock_gateway)

        result = await resource.delete({"id": "XYZ", "title": "t"})

        assert result.success is True
        assert result.state is None
        assert result.resource_id == "XYZ"
        assert not result.diagnostics.has_error()
        assert [d.severity for d in result.diagnostics] == [Severity.WARNING]
        mock_gateway.fetch_by_id.assert_not_called()
        mock_gateway.apply_partial_update.assert_not_called()

    async def test_delete_without_state(self, mock_gateway):
        resource = VideoResource(mock_gateway)

        result = await resource.delete(None)

        assert result.success is True
        mock_gateway.fetch_by_id.assert_not_called()
        mock_gateway.apply_partial_update.assert_not_called()
