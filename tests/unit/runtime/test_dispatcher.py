"""Unit tests for Dispatcher."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from opwire.engine.auth import StaticTokenProvider
from opwire.engine.core import CredentialError, EngineConfig, EventKind, RateLimitError, TransportError
from opwire.engine.models import FileInfo, RawResponse, RequestDescriptor, ResultEvent
from opwire.engine.runtime import Dispatcher, RateLimitGuard, encode_body


def _descriptor(**overrides) -> RequestDescriptor:
    values = {"operation": "get_devices", "path": "https://api.example.com/devices/entities/v1"}
    values.update(overrides)
    return RequestDescriptor(**values)


class TestEncodeBody:
    """Test body serialization before sending."""

    def test_json_body_encoded(self):
        prepared = encode_body(_descriptor(body={"name": "é"}, headers={"Content-Type": "application/json"}))
        assert json.loads(prepared.body.decode("utf-8")) == {"name": "é"}

    def test_content_type_added_when_missing(self):
        prepared = encode_body(_descriptor(body=[1, 2]))
        assert prepared.content_type == "application/json"
        assert prepared.body == b"[1, 2]"

    def test_non_json_content_type_left_alone(self):
        descriptor = _descriptor(body={"a": "b"}, headers={"Content-Type": "application/x-www-form-urlencoded"})
        assert encode_body(descriptor).body == {"a": "b"}

    def test_bytes_untouched(self):
        descriptor = _descriptor(body=b"raw")
        assert encode_body(descriptor) is descriptor


class TestDispatcherBasics:
    """Test request sending and event production."""

    @pytest.mark.asyncio
    async def test_records_then_errors(self, make_transport, json_response):
        transport = make_transport(
            [json_response({"resources": ["a", "b"], "errors": [{"code": 404, "message": "c not found"}]})]
        )
        outcome = await Dispatcher(transport).dispatch(_descriptor())

        assert [event.kind for event in outcome.events] == [EventKind.RECORD, EventKind.RECORD, EventKind.ERROR]
        assert outcome.record_count == 2
        assert outcome.status == 200

    @pytest.mark.asyncio
    async def test_bearer_token_added(self, make_transport, json_response):
        transport = make_transport([json_response({"resources": []})])
        dispatcher = Dispatcher(transport, credentials=StaticTokenProvider("tok"))

        await dispatcher.dispatch(_descriptor())

        assert transport.sent[0].headers["Authorization"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_credential_failure_becomes_error_event(self, make_transport):
        credentials = MagicMock()
        credentials.ensure_valid = AsyncMock(side_effect=CredentialError("rejected", status_code=401))
        transport = make_transport([])

        outcome = await Dispatcher(transport, credentials=credentials).dispatch(_descriptor(batch_index=1))

        assert outcome.failed
        assert outcome.unauthenticated
        (event,) = outcome.events
        assert str(event.payload) == "401: rejected"
        assert event.batch_index == 1
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_token_endpoint_throttling_becomes_error_event(self, make_transport):
        credentials = MagicMock()
        credentials.ensure_valid = AsyncMock(side_effect=RateLimitError("Token endpoint rate limit exceeded"))
        transport = make_transport([])

        outcome = await Dispatcher(transport, credentials=credentials).dispatch(_descriptor())

        assert outcome.unauthenticated
        assert outcome.events[0].payload.code == 429
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_transport_error_becomes_error_event(self, make_transport):
        transport = make_transport([TransportError("Connection refused", url="https://api.example.com")])
        outcome = await Dispatcher(transport).dispatch(_descriptor(batch_index=2))

        assert outcome.failed
        (event,) = outcome.events
        assert event.kind is EventKind.ERROR
        assert event.payload.message == "Connection refused"
        assert event.batch_index == 2

    @pytest.mark.asyncio
    async def test_throttled_response_reported(self, make_transport, json_response, fake_sleep):
        transport = make_transport([json_response({"errors": [{"code": 429, "message": "slow down"}]}, status=429)])
        guard = RateLimitGuard(EngineConfig(), sleep=fake_sleep)

        outcome = await Dispatcher(transport, guard=guard).dispatch(_descriptor())

        assert outcome.throttled
        assert fake_sleep.calls == [1.0]
        assert outcome.events[0].kind is EventKind.ERROR


class TestConfirmationGate:
    """Test the confirmation gate for mutating requests."""

    @pytest.mark.asyncio
    async def test_declined_skips_request(self, make_transport):
        transport = make_transport([])
        dispatcher = Dispatcher(transport, confirm=lambda descriptor: False)

        outcome = await dispatcher.dispatch(_descriptor(method="DELETE", read_only=False))

        assert outcome.skipped
        assert outcome.events == []
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_async_gate_object(self, make_transport, json_response):
        gate = MagicMock()
        gate.confirm = AsyncMock(return_value=True)
        transport = make_transport([json_response({"resources": ["deleted"]})])

        outcome = await Dispatcher(transport, confirm=gate).dispatch(_descriptor(method="DELETE", read_only=False))

        gate.confirm.assert_awaited_once()
        assert outcome.events[0].payload == "deleted"

    @pytest.mark.asyncio
    async def test_read_only_bypasses_gate(self, make_transport, json_response):
        gate = MagicMock(return_value=False)
        transport = make_transport([json_response({"resources": []})])

        outcome = await Dispatcher(transport, confirm=gate).dispatch(_descriptor())

        gate.assert_not_called()
        assert not outcome.skipped


class TestOutcomeShapes:
    """Test file, total and detail outcomes."""

    @pytest.mark.asyncio
    async def test_outfile_reports_file_info(self, make_transport, tmp_path):
        target = tmp_path / "download.zip"

        def respond(descriptor):
            target.write_bytes(b"12345")
            return RawResponse(status=200)

        outcome = await Dispatcher(make_transport(respond)).dispatch(_descriptor(outfile=str(target)))

        (event,) = outcome.events
        assert event.kind is EventKind.FILE
        assert isinstance(event.payload, FileInfo)
        assert event.payload.size == 5
        assert event.payload.path == str(target)

    @pytest.mark.asyncio
    async def test_total_flag_emits_server_total(self, make_transport, json_response):
        transport = make_transport(
            [json_response({"meta": {"pagination": {"offset": 0, "total": 1234}}, "resources": ["a"]})]
        )
        outcome = await Dispatcher(transport).dispatch(_descriptor(total=True))

        (event,) = outcome.events
        assert event.kind is EventKind.TOTAL
        assert event.payload == 1234

    @pytest.mark.asyncio
    async def test_detail_fetch_replaces_ids(self, make_transport, json_response):
        transport = make_transport([json_response({"resources": ["id-1", "id-2"]})])
        fetcher = AsyncMock(
            return_value=[ResultEvent.record({"id": "id-1"}), ResultEvent.record({"id": "id-2"})]
        )
        dispatcher = Dispatcher(transport, detail_fetcher=fetcher)

        outcome = await dispatcher.dispatch(_descriptor(detailed=True, detail_operation="get_device_details"))

        fetcher.assert_awaited_once_with("get_device_details", ["id-1", "id-2"])
        assert [event.payload for event in outcome.events] == [{"id": "id-1"}, {"id": "id-2"}]
        assert outcome.record_count == 2

    @pytest.mark.asyncio
    async def test_detail_skipped_for_full_records(self, make_transport, json_response):
        transport = make_transport([json_response({"resources": [{"id": "id-1"}]})])
        fetcher = AsyncMock()

        await Dispatcher(transport, detail_fetcher=fetcher).dispatch(
            _descriptor(detailed=True, detail_operation="get_device_details")
        )

        fetcher.assert_not_called()
