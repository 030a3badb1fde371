"""Tests for the Twilio Media Streams serializer."""

import base64
import json

import pytest
from pydantic import ValidationError
from unittest.mock import patch

from callpipe.core.events import AudioFrame, CustomEvent, StreamStarted, StreamStopped
from callpipe.errors import MalformedMessageError
from callpipe.serializers.twilio import TwilioSerializer


class TestTwilioSerializer:

    @pytest.fixture
    def serializer(self):
        return TwilioSerializer()

    def test_name(self, serializer):
        assert serializer.name == "twilio"

    @pytest.mark.asyncio
    async def test_start_with_top_level_stream_sid(self, serializer):
        events = await serializer.deserialize(json.dumps({"event": "start", "streamSid": "MZ1"}))
        assert len(events) == 1
        assert isinstance(events[0], StreamStarted)
        assert events[0].stream_id == "MZ1"

    @pytest.mark.asyncio
    async def test_start_falls_back_to_start_object(self, serializer):
        msg = {
            "event": "start",
            "start": {
                "streamSid": "MZ123",
                "callSid": "CA456",
                "accountSid": "AC789",
                "customParameters": {"button": "1"},
                "mediaFormat": {"encoding": "audio/x-mulaw", "sampleRate": 8000, "channels": 1},
            },
        }
        events = await serializer.deserialize(msg)
        assert isinstance(events[0], StreamStarted)
        assert events[0].stream_id == "MZ123"
        assert events[0].call_id == "CA456"
        assert events[0].metadata["account_sid"] == "AC789"
        assert events[0].metadata["custom_parameters"] == {"button": "1"}

    @pytest.mark.asyncio
    async def test_media_decodes_payload(self, serializer):
        audio = b"\xff\x00\x01\x02"
        msg = {
            "event": "media",
            "streamSid": "MZ1",
            "media": {"payload": base64.b64encode(audio).decode(), "chunk": "1"},
        }
        events = await serializer.deserialize(json.dumps(msg).encode())
        assert len(events) == 1
        frame = events[0]
        assert isinstance(frame, AudioFrame)
        assert frame.stream_id == "MZ1"
        assert frame.data == audio

    @pytest.mark.asyncio
    async def test_stop(self, serializer):
        events = await serializer.deserialize({"event": "stop", "streamSid": "MZ1"})
        assert isinstance(events[0], StreamStopped)
        assert events[0].stream_id == "MZ1"

    @pytest.mark.asyncio
    async def test_stop_falls_back_to_stop_object(self, serializer):
        events = await serializer.deserialize({"event": "stop", "stop": {"streamSid": "MZ9"}})
        assert events[0].stream_id == "MZ9"

    @pytest.mark.asyncio
    async def test_unknown_event_is_custom(self, serializer):
        events = await serializer.deserialize({"event": "mark", "streamSid": "MZ1"})
        assert isinstance(events[0], CustomEvent)
        assert events[0].custom_type == "twilio.mark"

    @pytest.mark.asyncio
    async def test_connected_event_is_custom(self, serializer):
        events = await serializer.deserialize({"event": "connected", "protocol": "Call"})
        assert isinstance(events[0], CustomEvent)
        assert events[0].stream_id == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", b"\xff\xfe", "42"])
    async def test_malformed_json(self, serializer, raw):
        with pytest.raises(MalformedMessageError):
            await serializer.deserialize(raw)

    @pytest.mark.asyncio
    async def test_media_without_payload(self, serializer):
        with pytest.raises(MalformedMessageError):
            await serializer.deserialize({"event": "media", "streamSid": "MZ1", "media": {}})

    @pytest.mark.asyncio
    async def test_media_with_bad_base64(self, serializer):
        msg = {"event": "media", "streamSid": "MZ1", "media": {"payload": "@@not-base64@@"}}
        with pytest.raises(MalformedMessageError):
            await serializer.deserialize(msg)

    @pytest.mark.asyncio
    async def test_missing_stream_sid(self, serializer):
        with pytest.raises(MalformedMessageError):
            await serializer.deserialize({"event": "stop"})

    @pytest.mark.asyncio
    async def test_start_with_non_string_fields_is_coerced(self, serializer):
        msg = {
            "event": "start",
            "streamSid": "S0",
            "start": {"callSid": 123, "accountSid": 7, "customParameters": "x", "mediaFormat": None},
        }
        events = await serializer.deserialize(msg)
        assert isinstance(events[0], StreamStarted)
        assert events[0].call_id == "123"
        assert events[0].metadata == {
            "account_sid": "7",
            "custom_parameters": {},
            "media_format": {},
        }

    @pytest.mark.asyncio
    async def test_numeric_stream_sid_is_coerced(self, serializer):
        events = await serializer.deserialize({"event": "stop", "streamSid": 42})
        assert events[0].stream_id == "42"

    @pytest.mark.asyncio
    async def test_invalid_event_fields_raise_malformed(self, serializer):
        with patch(
            "callpipe.serializers.twilio.StreamStopped",
            side_effect=ValidationError.from_exception_data("StreamStopped", []),
        ):
            with pytest.raises(MalformedMessageError):
                await serializer.deserialize({"event": "stop", "streamSid": "MZ1"})
