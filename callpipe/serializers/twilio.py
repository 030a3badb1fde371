"""Twilio Media Streams WebSocket serializer.

Twilio streams audio as base64-encoded mu-law at 8kHz over JSON WebSocket
messages. Only the inbound direction is needed here: callpipe never plays
audio back into the call.

Protocol reference:
    https://www.twilio.com/docs/voice/media-streams/websocket-messages
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from pydantic import ValidationError

from callpipe.core.events import (
    AnyEvent,
    AudioFrame,
    CustomEvent,
    StreamStarted,
    StreamStopped,
)
from callpipe.errors import MalformedMessageError
from callpipe.serializers.base import BaseSerializer


class TwilioSerializer(BaseSerializer):
    """Serializer for the Twilio Media Streams WebSocket protocol.

    Every message carries an ``event`` field and a ``streamSid``. One
    serializer instance is shared by all connections, so it keeps no
    per-stream state.
    """

    @property
    def name(self) -> str:
        return "twilio"

    # ------------------------------------------------------------------
    # Deserialization (provider -> events)
    # ------------------------------------------------------------------

    async def deserialize(self, raw: bytes | str | dict) -> list[AnyEvent]:
        """Parse a Twilio Media Streams message into events.

        Message types handled:
            * ``start`` -- produces :class:`StreamStarted`.
            * ``media`` -- produces :class:`AudioFrame` with decoded bytes.
            * ``stop``  -- produces :class:`StreamStopped`.

        Any other message type (``connected``, ``mark``, ``dtmf``...) is
        surfaced as a :class:`CustomEvent`.
        """
        msg = self._parse_message(raw)
        event_type = str(msg.get("event") or "")

        try:
            if event_type == "start":
                return self._handle_start(msg)

            if event_type == "media":
                return self._handle_media(msg)

            if event_type == "stop":
                return self._handle_stop(msg)

            return [
                CustomEvent(
                    stream_id=str(msg.get("streamSid") or ""),
                    custom_type=f"twilio.{event_type}",
                    payload=msg,
                )
            ]
        except ValidationError as e:
            raise MalformedMessageError(f"Invalid '{event_type}' message: {e}") from e

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_message(raw: bytes | str | dict) -> dict[str, Any]:
        """Normalise the raw WebSocket frame into a dict."""
        if isinstance(raw, dict):
            return raw
        try:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            msg = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MalformedMessageError(f"Invalid JSON message: {e}") from e
        if not isinstance(msg, dict):
            raise MalformedMessageError(f"Expected a JSON object, got {type(msg).__name__}")
        return msg

    @staticmethod
    def _stream_id(msg: dict, fallback: dict | None = None) -> str:
        stream_id = msg.get("streamSid")
        if not stream_id and isinstance(fallback, dict):
            stream_id = fallback.get("streamSid")
        if not stream_id:
            raise MalformedMessageError(f"'{msg.get('event')}' message without streamSid")
        return str(stream_id)

    def _handle_start(self, msg: dict) -> list[AnyEvent]:
        """Process a Twilio ``start`` message."""
        start_data = msg.get("start")
        if not isinstance(start_data, dict):
            start_data = {}
        stream_id = self._stream_id(msg, start_data)

        metadata: dict[str, Any] = {
            "account_sid": str(start_data.get("accountSid") or ""),
            "custom_parameters": _as_dict(start_data.get("customParameters")),
            "media_format": _as_dict(start_data.get("mediaFormat")),
        }
        return [
            StreamStarted(
                stream_id=stream_id,
                call_id=str(start_data.get("callSid") or ""),
                metadata=metadata,
            )
        ]

    def _handle_media(self, msg: dict) -> list[AnyEvent]:
        """Process a Twilio ``media`` message."""
        stream_id = self._stream_id(msg)
        media_data = msg.get("media")
        if not isinstance(media_data, dict) or "payload" not in media_data:
            raise MalformedMessageError(f"Media message for {stream_id} has no payload")

        try:
            audio_bytes = base64.b64decode(media_data["payload"], validate=True)
        except (binascii.Error, TypeError, ValueError) as e:
            raise MalformedMessageError(f"Undecodable payload for {stream_id}: {e}") from e

        return [AudioFrame(stream_id=stream_id, data=audio_bytes)]

    def _handle_stop(self, msg: dict) -> list[AnyEvent]:
        """Process a Twilio ``stop`` message."""
        return [StreamStopped(stream_id=self._stream_id(msg, msg.get("stop")))]


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}
