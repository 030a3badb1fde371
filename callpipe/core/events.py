"""Canonical event model for inbound media streams.

The Twilio serializer turns wire messages into these events and the frame
collector acts on them. Nothing else in the package sees provider JSON.
"""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, Field


class Event(BaseModel):
    """Base event that all stream events inherit from."""

    stream_id: str = ""
    timestamp: float = Field(default_factory=time.time)


class StreamStarted(Event):
    """Fired when the provider opens a media stream."""

    call_id: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


class AudioFrame(Event):
    """One decoded mu-law fragment from the stream."""

    data: bytes = b""


class StreamStopped(Event):
    """Fired when the provider closes a media stream."""


class CustomEvent(Event):
    """Provider messages with no canonical mapping."""

    custom_type: str = ""
    payload: dict[str, Any] = Field(default_factory=dict)


AnyEvent = StreamStarted | AudioFrame | StreamStopped | CustomEvent
