"""Base serializer interface for inbound media streams.

Serializers are pure message translators with no I/O: they turn a provider's
wire messages into callpipe's canonical events.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from callpipe.core.events import AnyEvent


class BaseSerializer(ABC):
    """Abstract base class for media stream serializers.

    Key principles:
    - Serializers do NO I/O (no network calls, no file access)
    - They hold no buffered audio (that lives in the SessionStore)
    - Anything they cannot parse raises MalformedMessageError
    """

    @abstractmethod
    async def deserialize(self, raw: bytes | str | dict) -> list[AnyEvent]:
        """Parse a raw message from the provider into events.

        Args:
            raw: The raw message from the provider WebSocket. Could be:
                - bytes: UTF-8 encoded JSON
                - str: JSON text message
                - dict: already-parsed JSON

        Returns:
            List of events. Empty list if the message should be ignored.

        Raises:
            MalformedMessageError: If the message is not valid for this protocol.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of this serializer (e.g., 'twilio')."""
        ...

