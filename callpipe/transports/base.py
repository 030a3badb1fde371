"""Base transport interface for callpipe.

Transports wrap an accepted provider connection. The collector only needs to
receive messages from them, so they stay receive-oriented.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator


class TransportClosed(Exception):
    """Raised by recv() once the peer has gone away."""


class BaseTransport(ABC):
    """Abstract base class for inbound provider connections."""

    @abstractmethod
    async def recv(self) -> bytes | str:
        """Receive the next message from the transport.

        Raises:
            TransportClosed: If the connection is closed.
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the transport connection gracefully."""
        ...

    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the transport is currently connected."""
        ...

    async def __aiter__(self) -> AsyncIterator[bytes | str]:
        """Iterate over incoming messages until the peer disconnects."""
        while self.is_connected():
            try:
                msg = await self.recv()
            except TransportClosed:
                break
            yield msg
