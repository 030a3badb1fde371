"""Base interfaces for external collaborators (STT, LLM, notifications, calls).

All provider implementations inherit from these abstract base classes, so the
pipeline stages can be driven by any service (or by a test double).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass
class Message:
    """A chat message for the LLM."""

    role: str  # "system", "user", "assistant"
    content: str = ""


class BaseSTT(ABC):
    """Abstract base class for batch Speech-to-Text providers.

    Lifecycle:
        1. __init__(api_key, **config) — configure the provider
        2. transcribe(path) — transcribe one audio file
        3. close() — release the client
    """

    @abstractmethod
    async def transcribe(self, audio_path: Path) -> str:
        """Transcribe an audio file.

        Args:
            audio_path: Path to a decodable audio file (WAV).

        Returns:
            The transcribed text, possibly empty.

        Raises:
            TranscriptionError: If the service call fails.
        """
        ...

    async def close(self) -> None:
        """Clean up any persistent connections. Override if needed."""
        pass

    @property
    @abstractmethod
    def model(self) -> str:
        """The model identifier (e.g., 'gpt-4o-mini-transcribe')."""
        ...

    @property
    def name(self) -> str:
        """Provider name for logging."""
        return self.__class__.__name__


class BaseLLM(ABC):
    """Abstract base class for Large Language Model providers.

    Lifecycle:
        1. __init__(api_key, model, **config) — configure the provider
        2. complete(messages) — one non-streaming completion
        3. close() — clean up any persistent connections
    """

    @abstractmethod
    async def complete(self, messages: list[Message]) -> str:
        """Generate a single response for a conversation.

        Args:
            messages: Conversation as Message objects, system prompt first.

        Returns:
            The assistant's raw text output.

        Raises:
            GenerationError: If the service call fails.
        """
        ...

    async def close(self) -> None:
        """Clean up any persistent connections. Override if needed."""
        pass

    @property
    @abstractmethod
    def model(self) -> str:
        """The model identifier (e.g., 'gpt-4.1-mini')."""
        ...

    @property
    def name(self) -> str:
        """Provider name for logging."""
        return self.__class__.__name__


class BaseNotifier(ABC):
    """Abstract base class for outbound text notification channels.

    A notifier delivers to one fixed recipient chosen at construction time.
    """

    @abstractmethod
    async def send(self, body: str) -> str:
        """Deliver a text message.

        Returns:
            The channel's message identifier.

        Raises:
            NotificationError: If the channel rejects the message.
        """
        ...

    @property
    def name(self) -> str:
        """Provider name for logging."""
        return self.__class__.__name__


class BaseTelephony(ABC):
    """Abstract base class for placing outbound calls."""

    @abstractmethod
    async def place_call(self, answer_url: str) -> str:
        """Dial the configured number; ``answer_url`` serves the call's TwiML.

        Returns:
            The provider's call identifier.

        Raises:
            TelephonyError: If the call could not be placed.
        """
        ...

    @property
    def name(self) -> str:
        """Provider name for logging."""
        return self.__class__.__name__
