"""Exception types raised across callpipe.

Pipeline stages raise these; the orchestrator and the transport handler are
the only places that catch them.
"""

from __future__ import annotations


class CallPipeError(Exception):
    """Base class for all callpipe errors."""


class ConfigError(CallPipeError):
    """Configuration is missing or invalid."""


class MalformedMessageError(CallPipeError):
    """A transport message could not be parsed into an event."""


class ConversionError(CallPipeError):
    """The external transcoder could not be started or exited non-zero."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class TranscriptionError(CallPipeError):
    """The speech-to-text service failed."""


class GenerationError(CallPipeError):
    """The language model service failed."""


class NotificationError(CallPipeError):
    """The outbound notification channel rejected or failed a send."""


class TelephonyError(CallPipeError):
    """An outbound call could not be placed."""
