"""callpipe - phone call audio to transcript, answer and WhatsApp message.

A button press places an outbound Twilio call whose audio is forked to a
WebSocket media stream. When the stream stops, the buffered mu-law audio is
converted to WAV, transcribed, answered by an LLM, stored for polling
clients, and sent to WhatsApp.

Quick start:
    $ pip install callpipe
    $ callpipe init          # generates callpipe.yaml
    $ callpipe run --config callpipe.yaml

Programmatic:
    from callpipe import create_app, load_config

    app = create_app(load_config("callpipe.yaml"))
"""

__version__ = "0.1.0"

# Core
from callpipe.collector import FrameCollector
from callpipe.config import AppConfig, load_config
from callpipe.server import create_app, run_server
from callpipe.session import SessionStore, StreamSession

# Events
from callpipe.core.events import (
    AudioFrame,
    CustomEvent,
    Event,
    StreamStarted,
    StreamStopped,
)

# Errors
from callpipe.errors import (
    CallPipeError,
    ConfigError,
    ConversionError,
    GenerationError,
    MalformedMessageError,
    NotificationError,
    TelephonyError,
    TranscriptionError,
)

# Pipeline
from callpipe.pipeline import (
    LatestResult,
    PipelineOrchestrator,
    PipelineResult,
    PipelineState,
    ResultCache,
)

__all__ = [
    "__version__",
    # Core
    "AppConfig",
    "FrameCollector",
    "SessionStore",
    "StreamSession",
    "create_app",
    "load_config",
    "run_server",
    # Events
    "AudioFrame",
    "CustomEvent",
    "Event",
    "StreamStarted",
    "StreamStopped",
    # Errors
    "CallPipeError",
    "ConfigError",
    "ConversionError",
    "GenerationError",
    "MalformedMessageError",
    "NotificationError",
    "TelephonyError",
    "TranscriptionError",
    # Pipeline
    "LatestResult",
    "PipelineOrchestrator",
    "PipelineResult",
    "PipelineState",
    "ResultCache",
]
