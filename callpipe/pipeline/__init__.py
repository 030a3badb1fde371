"""callpipe processing pipeline - convert -> transcribe -> generate -> notify.

Usage:
    from callpipe.pipeline import PipelineOrchestrator, ResultCache

    cache = ResultCache()
    orchestrator = PipelineOrchestrator.from_config(config, cache)
    state = await orchestrator.run(stream_id, audio_bytes)
"""

from callpipe.pipeline.cache import LatestResult, ResultCache
from callpipe.pipeline.converter import AudioConverter
from callpipe.pipeline.generator import (
    PipelineResult,
    ResponseGenerator,
    StructuredAnswer,
    UnstructuredAnswer,
    parse_answer,
)
from callpipe.pipeline.notifier import NotificationDispatcher, format_message
from callpipe.pipeline.orchestrator import PipelineOrchestrator, PipelineState
from callpipe.pipeline.prompts import MessageTemplate, PromptProfile, get_profile
from callpipe.pipeline.transcriber import TranscriptionStage

__all__ = [
    "AudioConverter",
    "LatestResult",
    "MessageTemplate",
    "NotificationDispatcher",
    "PipelineOrchestrator",
    "PipelineResult",
    "PipelineState",
    "PromptProfile",
    "ResponseGenerator",
    "ResultCache",
    "StructuredAnswer",
    "TranscriptionStage",
    "UnstructuredAnswer",
    "format_message",
    "get_profile",
    "parse_answer",
]
