"""Pipeline Orchestrator — convert -> transcribe -> generate -> notify.

This is the heart of callpipe. It runs once per finished media stream:

1. Writes the buffered mu-law audio to disk and converts it to WAV
2. Transcribes the WAV with the STT provider
3. Sends the transcript to the LLM for a detailed answer and a summary
4. Stores the result for the display device's polling endpoint
5. Sends the detailed answer through the notification channel

An empty transcript short-circuits to a "please speak clearly" message. Any
other failure is contained here: the caller gets a generic technical-error
message and nothing propagates to the transport.
"""

from __future__ import annotations

import time
from enum import Enum

from loguru import logger

from callpipe.config import AppConfig, EmptyTranscriptPolicy
from callpipe.pipeline.cache import ResultCache
from callpipe.pipeline.converter import AudioConverter
from callpipe.pipeline.generator import ResponseGenerator, truncate
from callpipe.pipeline.notifier import NotificationDispatcher
from callpipe.pipeline.prompts import PromptProfile, get_profile
from callpipe.pipeline.transcriber import TranscriptionStage
from callpipe.providers.registry import provider_registry


class PipelineState(str, Enum):
    IDLE = "idle"
    CONVERTING = "converting"
    TRANSCRIBING = "transcribing"
    GENERATING = "generating"
    NOTIFYING = "notifying"
    DONE = "done"
    EMPTY_TRANSCRIPT_FALLBACK = "empty_transcript_fallback"
    FATAL_ERROR = "fatal_error"


class PipelineOrchestrator:
    """Runs the processing pipeline for completed streams.

    One orchestrator serves every stream; each run() call keeps its state in
    local variables, so concurrent runs do not interfere. The only shared
    state they touch is the ResultCache (last write wins).

    Usage:
        orchestrator = PipelineOrchestrator.from_config(config, cache)
        state = await orchestrator.run(stream_id, audio_bytes)
    """

    def __init__(
        self,
        converter: AudioConverter,
        transcriber: TranscriptionStage,
        generator: ResponseGenerator,
        dispatcher: NotificationDispatcher,
        cache: ResultCache,
        profile: PromptProfile,
        empty_transcript_policy: EmptyTranscriptPolicy = EmptyTranscriptPolicy.TRANSCRIPT_ONLY,
    ) -> None:
        self.converter = converter
        self.transcriber = transcriber
        self.generator = generator
        self.dispatcher = dispatcher
        self.cache = cache
        self.profile = profile
        self.empty_transcript_policy = EmptyTranscriptPolicy(empty_transcript_policy)

    @classmethod
    def from_config(cls, config: AppConfig, cache: ResultCache) -> PipelineOrchestrator:
        """Build an orchestrator with providers created from the registry."""
        pipeline = config.pipeline
        profile = get_profile(pipeline.prompt_profile)

        stt = provider_registry.create_stt(
            pipeline.stt_provider,
            api_key=config.openai.api_key,
            model=config.openai.stt_model,
            base_url=config.openai.base_url,
            max_retries=config.openai.max_retries,
        )
        llm = provider_registry.create_llm(
            pipeline.llm_provider,
            api_key=config.openai.api_key,
            model=config.openai.llm_model,
            base_url=config.openai.base_url,
            max_retries=config.openai.max_retries,
        )
        notifier = provider_registry.create_notifier(
            pipeline.notifier_provider,
            account_sid=config.twilio.account_sid,
            auth_token=config.twilio.auth_token,
            from_=config.twilio.whatsapp_from,
            to=config.twilio.whatsapp_to,
        )

        return cls(
            converter=AudioConverter(config.audio),
            transcriber=TranscriptionStage(stt),
            generator=ResponseGenerator(llm, profile, pipeline.summary_char_budget),
            dispatcher=NotificationDispatcher(notifier, profile.template),
            cache=cache,
            profile=profile,
            empty_transcript_policy=pipeline.empty_transcript_policy,
        )

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def run(self, stream_id: str, audio: bytes) -> PipelineState:
        """Process one stream's audio to a terminal state and return it.

        Never raises: every failure ends in FATAL_ERROR after a best-effort
        technical-error notification.
        """
        if not audio:
            logger.warning(f"[{stream_id}] No audio data, skipping pipeline")
            return PipelineState.IDLE

        started = time.time()
        state = PipelineState.IDLE
        try:
            state = PipelineState.CONVERTING
            wav_path = await self.converter.convert(stream_id, audio)

            state = PipelineState.TRANSCRIBING
            transcript = await self.transcriber.transcribe(wav_path)
            logger.info(f"[{stream_id}] Transcript: {transcript!r}")

            if not transcript:
                state = await self._handle_empty_transcript(stream_id)
                return state

            state = PipelineState.GENERATING
            result = await self.generator.generate(transcript)
            logger.info(f"[{stream_id}] Parsed full_answer: {result.full_answer}")
            logger.info(f"[{stream_id}] Parsed summary: {result.summary}")
            self.cache.save(transcript, result.full_answer, result.summary)

            state = PipelineState.NOTIFYING
            await self.dispatcher.dispatch(transcript, result.full_answer)

            state = PipelineState.DONE
            return state

        except Exception as e:
            logger.exception(f"[{stream_id}] Pipeline failed while {state.value}: {e}")
            state = PipelineState.FATAL_ERROR
            if not await self.dispatcher.send_raw(self.profile.template.technical_error):
                logger.error(f"[{stream_id}] Also failed to send technical-error message")
            return state

        finally:
            self.converter.cleanup(stream_id)
            logger.info(
                f"[{stream_id}] Pipeline finished: {state.value} "
                f"({time.time() - started:.1f}s)"
            )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _handle_empty_transcript(self, stream_id: str) -> PipelineState:
        """No speech detected: send the fallback message, skip generation."""
        logger.warning(f"[{stream_id}] No speech detected, sending 'not clear' message")
        fallback_answer = self.profile.template.no_speech_answer

        if self.empty_transcript_policy is EmptyTranscriptPolicy.TRANSCRIPT_ONLY:
            self.cache.save_transcript("")
        elif self.empty_transcript_policy is EmptyTranscriptPolicy.FALLBACK_TEXT:
            self.cache.save(
                "",
                fallback_answer,
                truncate(fallback_answer, self.generator.summary_chars),
            )

        await self.dispatcher.dispatch("", fallback_answer)
        return PipelineState.EMPTY_TRANSCRIPT_FALLBACK
