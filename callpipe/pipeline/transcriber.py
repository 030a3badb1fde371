"""Transcription stage: WAV file in, trimmed transcript out."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from callpipe.providers.base import BaseSTT


class TranscriptionStage:
    """Runs a finished WAV file through the speech-to-text provider.

    An empty transcript means no usable speech and is returned as ``""``.
    Provider failures propagate to the caller.
    """

    def __init__(self, stt: BaseSTT) -> None:
        self.stt = stt

    async def transcribe(self, wav_path: Path) -> str:
        text = await self.stt.transcribe(wav_path)
        transcript = (text or "").strip()
        logger.debug(f"{self.stt.name} returned {len(transcript)} chars for {Path(wav_path).name}")
        return transcript
