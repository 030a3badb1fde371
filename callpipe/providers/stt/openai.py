"""OpenAI batch Speech-to-Text provider.

Uploads a finished WAV file to the audio transcription endpoint.

Requires: pip install openai
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from loguru import logger
from openai import AsyncOpenAI, OpenAIError

from callpipe.errors import TranscriptionError
from callpipe.providers.base import BaseSTT


class OpenAISTT(BaseSTT):
    """OpenAI audio transcription provider.

    Args:
        api_key: OpenAI API key.
        model: Transcription model (default: "gpt-4o-mini-transcribe").
        language: Optional ISO-639-1 hint; auto-detected when empty.
        base_url: Optional custom API base URL.
        max_retries: Max API retries (default: 2).
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini-transcribe",
        language: str = "",
        base_url: str | None = None,
        max_retries: int = 2,
    ):
        self._model_name = model
        self._language = language
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            max_retries=max_retries,
        )

    async def transcribe(self, audio_path: Path) -> str:
        audio_path = Path(audio_path)
        logger.debug(f"OpenAI transcription: model={self._model_name}, file={audio_path.name}")

        kwargs: dict[str, Any] = {"model": self._model_name}
        if self._language:
            kwargs["language"] = self._language

        try:
            with audio_path.open("rb") as audio_file:
                result = await self._client.audio.transcriptions.create(file=audio_file, **kwargs)
        except (OpenAIError, OSError) as e:
            raise TranscriptionError(f"OpenAI transcription failed: {e}") from e

        return result.text or ""

    async def close(self) -> None:
        await self._client.close()

    @property
    def model(self) -> str:
        return self._model_name
