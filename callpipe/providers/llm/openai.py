"""OpenAI chat completion LLM provider.

Uses the OpenAI Chat Completions API (non-streaming: the pipeline needs the
whole answer before it can parse it).

Requires: pip install openai
API key: https://platform.openai.com/
"""

from __future__ import annotations

from typing import Any

from loguru import logger
from openai import AsyncOpenAI, OpenAIError

from callpipe.errors import GenerationError
from callpipe.providers.base import BaseLLM, Message


class OpenAILLM(BaseLLM):
    """OpenAI GPT chat completion provider.

    Args:
        api_key: OpenAI API key.
        model: Model identifier (default: "gpt-4.1-mini").
        base_url: Optional custom API base URL (for Azure, local models, etc.).
        max_retries: Max API retries (default: 2).
        temperature: Optional sampling temperature; the service default if None.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4.1-mini",
        base_url: str | None = None,
        max_retries: int = 2,
        temperature: float | None = None,
    ):
        self._model_name = model
        self._temperature = temperature
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            max_retries=max_retries,
        )

    async def complete(self, messages: list[Message]) -> str:
        kwargs: dict[str, Any] = {
            "model": self._model_name,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if self._temperature is not None:
            kwargs["temperature"] = self._temperature

        logger.debug(f"OpenAI request: model={self._model_name}, messages={len(messages)}")

        try:
            completion = await self._client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            raise GenerationError(f"OpenAI completion failed: {e}") from e

        if not completion.choices:
            raise GenerationError("OpenAI returned no choices")
        content = completion.choices[0].message.content or ""

        if completion.usage:
            logger.debug(
                f"OpenAI usage: prompt={completion.usage.prompt_tokens}, "
                f"completion={completion.usage.completion_tokens}"
            )
        return content

    async def close(self) -> None:
        """Close the OpenAI client."""
        await self._client.close()

    @property
    def model(self) -> str:
        return self._model_name
