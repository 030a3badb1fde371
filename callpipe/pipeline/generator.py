"""Response generation stage.

The transcript is sent to the LLM together with the profile's instruction,
which asks for a JSON object holding a detailed answer and a short summary.
Models do not always comply, so the raw output is classified by a strict
parse into a StructuredAnswer or an UnstructuredAnswer, and both kinds turn
into a PipelineResult.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from loguru import logger

from callpipe.pipeline.prompts import PromptProfile
from callpipe.providers.base import BaseLLM, Message

DEFAULT_SUMMARY_CHARS = 120
ELLIPSIS = "..."


@dataclass(frozen=True)
class PipelineResult:
    """The two outputs of the generation stage, always produced together."""

    full_answer: str
    summary: str


@dataclass(frozen=True)
class StructuredAnswer:
    """Model output that parsed as the expected JSON object."""

    full_answer: str
    summary: str

    def to_result(self, summary_chars: int = DEFAULT_SUMMARY_CHARS) -> PipelineResult:
        return PipelineResult(full_answer=self.full_answer, summary=self.summary)


@dataclass(frozen=True)
class UnstructuredAnswer:
    """Model output that was not a JSON object; used verbatim."""

    raw: str

    def to_result(self, summary_chars: int = DEFAULT_SUMMARY_CHARS) -> PipelineResult:
        return PipelineResult(full_answer=self.raw, summary=truncate(self.raw, summary_chars))


def truncate(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


def _field(value: object) -> str:
    if value is None:
        return ""
    return (value if isinstance(value, str) else str(value)).strip()


def parse_answer(
    raw: str,
    answer_key: str = "full_answer",
    summary_key: str = "summary",
) -> StructuredAnswer | UnstructuredAnswer:
    """Classify raw model output.

    Only a JSON object counts as structured; missing keys become empty
    strings. Anything else, including JSON arrays and scalars, is kept as
    unstructured text.
    """
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return UnstructuredAnswer(raw=raw)

    if not isinstance(parsed, dict):
        return UnstructuredAnswer(raw=raw)

    return StructuredAnswer(
        full_answer=_field(parsed.get(answer_key)),
        summary=_field(parsed.get(summary_key)),
    )


class ResponseGenerator:
    """Turns a non-empty transcript into a PipelineResult.

    Args:
        llm: Language model provider.
        profile: Instruction and output keys to use.
        summary_chars: Summary length budget for unstructured output.
    """

    def __init__(
        self,
        llm: BaseLLM,
        profile: PromptProfile,
        summary_chars: int = DEFAULT_SUMMARY_CHARS,
    ) -> None:
        self.llm = llm
        self.profile = profile
        self.summary_chars = summary_chars

    def build_messages(self, transcript: str) -> list[Message]:
        return [
            Message(role="system", content=self.profile.system_prompt),
            Message(role="user", content=transcript),
        ]

    async def generate(self, transcript: str) -> PipelineResult:
        """Ask the LLM and parse its answer. Provider failures propagate."""
        raw = (await self.llm.complete(self.build_messages(transcript)) or "").strip()
        logger.debug(f"Raw {self.llm.name} answer ({self.profile.name}): {raw}")

        answer = parse_answer(raw, self.profile.answer_key, self.profile.summary_key)
        if isinstance(answer, UnstructuredAnswer):
            logger.warning("Model did not return valid JSON, falling back to raw text")
        return answer.to_result(self.summary_chars)
