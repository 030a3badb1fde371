"""Single-slot store for the most recent pipeline result.

The orchestrator writes it, the ``/latest-answer`` route reads it. One
instance lives for the whole process and is never persisted.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from loguru import logger


@dataclass(frozen=True)
class LatestResult:
    """The last (transcript, detailed answer, summary) triple."""

    transcript: str = ""
    full_answer: str = ""
    summary: str = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class ResultCache:
    """Holds exactly one LatestResult; every save overwrites it."""

    def __init__(self) -> None:
        self._latest = LatestResult()

    def save(self, transcript: str | None, full_answer: str | None, summary: str | None) -> None:
        self._latest = LatestResult(
            transcript=transcript or "",
            full_answer=full_answer or "",
            summary=summary or "",
        )
        logger.info("Saved latest answer + summary")

    def save_transcript(self, transcript: str | None) -> None:
        """Replace only the transcript, keeping the previous answer and summary."""
        latest = self._latest
        self._latest = LatestResult(
            transcript=transcript or "",
            full_answer=latest.full_answer,
            summary=latest.summary,
        )

    def read(self) -> LatestResult:
        return self._latest
