"""Notification dispatcher: formats pipeline results for the outbound channel.

Sending is best effort. The dispatcher is the last sink in the pipeline, so
a failed send is logged and reported as False, never raised.
"""

from __future__ import annotations

from loguru import logger

from callpipe.pipeline.prompts import MessageTemplate
from callpipe.providers.base import BaseNotifier


def format_message(transcript: str | None, full_answer: str | None, template: MessageTemplate) -> str:
    """Build the notification body.

    Layout: title, quoted question (or the not-clear placeholder), answer
    section, disclaimer; blank lines between sections.
    """
    t = (transcript or "").strip()
    a = (full_answer or "").strip()

    return "\n".join([
        template.title,
        "",
        f"{template.question_label}\n{t}" if t else template.not_clear_placeholder,
        "",
        template.answer_label,
        a,
        "",
        template.disclaimer,
    ])


class NotificationDispatcher:
    """Sends formatted bodies through a BaseNotifier."""

    def __init__(self, notifier: BaseNotifier, template: MessageTemplate) -> None:
        self.notifier = notifier
        self.template = template

    async def dispatch(self, transcript: str | None, full_answer: str | None) -> bool:
        """Format and send a result. Returns whether the send succeeded."""
        return await self.send_raw(format_message(transcript, full_answer, self.template))

    async def send_raw(self, body: str) -> bool:
        """Send a preformatted body. Returns whether the send succeeded."""
        try:
            message_id = await self.notifier.send(body)
        except Exception as e:
            logger.error(f"{self.notifier.name} send failed: {e}")
            return False
        logger.info(f"Notification delivered via {self.notifier.name}: {message_id}")
        return True
