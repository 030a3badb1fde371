"""Twilio WhatsApp notification channel.

The Twilio REST client is synchronous, so each send runs in a worker thread
to keep the event loop free.

Requires: pip install twilio
"""

from __future__ import annotations

import asyncio

from loguru import logger
from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient

from callpipe.errors import NotificationError
from callpipe.providers.base import BaseNotifier


def whatsapp_address(number: str) -> str:
    """Prefix a phone number with ``whatsapp:`` unless it already has it."""
    number = number.strip()
    return number if number.startswith("whatsapp:") else f"whatsapp:{number}"


class TwilioWhatsAppNotifier(BaseNotifier):
    """Sends WhatsApp messages to a single recipient through Twilio.

    Args:
        account_sid: Twilio Account SID.
        auth_token: Twilio auth token.
        from_: Sender (Twilio WhatsApp number), with or without ``whatsapp:``.
        to: Recipient, with or without ``whatsapp:``.
        client: Optional preconfigured Twilio client.
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_: str,
        to: str,
        client: TwilioClient | None = None,
    ):
        self._from = whatsapp_address(from_)
        self._to = whatsapp_address(to)
        self._client = client or TwilioClient(account_sid, auth_token)

    async def send(self, body: str) -> str:
        try:
            message = await asyncio.to_thread(
                self._client.messages.create,
                from_=self._from,
                to=self._to,
                body=body,
            )
        except TwilioException as e:
            raise NotificationError(f"Twilio WhatsApp send failed: {e}") from e

        logger.info(f"WhatsApp message sent: {message.sid} -> {self._to}")
        return message.sid
