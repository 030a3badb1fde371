"""Twilio outbound calls and the TwiML that starts the media stream.

Requires: pip install twilio
"""

from __future__ import annotations

import asyncio

from loguru import logger
from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient
from twilio.twiml.voice_response import Start, VoiceResponse

from callpipe.errors import TelephonyError
from callpipe.providers.base import BaseTelephony

GREETING = "Hello, I am your AI button assistant. You can start speaking after the beep."


def build_stream_twiml(stream_url: str, listen_seconds: int = 60, greeting: str = GREETING) -> str:
    """TwiML that forks call audio to ``stream_url`` and keeps the line open.

    The stream is started with ``<Start>`` (not ``<Connect>``) so the call
    continues while audio is captured; the final pause bounds the recording.
    """
    response = VoiceResponse()
    start = Start()
    start.stream(url=stream_url)
    response.append(start)
    response.say(greeting)
    response.pause(length=1)
    response.say("Beep.")
    response.pause(length=listen_seconds)
    return str(response)


class TwilioTelephony(BaseTelephony):
    """Places outbound calls from one Twilio number to one fixed number.

    Args:
        account_sid: Twilio Account SID.
        auth_token: Twilio auth token.
        from_: Caller ID (a Twilio voice number).
        to: Number to dial.
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
        self._from = from_
        self._to = to
        self._client = client or TwilioClient(account_sid, auth_token)

    async def place_call(self, answer_url: str) -> str:
        try:
            call = await asyncio.to_thread(
                self._client.calls.create,
                to=self._to,
                from_=self._from,
                url=answer_url,
            )
        except TwilioException as e:
            raise TelephonyError(f"Twilio call failed: {e}") from e

        logger.info(f"Outbound call placed: {call.sid} | From: {self._from} → To: {self._to}")
        return call.sid
