"""Audio frame collector - media stream events in, pipeline runs out.

The collector is the only consumer of the inbound transport. It feeds the
SessionStore from start/media/stop events and, when a stream stops with
audio, launches the pipeline as a background task so the transport is never
blocked. Malformed messages are logged and dropped; they never close the
connection.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from loguru import logger

from callpipe.core.events import AnyEvent, AudioFrame, CustomEvent, StreamStarted, StreamStopped
from callpipe.errors import MalformedMessageError
from callpipe.serializers.base import BaseSerializer
from callpipe.serializers.twilio import TwilioSerializer
from callpipe.session import SessionStore
from callpipe.transports.base import BaseTransport

# Called with (stream_id, audio) once per stopped stream that has audio
PipelineRunner = Callable[[str, bytes], Awaitable[object]]


class FrameCollector:
    """Buffers media stream audio per stream and hands it off on stop.

    Usage:
        collector = FrameCollector(orchestrator.run)
        await collector.handle_connection(transport)
        ...
        await collector.wait_idle()
    """

    def __init__(
        self,
        runner: PipelineRunner,
        sessions: SessionStore | None = None,
        serializer: BaseSerializer | None = None,
    ) -> None:
        self._runner = runner
        self.sessions = sessions if sessions is not None else SessionStore()
        self.serializer = serializer or TwilioSerializer()
        self._tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    async def handle_connection(self, transport: BaseTransport) -> None:
        """Consume messages from one provider connection until it closes."""
        logger.info("Media stream connected")
        async for raw in transport:
            await self.handle_message(raw)
        logger.info("Media WebSocket closed")

    async def handle_message(self, raw: bytes | str | dict) -> None:
        """Apply one transport message to the session store.

        Never raises: a message that cannot be handled is logged and dropped
        so the connection keeps serving its other streams.
        """
        try:
            events = await self.serializer.deserialize(raw)
        except MalformedMessageError as e:
            logger.error(f"Error parsing {self.serializer.name} message: {e}")
            return
        except Exception as e:
            logger.exception(f"Unexpected error parsing {self.serializer.name} message: {e}")
            return

        try:
            self._apply(events)
        except Exception as e:
            logger.exception(f"Error handling {self.serializer.name} message: {e}")

    def _apply(self, events: list[AnyEvent]) -> None:
        for event in events:
            if isinstance(event, StreamStarted):
                logger.info(f"Stream started: {event.stream_id} (call: {event.call_id})")
                self.sessions.open(event.stream_id)

            elif isinstance(event, AudioFrame):
                self.sessions.append(event.stream_id, event.data)

            elif isinstance(event, StreamStopped):
                logger.info(f"Stream stopped: {event.stream_id}")
                self._finish_stream(event.stream_id)

            elif isinstance(event, CustomEvent):
                logger.debug(f"Ignoring {event.custom_type} message")

    # ------------------------------------------------------------------
    # Pipeline hand-off
    # ------------------------------------------------------------------

    def _finish_stream(self, stream_id: str) -> None:
        fragments = self.sessions.close(stream_id)
        if not fragments:
            logger.info(f"No audio chunks collected for stream {stream_id}")
            return

        audio = b"".join(fragments)
        task = asyncio.create_task(self._runner(stream_id, audio), name=f"pipeline-{stream_id}")
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"{task.get_name()} was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error(f"{task.get_name()} failed: {exc}")

    @property
    def pending_count(self) -> int:
        """Pipelines still running."""
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait until every launched pipeline has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
