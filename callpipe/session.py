"""Stream session registry.

Each active media stream gets a StreamSession holding its audio fragments in
receipt order. The SessionStore owns every session from ``start`` to ``stop``.
All mutations happen synchronously on the event loop, so no locking is used.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from loguru import logger


@dataclass
class StreamSession:
    """Audio buffered for a single inbound media stream."""

    stream_id: str
    fragments: list[bytes] = field(default_factory=list)
    started_at: float = field(default_factory=time.time)

    def append(self, fragment: bytes) -> None:
        self.fragments.append(fragment)

    @property
    def frame_count(self) -> int:
        return len(self.fragments)

    @property
    def byte_count(self) -> int:
        return sum(len(f) for f in self.fragments)

    @property
    def duration_ms(self) -> int:
        """Wall-clock time since the stream started."""
        return int((time.time() - self.started_at) * 1000)


class SessionStore:
    """Registry of active stream sessions keyed by stream id.

    Unknown ids are never an error: late or out-of-order frames are dropped,
    and closing an unknown stream yields no audio.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, StreamSession] = {}

    def open(self, stream_id: str) -> StreamSession:
        """Create an empty session, replacing any existing one with the same id."""
        if stream_id in self._sessions:
            logger.warning(f"Stream {stream_id} re-opened; discarding buffered audio")
        session = StreamSession(stream_id=stream_id)
        self._sessions[stream_id] = session
        logger.info(f"Stream opened: {stream_id}")
        return session

    def append(self, stream_id: str, fragment: bytes) -> bool:
        """Append a fragment to a known session. Returns False if it was dropped."""
        session = self._sessions.get(stream_id)
        if session is None:
            logger.debug(f"Dropping frame for unknown stream {stream_id}")
            return False
        session.append(fragment)
        return True

    def close(self, stream_id: str) -> list[bytes]:
        """Remove a session and return its fragments ([] if unknown)."""
        session = self._sessions.pop(stream_id, None)
        if session is None:
            return []
        logger.info(
            f"Stream closed: {stream_id} "
            f"({session.frame_count} frames, {session.byte_count} bytes, "
            f"{session.duration_ms}ms)"
        )
        return session.fragments

    def get(self, stream_id: str) -> StreamSession | None:
        return self._sessions.get(stream_id)

    @property
    def active_count(self) -> int:
        """Number of open streams."""
        return len(self._sessions)

    @property
    def all_sessions(self) -> list[StreamSession]:
        return list(self._sessions.values())
