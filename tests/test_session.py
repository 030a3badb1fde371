"""Tests for the stream session registry."""

from callpipe.session import SessionStore, StreamSession


class TestStreamSession:

    def test_defaults(self):
        session = StreamSession(stream_id="MZ1")
        assert session.fragments == []
        assert session.frame_count == 0
        assert session.byte_count == 0
        assert session.duration_ms >= 0

    def test_append_counts(self):
        session = StreamSession(stream_id="MZ1")
        session.append(b"\x01\x02")
        session.append(b"\x03")
        assert session.frame_count == 2
        assert session.byte_count == 3


class TestSessionStore:

    def test_open_creates_empty_session(self):
        store = SessionStore()
        session = store.open("MZ1")
        assert session.stream_id == "MZ1"
        assert store.get("MZ1") is session
        assert store.active_count == 1

    def test_append_then_close_preserves_order(self):
        store = SessionStore()
        store.open("MZ1")
        assert store.append("MZ1", b"A")
        assert store.append("MZ1", b"B")
        assert store.close("MZ1") == [b"A", b"B"]
        assert store.get("MZ1") is None
        assert store.active_count == 0

    def test_append_to_unknown_stream_is_dropped(self):
        store = SessionStore()
        assert store.append("nope", b"A") is False
        assert store.active_count == 0

    def test_close_unknown_stream_returns_empty(self):
        store = SessionStore()
        assert store.close("nope") == []

    def test_close_twice(self):
        store = SessionStore()
        store.open("MZ1")
        store.append("MZ1", b"A")
        assert store.close("MZ1") == [b"A"]
        assert store.close("MZ1") == []

    def test_reopen_discards_buffered_audio(self):
        store = SessionStore()
        store.open("MZ1")
        store.append("MZ1", b"old")
        store.open("MZ1")
        assert store.get("MZ1").fragments == []
        assert store.active_count == 1

    def test_streams_are_isolated(self):
        store = SessionStore()
        store.open("MZ1")
        store.open("MZ2")
        store.append("MZ1", b"one")
        store.append("MZ2", b"two")
        assert store.close("MZ2") == [b"two"]
        assert store.close("MZ1") == [b"one"]

    def test_all_sessions(self):
        store = SessionStore()
        store.open("MZ1")
        store.open("MZ2")
        assert {s.stream_id for s in store.all_sessions} == {"MZ1", "MZ2"}
