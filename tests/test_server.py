"""Tests for the HTTP/WebSocket server."""

import asyncio
import base64
import json
import threading

import pytest
from fastapi.testclient import TestClient

from callpipe.errors import TelephonyError
from callpipe.pipeline.cache import ResultCache
from callpipe.providers.base import BaseTelephony
from callpipe.server import create_app

CONFIG = {
    "public_base_url": "https://abcd.ngrok-free.app",
    "audio": {"max_duration_seconds": 45},
}


class FakeOrchestrator:
    """Records run() calls and signals the test thread."""

    def __init__(self):
        self.runs = []
        self.finished = threading.Event()

    async def run(self, stream_id, audio):
        self.runs.append((stream_id, audio))
        self.finished.set()


class SlowOrchestrator:
    """Holds each run open briefly so shutdown has something to wait for."""

    def __init__(self):
        self.started = threading.Event()
        self.completed = []

    async def run(self, stream_id, audio):
        self.started.set()
        await asyncio.sleep(0.2)
        self.completed.append(stream_id)


class FakeTelephony(BaseTelephony):

    def __init__(self, error=None):
        self.error = error
        self.urls = []

    async def place_call(self, answer_url):
        self.urls.append(answer_url)
        if self.error:
            raise self.error
        return "CA123"


def media(sid, audio):
    return json.dumps({
        "event": "media",
        "streamSid": sid,
        "media": {"payload": base64.b64encode(audio).decode()},
    })


class TestServer:

    @pytest.fixture
    def cache(self):
        return ResultCache()

    @pytest.fixture
    def orchestrator(self):
        return FakeOrchestrator()

    @pytest.fixture
    def telephony(self):
        return FakeTelephony()

    @pytest.fixture
    def client(self, cache, orchestrator, telephony):
        app = create_app(CONFIG, cache=cache, orchestrator=orchestrator, telephony=telephony)
        with TestClient(app) as client:
            yield client

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.text == "Backend is alive"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok", "active_streams": 0}

    def test_latest_answer_initially_empty(self, client):
        response = client.get("/latest-answer")
        assert response.status_code == 200
        assert response.json() == {"transcript": "", "full_answer": "", "summary": ""}

    def test_latest_answer_reflects_cache(self, client, cache):
        cache.save("mera sar dard kar raha hai", "Paani piyo.", "Aaram karo.")
        assert client.get("/latest-answer").json() == {
            "transcript": "mera sar dard kar raha hai",
            "full_answer": "Paani piyo.",
            "summary": "Aaram karo.",
        }

    def test_voice_returns_stream_twiml(self, client):
        response = client.post("/voice")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/xml")
        assert '<Stream url="wss://abcd.ngrok-free.app/media"' in response.text
        assert '<Pause length="45"' in response.text

    def test_button_places_call(self, client, telephony):
        response = client.post("/button")
        assert response.status_code == 200
        assert response.json() == {"ok": True, "callSid": "CA123"}
        assert telephony.urls == ["https://abcd.ngrok-free.app/voice"]

    def test_button_failure(self, cache, orchestrator):
        telephony = FakeTelephony(error=TelephonyError("unverified number"))
        app = create_app(CONFIG, cache=cache, orchestrator=orchestrator, telephony=telephony)
        with TestClient(app) as client:
            response = client.post("/button")
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to place call"}

    def test_media_stream_runs_pipeline(self, client, orchestrator):
        with client.websocket_connect("/media") as ws:
            ws.send_text(json.dumps({"event": "connected", "protocol": "Call"}))
            ws.send_text(json.dumps({"event": "start", "start": {"streamSid": "MZ1", "callSid": "CA1"}}))
            ws.send_text("not json at all")
            ws.send_text(media("MZ1", b"\x01\x02"))
            ws.send_text(media("MZ1", b"\x03"))
            ws.send_text(json.dumps({"event": "stop", "streamSid": "MZ1"}))
            assert orchestrator.finished.wait(timeout=5)

        assert orchestrator.runs == [("MZ1", b"\x01\x02\x03")]

    def test_media_stream_without_audio(self, client, orchestrator):
        with client.websocket_connect("/media") as ws:
            ws.send_text(json.dumps({"event": "start", "streamSid": "MZ2"}))
            ws.send_text(json.dumps({"event": "stop", "streamSid": "MZ2"}))
            # Messages are handled in order, so this run means MZ2 is done
            ws.send_text(json.dumps({"event": "start", "streamSid": "MZ3"}))
            ws.send_text(media("MZ3", b"\x07"))
            ws.send_text(json.dumps({"event": "stop", "streamSid": "MZ3"}))
            assert orchestrator.finished.wait(timeout=5)
            assert client.get("/health").json()["active_streams"] == 0

        assert orchestrator.runs == [("MZ3", b"\x07")]

    def test_custom_listen_path(self, cache, orchestrator, telephony):
        app = create_app(
            {**CONFIG, "listen_path": "/stream"},
            cache=cache, orchestrator=orchestrator, telephony=telephony,
        )
        with TestClient(app) as client:
            with client.websocket_connect("/stream") as ws:
                ws.send_text(json.dumps({"event": "start", "streamSid": "MZ3"}))
                ws.send_text(media("MZ3", b"\x09"))
                ws.send_text(json.dumps({"event": "stop", "streamSid": "MZ3"}))
                assert orchestrator.finished.wait(timeout=5)
        assert orchestrator.runs == [("MZ3", b"\x09")]

    def test_shutdown_waits_for_running_pipeline(self, cache, telephony):
        orchestrator = SlowOrchestrator()
        app = create_app(CONFIG, cache=cache, orchestrator=orchestrator, telephony=telephony)
        with TestClient(app) as client:
            with client.websocket_connect("/media") as ws:
                ws.send_text(json.dumps({"event": "start", "streamSid": "MZ4"}))
                ws.send_text(media("MZ4", b"\x05"))
                ws.send_text(json.dumps({"event": "stop", "streamSid": "MZ4"}))
                assert orchestrator.started.wait(timeout=5)

        assert orchestrator.completed == ["MZ4"]
