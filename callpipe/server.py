"""HTTP/WebSocket server for callpipe.

Provides a FastAPI application that accepts the Twilio media stream on the
configured WebSocket path, serves the call's TwiML, places outbound calls and
exposes the latest pipeline result for polling clients.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from loguru import logger

from callpipe.collector import FrameCollector
from callpipe.config import AppConfig, load_config
from callpipe.pipeline.cache import ResultCache
from callpipe.pipeline.orchestrator import PipelineOrchestrator
from callpipe.providers.base import BaseTelephony
from callpipe.providers.registry import provider_registry
from callpipe.providers.telephony.twilio import build_stream_twiml
from callpipe.transports.fastapi import FastAPIWebSocketTransport


def create_app(
    config: AppConfig | dict | str | None = None,
    *,
    cache: ResultCache | None = None,
    orchestrator: PipelineOrchestrator | None = None,
    telephony: BaseTelephony | None = None,
) -> FastAPI:
    """Create the callpipe FastAPI application.

    Args:
        config: App configuration (YAML path, dict, AppConfig, or None for
            the environment).
        cache: Result cache shared by the pipeline and ``/latest-answer``.
        orchestrator: Pipeline to run for finished streams. Built from the
            config when omitted.
        telephony: Outbound call provider. Built from the config on the first
            ``/button`` request when omitted.

    Returns:
        A FastAPI application instance.
    """
    app_config = load_config(config)
    cache = cache if cache is not None else ResultCache()
    if orchestrator is None:
        orchestrator = PipelineOrchestrator.from_config(app_config, cache)
    collector = FrameCollector(orchestrator.run)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if collector.pending_count:
            logger.info(f"Waiting for {collector.pending_count} pipeline(s) to finish")
        await collector.wait_idle()

    app = FastAPI(
        title="callpipe",
        description="Call audio to transcript, answer and WhatsApp notification",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = app_config
    app.state.cache = cache
    app.state.collector = collector
    app.state.telephony = telephony

    def get_telephony() -> BaseTelephony:
        if app.state.telephony is None:
            tw = app_config.twilio
            app.state.telephony = provider_registry.create_telephony(
                app_config.pipeline.telephony_provider,
                account_sid=tw.account_sid,
                auth_token=tw.auth_token,
                from_=tw.from_number,
                to=tw.to_number,
            )
        return app.state.telephony

    @app.get("/")
    async def root():
        return PlainTextResponse("Backend is alive")

    @app.get("/health")
    async def health():
        return JSONResponse({"status": "ok", "active_streams": collector.sessions.active_count})

    @app.post("/button")
    async def button():
        logger.info("Button pressed, placing outbound call")
        try:
            call_sid = await get_telephony().place_call(app_config.server.voice_url)
        except Exception as e:
            logger.error(f"Error placing call: {e}")
            return JSONResponse({"error": "Failed to place call"}, status_code=500)
        return JSONResponse({"ok": True, "callSid": call_sid})

    @app.post("/voice")
    async def voice():
        twiml = build_stream_twiml(
            app_config.server.stream_url,
            listen_seconds=app_config.audio.max_duration_seconds,
        )
        return Response(content=twiml, media_type="text/xml")

    @app.get("/latest-answer")
    async def latest_answer():
        return JSONResponse(cache.read().to_dict())

    @app.websocket(app_config.server.listen_path)
    async def media_stream(websocket: WebSocket):
        await websocket.accept()
        logger.info(f"Provider WebSocket connected: {websocket.client}")

        transport = FastAPIWebSocketTransport(websocket)
        try:
            await collector.handle_connection(transport)
        except Exception as e:
            logger.exception(f"WebSocket handler error: {e}")
        finally:
            await transport.disconnect()

    return app


def run_server(config: AppConfig | dict | str | None = None, host: str | None = None, port: int | None = None) -> None:
    """Run the callpipe server with uvicorn.

    Args:
        config: App configuration.
        host: Override the listen host.
        port: Override the listen port.
    """
    import uvicorn

    app_config = load_config(config)
    app = create_app(app_config)

    uvicorn.run(
        app,
        host=host or app_config.server.listen_host,
        port=port or app_config.server.listen_port,
        log_config=None,
    )
