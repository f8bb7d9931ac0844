"""
FastAPI application factory.

``create_app()`` assembles the application with CORS, error handlers,
routers, and the health endpoint. The lifespan starts the session
orchestrator on startup (unless one is already registered) and closes it on
shutdown. The module-level ``app`` instance allows
``uvicorn whisperdesk.api.app:app --reload``.
"""

from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from whisperdesk import __version__
from whisperdesk.api import websocket
from whisperdesk.api.middleware.error_handler import register_error_handlers
from whisperdesk.api.routes import session
from whisperdesk.core.models import HealthResponse
from whisperdesk.services import orchestrator


@asynccontextmanager
async def lifespan(_app: FastAPI):
    await orchestrator.start_orchestrator(orchestrator.get_active_orchestrator())
    try:
        yield
    finally:
        await orchestrator.shutdown_orchestrator()


def create_app() -> FastAPI:
    """Build and return a fully configured FastAPI application."""

    app = FastAPI(
        title="WhisperDesk",
        description="Record or load audio, transcribe it locally with Whisper, "
        "and forward the cleaned transcript to a conversion service.",
        version=__version__,
        lifespan=lifespan,
    )

    # -- CORS --
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",  # Dev frontend
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- Error handlers --
    register_error_handlers(app)

    # -- Health check (root-level, not under /api/v1) --
    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(version=__version__, timestamp=datetime.now(UTC))

    # -- REST routes --
    app.include_router(session.router, prefix="/api/v1")

    # -- WebSocket --
    app.include_router(websocket.router)

    return app


app = create_app()
