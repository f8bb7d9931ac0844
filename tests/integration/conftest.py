"""Integration test fixtures for WhisperDesk.

Provides an async HTTP client wired to a ready orchestrator with fake audio
and engine backends, and a sync TestClient (for WebSocket) whose lifespan
builds the same kind of orchestrator on the app's own event loop.
"""

from unittest.mock import patch

import httpx
import numpy as np
import pytest
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient

from whisperdesk.api.app import create_app
from whisperdesk.services import orchestrator as orchestrator_module
from whisperdesk.services.converter import ConverterClient
from whisperdesk.services.orchestrator import SessionOrchestrator


@pytest.fixture
def app():
    """Create a fresh FastAPI application instance."""
    return create_app()


@pytest.fixture
async def session(make_orchestrator):
    """Orchestrator that has finished setup and is registered as active."""
    instance = make_orchestrator()
    assert await instance.setup() is True
    orchestrator_module._active_orchestrator = instance
    return instance


@pytest.fixture
async def async_client(app, session):
    """AsyncClient talking to the app in-process.

    ASGITransport does not run the lifespan, so the active orchestrator is
    the one registered by the ``session`` fixture.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def test_client(app, settings, recorder, player, engine):
    """Synchronous TestClient for WebSocket tests.

    The lifespan runs on the client's own loop and builds the orchestrator
    through a patched ``create_orchestrator``.
    """

    def _build(_settings=None):
        return SessionOrchestrator(
            recorder=recorder,
            player=player,
            converter=ConverterClient(
                url=settings.converter_url,
                transport=httpx.MockTransport(lambda request: httpx.Response(200, text="OK")),
            ),
            engine_factory=lambda _path: engine,
            decode=lambda path, sample_rate: np.zeros(sample_rate, dtype=np.float32),
            settings=settings,
        )

    with patch.object(orchestrator_module, "create_orchestrator", side_effect=_build):
        with TestClient(app) as c:
            yield c
