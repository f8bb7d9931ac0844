"""
Session REST endpoints.

Thin command/observation layer over the active ``SessionOrchestrator``.
Long-running work (transcription, conversion) continues in the background;
commands that start it answer 202 with the state at acceptance time.
"""

import logging
from pathlib import Path

from fastapi import APIRouter, status

from whisperdesk.core.exceptions import OrchestratorNotRunningError, SampleNotFoundError
from whisperdesk.core.models import CommandAccepted, SessionSnapshot, TranscribeFileRequest
from whisperdesk.services import orchestrator
from whisperdesk.services.orchestrator import SessionOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["session"])


def _require_orchestrator() -> SessionOrchestrator:
    session = orchestrator.get_active_orchestrator()
    if session is None:
        raise OrchestratorNotRunningError()
    return session


@router.get("", response_model=SessionSnapshot)
async def get_session() -> SessionSnapshot:
    """Return the current session state."""
    return _require_orchestrator().snapshot()


@router.post("/recording/toggle", response_model=SessionSnapshot)
async def toggle_recording() -> SessionSnapshot:
    """Start recording, or stop and hand the recording to transcription."""
    session = _require_orchestrator()
    await session.toggle_recording()
    return session.snapshot()


@router.post(
    "/transcribe-sample",
    response_model=CommandAccepted,
    status_code=status.HTTP_202_ACCEPTED,
)
async def transcribe_sample() -> CommandAccepted:
    """Transcribe the first bundled sample."""
    session = _require_orchestrator()
    task = await session.transcribe_sample()
    return CommandAccepted(accepted=task is not None, snapshot=session.snapshot())


@router.post(
    "/transcribe",
    response_model=CommandAccepted,
    status_code=status.HTTP_202_ACCEPTED,
)
async def transcribe_file(body: TranscribeFileRequest) -> CommandAccepted:
    """Transcribe an audio file already present on the server."""
    session = _require_orchestrator()
    path = Path(body.path)
    if not path.is_file():
        raise SampleNotFoundError(body.path)
    accepted = session.can_transcribe and not session.is_recording
    session.transcribe_file(path)
    logger.info("Transcription requested for %s (accepted=%s)", path, accepted)
    return CommandAccepted(accepted=accepted, snapshot=session.snapshot())


@router.post("/navigation/ack", response_model=SessionSnapshot)
async def acknowledge_navigation() -> SessionSnapshot:
    """Clear the pending conversion result after the client has shown it."""
    session = _require_orchestrator()
    session.acknowledge_navigation()
    return session.snapshot()
