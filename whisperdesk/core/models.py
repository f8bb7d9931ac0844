"""
Pydantic v2 models shared by the orchestrator and the API layer.

Session — status taxonomy, read-only snapshot, observer events
API — request bodies and health response
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class SessionStatus(StrEnum):
    """User-visible states of the transcription session."""

    idle = "idle"
    recording = "recording"
    transcribing = "transcribing"
    succeeded = "succeeded"
    failed = "failed"


class SessionSnapshot(BaseModel):
    """Consistent read-only projection of the session state."""

    can_transcribe: bool = False
    is_recording: bool = False
    status: SessionStatus = SessionStatus.idle
    log: list[str] = Field(default_factory=list)
    recording_elapsed_ms: int = 0
    last_converted_record: str | None = None

    @property
    def log_text(self) -> str:
        """The session log as one newline-separated block."""
        return "\n".join(self.log)


class SessionEventType(StrEnum):
    """Kinds of notifications pushed to session observers."""

    state = "state"
    navigate = "navigate"


class SessionEvent(BaseModel):
    """A state change or navigation signal delivered to listeners."""

    type: SessionEventType
    snapshot: SessionSnapshot
    payload: str | None = None


# ---------------------------------------------------------------------------
# API requests
# ---------------------------------------------------------------------------


class TranscribeFileRequest(BaseModel):
    """POST /session/transcribe request body."""

    path: str = Field(..., min_length=1)


class CommandAccepted(BaseModel):
    """Response for commands that continue in the background."""

    accepted: bool = True
    snapshot: SessionSnapshot
