"""
WhisperDesk exception hierarchy.

All application-specific exceptions inherit from WhisperDeskError. The
orchestrator turns them into session log lines; the API error handler turns
them into a JSON envelope.
"""

from datetime import UTC, datetime


class WhisperDeskError(Exception):
    """Base exception for all WhisperDesk errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "WHISPERDESK_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


class AssetProvisioningError(WhisperDeskError):
    """Raised when bundled assets cannot be copied into local storage."""

    def __init__(self, detail: str = "Asset provisioning failed") -> None:
        super().__init__(detail=detail, code="ASSET_PROVISIONING_ERROR", status_code=500)


class EngineLoadError(WhisperDeskError):
    """Raised when no transcription engine could be loaded."""

    def __init__(self, detail: str = "Failed to load transcription engine") -> None:
        super().__init__(detail=detail, code="ENGINE_LOAD_ERROR", status_code=500)


class EngineNotLoadedError(WhisperDeskError):
    """Raised when a transcription is attempted without a loaded engine."""

    def __init__(self) -> None:
        super().__init__(
            detail="Transcription engine is not loaded",
            code="ENGINE_NOT_LOADED",
            status_code=503,
        )


class EngineReleasedError(WhisperDeskError):
    """Raised when the engine handle is used after release."""

    def __init__(self) -> None:
        super().__init__(
            detail="Transcription engine has been released",
            code="ENGINE_RELEASED",
            status_code=503,
        )


class TranscriptionError(WhisperDeskError):
    """Raised when STT processing fails."""

    def __init__(self, detail: str = "Transcription failed") -> None:
        super().__init__(detail=detail, code="TRANSCRIPTION_ERROR", status_code=500)


class DecodeError(WhisperDeskError):
    """Raised when an audio file cannot be decoded into samples."""

    def __init__(self, detail: str = "Audio decoding failed") -> None:
        super().__init__(detail=detail, code="DECODE_ERROR", status_code=500)


class RecordingError(WhisperDeskError):
    """Raised when audio capture cannot be started or finalized."""

    def __init__(self, detail: str = "Recording failed") -> None:
        super().__init__(detail=detail, code="RECORDING_ERROR", status_code=500)


class SampleNotFoundError(WhisperDeskError):
    """Raised when an audio file requested for transcription does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(
            detail=f"Audio file not found: {path}",
            code="SAMPLE_NOT_FOUND",
            status_code=404,
        )


class OrchestratorNotRunningError(WhisperDeskError):
    """Raised when a command arrives before the session orchestrator is started."""

    def __init__(self) -> None:
        super().__init__(
            detail="Session orchestrator is not running",
            code="ORCHESTRATOR_NOT_RUNNING",
            status_code=503,
        )
