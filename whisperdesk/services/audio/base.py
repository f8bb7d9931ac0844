"""
Abstract base classes for audio capture and playback.

The orchestrator only talks to these interfaces, so the sounddevice
adapters can be swapped for fakes in tests or other backends on platforms
without PortAudio.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path


class BaseRecorder(ABC):
    """Interface that every capture backend must implement."""

    @abstractmethod
    def start(self, path: Path, on_error: Callable[[Exception], None]) -> None:
        """Begin capturing microphone audio into ``path``.

        Args:
            path: Destination WAV file, created or truncated.
            on_error: Called with the failure if capture breaks mid-recording.
                May be invoked from an audio driver thread.

        Raises:
            RecordingError: If capture cannot be started.
        """

    @abstractmethod
    def stop(self) -> None:
        """Stop capturing and finalize the file. No-op when not recording."""


class BasePlayer(ABC):
    """Interface for best-effort playback of an audio file."""

    @abstractmethod
    def start(self, path: Path) -> None:
        """Start playing ``path`` without waiting for it to finish."""

    @abstractmethod
    def stop(self) -> None:
        """Stop and release any active playback. No-op when idle."""
