"""
Abstract base class for transcription engines.

Engines are synchronous and CPU-bound; callers run them through
``asyncio.to_thread`` so the event loop never blocks on inference.
"""

from abc import ABC, abstractmethod

import numpy as np


class BaseTranscriptionEngine(ABC):
    """Interface that every transcription engine must implement."""

    @abstractmethod
    def transcribe(self, samples: np.ndarray) -> str:
        """Transcribe decoded audio to raw text.

        Args:
            samples: Float32 mono samples at 16 kHz.

        Returns:
            The engine's raw output, possibly containing bracketed markers.

        Raises:
            TranscriptionError: If inference fails.
        """

    @abstractmethod
    def release(self) -> None:
        """Free the engine's resources. Safe to call more than once."""
