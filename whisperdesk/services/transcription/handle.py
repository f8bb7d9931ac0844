"""Thread-safe ownership of the loaded transcription engine.

Inference runs on worker threads while teardown happens on the event loop.
``EngineHandle`` counts in-flight calls so that ``release()`` can refuse new
work, wait for running calls to drain and only then free the engine.
"""

import logging
import threading

import numpy as np

from whisperdesk.core.exceptions import EngineReleasedError
from whisperdesk.services.transcription.base import BaseTranscriptionEngine

logger = logging.getLogger(__name__)


class EngineHandle:
    """Single owner of a ``BaseTranscriptionEngine``.

    Args:
        engine: The loaded engine. The handle releases it exactly once.
    """

    def __init__(self, engine: BaseTranscriptionEngine) -> None:
        self._engine = engine
        self._cond = threading.Condition()
        self._in_flight = 0
        self._released = False

    @property
    def released(self) -> bool:
        with self._cond:
            return self._released

    @property
    def in_flight(self) -> int:
        with self._cond:
            return self._in_flight

    def transcribe(self, samples: np.ndarray) -> str:
        """Run the engine, rejecting the call once release has begun.

        Raises:
            EngineReleasedError: If ``release()`` was already called.
        """
        with self._cond:
            if self._released:
                raise EngineReleasedError()
            self._in_flight += 1
        try:
            return self._engine.transcribe(samples)
        finally:
            with self._cond:
                self._in_flight -= 1
                self._cond.notify_all()

    def release(self) -> bool:
        """Drain in-flight calls and free the engine.

        Blocks while calls are running, so call it from a worker thread.

        Returns:
            True if this call released the engine, False if it was already released.
        """
        with self._cond:
            if self._released:
                return False
            self._released = True
            if self._in_flight:
                logger.info("Waiting for %d transcription call(s) before release", self._in_flight)
            self._cond.wait_for(lambda: self._in_flight == 0)
        self._engine.release()
        logger.info("Transcription engine released")
        return True
