"""Whisper transcription engine using faster-whisper.

Loads one ``WhisperModel`` from a bundled model directory and turns decoded
sample arrays into raw text. The engine is synchronous; the orchestrator runs
it via ``asyncio.to_thread()``.
"""

import logging
import threading
from pathlib import Path

import numpy as np
from faster_whisper import WhisperModel

from whisperdesk.core.exceptions import EngineLoadError, TranscriptionError
from whisperdesk.services.transcription.base import BaseTranscriptionEngine

logger = logging.getLogger(__name__)


class WhisperEngine(BaseTranscriptionEngine):
    """Speech-to-text engine backed by faster-whisper (CTranslate2).

    Args:
        model_path: Converted CTranslate2 model directory (or model size name).
        device: Computation device ("cpu" or "cuda").
        compute_type: CTranslate2 compute type ("int8", "float16", etc.).
        language: ISO language code, or None to auto-detect.
    """

    def __init__(
        self,
        model_path: str | Path,
        device: str = "cpu",
        compute_type: str = "int8",
        language: str | None = None,
    ) -> None:
        self._model_path = str(model_path)
        self._language = language or None
        self._lock = threading.Lock()
        logger.info(
            "Loading Whisper model: %s (device=%s, compute=%s)",
            self._model_path,
            device,
            compute_type,
        )
        try:
            self._model: WhisperModel | None = WhisperModel(
                self._model_path,
                device=device,
                compute_type=compute_type,
            )
        except Exception as exc:
            raise EngineLoadError(f"Failed to load model {self._model_path}: {exc}") from exc

    def transcribe(self, samples: np.ndarray, beam_size: int = 5) -> str:
        """Transcribe a float32 sample array.

        The segment iterator is materialized inside the lock, in the calling
        thread, to avoid CTranslate2 cross-thread issues.
        """
        with self._lock:
            if self._model is None:
                raise TranscriptionError("Whisper model has been released")
            try:
                segments_iter, info = self._model.transcribe(
                    samples,
                    language=self._language,
                    beam_size=beam_size,
                    vad_filter=False,
                )
                segments = list(segments_iter)
            except Exception as exc:
                raise TranscriptionError(f"Whisper transcription failed: {exc}") from exc

        logger.debug(
            "Whisper produced %d segment(s), language=%s", len(segments), info.language
        )
        return "".join(seg.text for seg in segments)

    def release(self) -> None:
        with self._lock:
            self._model = None
