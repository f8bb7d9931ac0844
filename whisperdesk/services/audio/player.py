"""Best-effort playback of recorded or sample audio via sounddevice."""

import logging
import threading
from pathlib import Path

import sounddevice as sd
import soundfile as sf

from whisperdesk.services.audio.base import BasePlayer

logger = logging.getLogger(__name__)


class SoundDevicePlayer(BasePlayer):
    """Plays a file on the default output device without blocking.

    ``start()`` runs on a worker thread while ``stop()`` is called from the
    event loop. A stop that lands while the file is still being read cancels
    that pending start.
    """

    def __init__(self, device: int | str | None = None) -> None:
        self._device = device
        self._lock = threading.Lock()
        self._playing = False
        self._generation = 0

    def start(self, path: Path) -> None:
        with self._lock:
            generation = self._generation
        data, sample_rate = sf.read(str(path), dtype="float32")
        with self._lock:
            if generation != self._generation:
                logger.debug("Playback of %s cancelled before it started", path)
                return
            sd.play(data, sample_rate, device=self._device)
            self._playing = True
        logger.debug("Playback started: %s", path)

    def stop(self) -> None:
        with self._lock:
            self._generation += 1
            if not self._playing:
                return
            sd.stop()
            self._playing = False
        logger.debug("Playback stopped")
