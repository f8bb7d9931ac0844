"""Microphone capture to a WAV file using sounddevice + soundfile.

PortAudio delivers blocks on its own callback thread; each block is written
straight to an open ``soundfile.SoundFile`` so nothing accumulates in memory.
"""

import logging
import threading
from collections.abc import Callable
from pathlib import Path

import sounddevice as sd
import soundfile as sf

from whisperdesk.core.exceptions import RecordingError
from whisperdesk.services.audio.base import BaseRecorder

logger = logging.getLogger(__name__)


class SoundDeviceRecorder(BaseRecorder):
    """Records 16-bit PCM from the default (or given) input device.

    Args:
        sample_rate: Capture rate in Hz (default: 16 kHz).
        channels: Number of input channels (1 = mono).
        device: sounddevice device index or name, None for the default.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        device: int | str | None = None,
    ) -> None:
        self._sample_rate = sample_rate
        self._channels = channels
        self._device = device
        self._stream: sd.InputStream | None = None
        self._sndfile: sf.SoundFile | None = None
        self._on_error: Callable[[Exception], None] | None = None
        self._lock = threading.Lock()
        self._failed = False

    @property
    def recording(self) -> bool:
        return self._stream is not None

    def start(self, path: Path, on_error: Callable[[Exception], None]) -> None:
        if self._stream is not None:
            raise RecordingError("Recorder is already capturing")

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._sndfile = sf.SoundFile(
                str(path),
                mode="w",
                samplerate=self._sample_rate,
                channels=self._channels,
                subtype="PCM_16",
            )
            self._on_error = on_error
            self._failed = False
            self._stream = sd.InputStream(
                samplerate=self._sample_rate,
                channels=self._channels,
                dtype="float32",
                callback=self._on_audio,
                device=self._device,
            )
            self._stream.start()
        except Exception as exc:
            self._close()
            raise RecordingError(f"Failed to start recording: {exc}") from exc

        logger.info("Recording started: %s", path)

    def stop(self) -> None:
        if self._stream is None:
            return
        try:
            self._stream.stop()
        finally:
            self._close()
        logger.info("Recording stopped")

    def _close(self) -> None:
        # Closing the stream waits for the callback, which takes the lock
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.close()
        with self._lock:
            if self._sndfile is not None:
                self._sndfile.flush()
                self._sndfile.close()
                self._sndfile = None
        self._on_error = None

    def _on_audio(self, indata, frames, time_info, status) -> None:  # noqa: ANN001
        """PortAudio callback: append the block or report the first failure."""
        if self._failed:
            return
        if status.input_overflow or status.input_underflow:
            self._report(RecordingError(f"Audio input error: {status}"))
            return
        with self._lock:
            if self._sndfile is None:
                return
            try:
                self._sndfile.write(indata.copy())
            except Exception as exc:
                self._report(RecordingError(f"Failed to write audio: {exc}"))

    def _report(self, exc: Exception) -> None:
        self._failed = True
        logger.warning("Capture error: %s", exc)
        callback = self._on_error
        if callback is not None:
            callback(exc)
