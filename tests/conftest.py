"""Shared pytest fixtures for the WhisperDesk test suite.

Provides fake recorder/player/engine collaborators, a temporary asset
bundle with one model and one WAV sample, and a factory that wires them
into a ``SessionOrchestrator`` backed by an ``httpx.MockTransport``.
"""

import math
import struct
import threading
import time
import wave
from pathlib import Path

import httpx
import numpy as np
import pytest

from whisperdesk.core.config import Settings
from whisperdesk.services import orchestrator as orchestrator_module
from whisperdesk.services.audio.base import BasePlayer, BaseRecorder
from whisperdesk.services.converter import ConverterClient
from whisperdesk.services.orchestrator import SessionOrchestrator
from whisperdesk.services.transcription.base import BaseTranscriptionEngine

# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class FakeRecorder(BaseRecorder):
    """Records calls instead of touching an audio device."""

    def __init__(self) -> None:
        self.started: list[Path] = []
        self.stop_calls = 0
        self.on_error = None
        self.start_error: Exception | None = None
        self.stop_error: Exception | None = None

    def start(self, path, on_error) -> None:
        if self.start_error is not None:
            raise self.start_error
        self.started.append(Path(path))
        self.on_error = on_error

    def stop(self) -> None:
        self.stop_calls += 1
        if self.stop_error is not None:
            raise self.stop_error


class FakePlayer(BasePlayer):
    def __init__(self) -> None:
        self.started: list[Path] = []
        self.stop_calls = 0
        self.start_error: Exception | None = None

    def start(self, path) -> None:
        if self.start_error is not None:
            raise self.start_error
        self.started.append(Path(path))

    def stop(self) -> None:
        self.stop_calls += 1


class FakeEngine(BaseTranscriptionEngine):
    """Returns canned text; optionally sleeps or fails."""

    def __init__(
        self,
        text: str = "[SPEAKER]: Hello\nworld  !",
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.text = text
        self.error = error
        self.delay = delay
        self.calls = 0
        self.release_calls = 0
        self.events: list[str] = []
        self._lock = threading.Lock()

    def transcribe(self, samples: np.ndarray) -> str:
        with self._lock:
            self.calls += 1
            self.events.append("transcribe")
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.text

    def release(self) -> None:
        with self._lock:
            self.release_calls += 1
            self.events.append("release")


def fake_decode(path, sample_rate: int = 16000) -> np.ndarray:
    """Decoder stand-in returning one second of silence."""
    return np.zeros(sample_rate, dtype=np.float32)


def ok_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, text="OK")


# ---------------------------------------------------------------------------
# Audio fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_pcm_bytes():
    """Generate 1 second of 440Hz sine-wave PCM audio (16kHz, 16-bit, mono).

    Returns:
        bytes: Raw PCM audio data.
    """
    sample_rate = 16000
    duration = 1.0
    frequency = 440.0
    amplitude = 16000  # ~50% of max int16

    samples = []
    for i in range(int(sample_rate * duration)):
        value = int(amplitude * math.sin(2 * math.pi * frequency * i / sample_rate))
        samples.append(struct.pack("<h", value))
    return b"".join(samples)


def write_wav(path: Path, pcm: bytes, sample_rate: int = 16000, channels: int = 1) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    return path


@pytest.fixture
def sample_audio_path(tmp_path, sample_pcm_bytes):
    """Create a temporary WAV file from sample PCM data."""
    return write_wav(tmp_path / "test_audio.wav", sample_pcm_bytes)


# ---------------------------------------------------------------------------
# Asset bundle & settings
# ---------------------------------------------------------------------------


@pytest.fixture
def assets_dir(tmp_path, sample_pcm_bytes):
    """Bundle with ``models/ggml-tiny`` and ``samples/jfk.wav``."""
    root = tmp_path / "assets"
    (root / "models" / "ggml-tiny").mkdir(parents=True)
    (root / "models" / "ggml-tiny" / "model.bin").write_bytes(b"\x00")
    write_wav(root / "samples" / "jfk.wav", sample_pcm_bytes)
    return root


@pytest.fixture
def settings(tmp_path, assets_dir):
    return Settings(
        assets_dir=str(assets_dir),
        data_dir=str(tmp_path / "data"),
        recordings_dir=str(tmp_path / "data" / "recordings"),
        heartbeat_interval=0.05,
        converter_url="http://converter.test/convert",
        converter_timeout=5.0,
    )


@pytest.fixture
def recorder():
    return FakeRecorder()


@pytest.fixture
def player():
    return FakePlayer()


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
async def make_orchestrator(settings, recorder, player, engine):
    """Factory for orchestrators with fake collaborators; closes them afterwards."""
    created: list[SessionOrchestrator] = []

    def _make(handler=ok_handler, engine_factory=None, decode=fake_decode):
        converter = ConverterClient(
            url=settings.converter_url,
            timeout=settings.converter_timeout,
            transport=httpx.MockTransport(handler),
        )
        instance = SessionOrchestrator(
            recorder=recorder,
            player=player,
            converter=converter,
            engine_factory=engine_factory or (lambda _path: engine),
            decode=decode,
            settings=settings,
        )
        created.append(instance)
        return instance

    yield _make

    for instance in created:
        await instance.close()


@pytest.fixture(autouse=True)
def _reset_singleton():
    """Ensure the orchestrator singleton is cleared before and after each test."""
    orchestrator_module._active_orchestrator = None
    yield
    orchestrator_module._active_orchestrator = None
