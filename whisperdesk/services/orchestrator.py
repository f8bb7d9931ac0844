"""Session orchestrator for the record → transcribe → convert workflow.

Owns the single session state and is the only thing that mutates it. All
mutations happen on the asyncio event loop; file I/O, decoding, inference and
asset copying are pushed to worker threads with ``asyncio.to_thread`` and the
remote conversion is native async I/O, so the loop never blocks.

A module-level singleton keeps one orchestrator per process.

Usage::

    from whisperdesk.services.orchestrator import start_orchestrator, shutdown_orchestrator

    session = await start_orchestrator()
    await session.toggle_recording()          # start
    task = await session.toggle_recording()   # stop + transcribe
    await task
    await shutdown_orchestrator()
"""

import asyncio
import logging
import os
import tempfile
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path

import numpy as np

from whisperdesk.core.config import Settings, get_settings
from whisperdesk.core.exceptions import EngineLoadError, EngineNotLoadedError
from whisperdesk.core.models import (
    SessionEvent,
    SessionEventType,
    SessionSnapshot,
    SessionStatus,
)
from whisperdesk.core.utils import normalize_transcript
from whisperdesk.services.audio import (
    BasePlayer,
    BaseRecorder,
    create_player,
    create_recorder,
    decode_wave_file,
)
from whisperdesk.services.converter import ConversionSuccess, ConverterClient
from whisperdesk.services.storage import AssetStore
from whisperdesk.services.transcription import (
    BaseTranscriptionEngine,
    EngineHandle,
    create_engine,
)

logger = logging.getLogger(__name__)

MODELS_DIR = "models"
SAMPLES_DIR = "samples"

SessionListener = Callable[[SessionEvent], None]


@dataclass
class SessionState:
    """Mutable session fields. Only the orchestrator writes to them."""

    can_transcribe: bool = False
    is_recording: bool = False
    status: SessionStatus = SessionStatus.idle
    log: list[str] = field(default_factory=list)
    recording_elapsed_ms: int = 0
    last_converted_record: str | None = None
    recording_file: Path | None = None


def _describe(exc: BaseException) -> str:
    """Human-readable one-liner for the session log."""
    detail = getattr(exc, "detail", None)
    return detail or str(exc) or type(exc).__name__


class SessionOrchestrator:
    """Sequences recording, transcription and remote conversion for one session.

    Args:
        recorder: Microphone capture backend.
        player: Best-effort playback backend.
        converter: Client for the remote conversion endpoint.
        engine_factory: Loads an engine from a bundled model path. Runs on a
            worker thread.
        assets: Bundled asset store (defaults to ``settings.assets_dir``).
        decode: ``(path, sample_rate) -> samples`` decoder. Runs on a worker thread.
        settings: Optional Settings instance (defaults to get_settings()).
    """

    def __init__(
        self,
        recorder: BaseRecorder,
        player: BasePlayer,
        converter: ConverterClient,
        engine_factory: Callable[[Path], BaseTranscriptionEngine],
        assets: AssetStore | None = None,
        decode: Callable[[Path, int], np.ndarray] = decode_wave_file,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._recorder = recorder
        self._player = player
        self._converter = converter
        self._engine_factory = engine_factory
        self._assets = assets or AssetStore(self._settings.assets_dir)
        self._decode = decode

        data_dir = Path(self._settings.data_dir)
        self._models_path = data_dir / MODELS_DIR
        self._samples_path = data_dir / SAMPLES_DIR
        self._recordings_path = Path(self._settings.recordings_dir)
        self._interval = self._settings.heartbeat_interval

        self._state = SessionState()
        self._engine: EngineHandle | None = None
        self._listeners: list[SessionListener] = []
        self._toggle_lock = asyncio.Lock()
        self._heartbeat: asyncio.Task | None = None
        self._heartbeat_stop: asyncio.Event | None = None
        self._setup_task: asyncio.Task | None = None
        self._pipelines: set[asyncio.Task] = set()
        self._conversions: set[asyncio.Task] = set()
        self._background: set[asyncio.Task] = set()
        self._capture_failed = False
        self._closed = False

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def can_transcribe(self) -> bool:
        return self._state.can_transcribe

    @property
    def is_recording(self) -> bool:
        return self._state.is_recording

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def log(self) -> list[str]:
        return list(self._state.log)

    @property
    def recording_elapsed_ms(self) -> int:
        return self._state.recording_elapsed_ms

    @property
    def last_converted_record(self) -> str | None:
        return self._state.last_converted_record

    @property
    def heartbeat_active(self) -> bool:
        return self._heartbeat is not None and not self._heartbeat.done()

    @property
    def engine_loaded(self) -> bool:
        return self._engine is not None

    def snapshot(self) -> SessionSnapshot:
        """Return a consistent copy of the observable state."""
        state = self._state
        return SessionSnapshot(
            can_transcribe=state.can_transcribe,
            is_recording=state.is_recording,
            status=state.status,
            log=list(state.log),
            recording_elapsed_ms=state.recording_elapsed_ms,
            last_converted_record=state.last_converted_record,
        )

    def add_listener(self, listener: SessionListener) -> None:
        """Register a callback for state changes and navigation signals.

        Listeners are called on the event loop and must not block.
        """
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event_type: SessionEventType, payload: str | None = None) -> None:
        if not self._listeners:
            return
        event = SessionEvent(type=event_type, snapshot=self.snapshot(), payload=payload)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.warning("Session listener failed (non-fatal)", exc_info=True)

    def _update(self, **changes) -> None:
        for name, value in changes.items():
            setattr(self._state, name, value)
        self._emit(SessionEventType.state)

    def _print(self, message: str) -> None:
        self._state.log.append(message)
        self._emit(SessionEventType.state)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def start(self) -> asyncio.Task:
        """Schedule ``setup()`` in the background and return its task."""
        if self._setup_task is None:
            self._setup_task = asyncio.create_task(self.setup())
        return self._setup_task

    async def setup(self) -> bool:
        """Copy bundled samples and load the first bundled model.

        Failures are logged to the session and leave transcription disabled;
        recording keeps working.

        Returns:
            True if the engine is loaded and transcription is enabled.
        """
        try:
            await asyncio.to_thread(self._copy_assets)
            await self._load_engine()
        except Exception as exc:
            logger.warning("Session setup failed", exc_info=True)
            self._print(_describe(exc))
            return False

        self._update(can_transcribe=True)
        logger.info("Session ready")
        return True

    def _copy_assets(self) -> None:
        self._models_path.mkdir(parents=True, exist_ok=True)
        self._samples_path.mkdir(parents=True, exist_ok=True)
        self._assets.copy_all(SAMPLES_DIR, self._samples_path)

    async def _load_engine(self) -> None:
        models = await asyncio.to_thread(self._assets.list_bundled, MODELS_DIR)
        if not models:
            raise EngineLoadError(f"No bundled models found in {self._assets.path(MODELS_DIR)}")
        model_path = self._assets.path(MODELS_DIR, models[0])
        engine = await asyncio.to_thread(self._engine_factory, model_path)
        self._engine = EngineHandle(engine)
        logger.info("Loaded transcription engine from %s", model_path)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    async def toggle_recording(self) -> asyncio.Task | None:
        """Start a recording, or stop the current one and transcribe it.

        Returns:
            The transcription task started by a stop, otherwise None.
        """
        async with self._toggle_lock:
            if self._state.is_recording:
                return await self._stop_recording()
            await self._start_recording()
            return None

    async def _start_recording(self) -> None:
        self._stop_playback()
        if self._capture_failed:
            await self._reset_failed_recorder()
        loop = asyncio.get_running_loop()
        path: Path | None = None

        try:
            path = await asyncio.to_thread(self._new_recording_file)
            self._state.recording_file = path

            def on_error(exc: Exception) -> None:
                try:
                    loop.call_soon_threadsafe(self._on_capture_error, path, exc)
                except RuntimeError:
                    logger.warning("Capture error after event loop closed: %s", exc)

            await asyncio.to_thread(self._recorder.start, path, on_error)
        except Exception as exc:
            logger.warning("Failed to start recording", exc_info=True)
            self._print(_describe(exc))
            self._state.recording_file = None
            self._cancel_heartbeat()
            self._update(is_recording=False, status=SessionStatus.idle)
            if path is not None:
                await asyncio.to_thread(self._discard_recording_file, path)
            return

        if self._state.recording_file != path:
            # Capture already failed while the recorder was starting
            return

        self._update(
            is_recording=True,
            status=SessionStatus.recording,
            recording_elapsed_ms=0,
        )
        self._start_heartbeat()

    async def _stop_recording(self) -> asyncio.Task | None:
        path = self._state.recording_file
        self._state.recording_file = None

        try:
            await asyncio.to_thread(self._recorder.stop)
        except Exception as exc:
            logger.warning("Failed to stop recording", exc_info=True)
            self._print(_describe(exc))
            self._cancel_heartbeat()
            self._update(is_recording=False, status=SessionStatus.idle)
            return None

        self._cancel_heartbeat()
        self._update(is_recording=False, status=SessionStatus.idle)
        if path is None:
            return None
        return self.transcribe_file(path)

    def _on_capture_error(self, path: Path, exc: Exception) -> None:
        """Runs on the event loop after the recorder reports a failure."""
        self._print(_describe(exc))
        if path != self._state.recording_file:
            logger.debug("Ignoring capture error for stale recording %s", path)
            return

        self._state.recording_file = None
        self._capture_failed = True
        self._cancel_heartbeat()
        self._update(is_recording=False, status=SessionStatus.idle)
        self._spawn(self._recover_from_capture_error(), self._background)

    async def _recover_from_capture_error(self) -> None:
        async with self._toggle_lock:
            if self._capture_failed:
                await self._reset_failed_recorder()

    async def _reset_failed_recorder(self) -> None:
        self._capture_failed = False
        await asyncio.to_thread(self._stop_recorder_quietly)

    def _stop_recorder_quietly(self) -> None:
        try:
            self._recorder.stop()
        except Exception:
            logger.warning("Recorder did not stop cleanly", exc_info=True)

    def _new_recording_file(self) -> Path:
        self._recordings_path.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(prefix="recording", suffix=".wav", dir=self._recordings_path)
        os.close(fd)
        return Path(name)

    def _discard_recording_file(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not remove unused recording file %s", path, exc_info=True)

    # ------------------------------------------------------------------
    # Heartbeat
    # ------------------------------------------------------------------

    def _start_heartbeat(self) -> None:
        self._cancel_heartbeat()
        stop = asyncio.Event()
        self._heartbeat_stop = stop
        self._heartbeat = asyncio.create_task(self._heartbeat_loop(time.monotonic(), stop))

    def _cancel_heartbeat(self) -> None:
        if self._heartbeat_stop is not None:
            self._heartbeat_stop.set()
            self._heartbeat_stop = None
        if self._heartbeat is not None:
            self._heartbeat.cancel()
            self._heartbeat = None

    async def _heartbeat_loop(self, started_at: float, stop: asyncio.Event) -> None:
        """Publish elapsed recording time once per interval until stopped."""
        while not stop.is_set():
            elapsed_ms = int((time.monotonic() - started_at) * 1000)
            self._update(recording_elapsed_ms=elapsed_ms)
            try:
                await asyncio.wait_for(stop.wait(), timeout=self._interval)
            except TimeoutError:
                pass  # Next tick

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def _stop_playback(self) -> None:
        try:
            self._player.stop()
        except Exception:
            logger.warning("Failed to stop playback (non-fatal)", exc_info=True)

    async def _start_playback(self, path: Path) -> None:
        try:
            await asyncio.to_thread(self._player.start, path)
        except Exception:
            logger.warning("Playback of %s failed (non-fatal)", path, exc_info=True)

    # ------------------------------------------------------------------
    # Transcription
    # ------------------------------------------------------------------

    def transcribe_file(self, path: str | Path) -> asyncio.Task:
        """Transcribe ``path`` in the background and return the pipeline task."""
        return self._spawn(self.transcribe(Path(path)), self._pipelines)

    async def transcribe_sample(self) -> asyncio.Task | None:
        """Transcribe the first provisioned sample, if there is one."""
        sample = await asyncio.to_thread(self._first_sample)
        if sample is None:
            self._print(f"No samples available in {self._samples_path}")
            return None
        return self.transcribe_file(sample)

    def _first_sample(self) -> Path | None:
        if not self._samples_path.is_dir():
            return None
        samples = sorted(p for p in self._samples_path.iterdir() if p.is_file())
        return samples[0] if samples else None

    async def transcribe(self, path: Path) -> None:
        """Run the full pipeline for one audio file.

        Silently returns while recording, while another transcription is
        running, or when the engine is not ready. ``can_transcribe`` stays
        False for the whole body and is set back to True as the last state
        change, whatever the outcome.
        """
        if not self._state.can_transcribe:
            logger.debug("Transcription of %s skipped: not ready", path)
            return
        if self._state.is_recording:
            logger.debug("Transcription of %s skipped: recording in progress", path)
            return

        self._update(can_transcribe=False, status=SessionStatus.transcribing)
        try:
            samples = await self._read_audio_samples(path)
            text = await self._run_engine(samples)
            clean_text = normalize_transcript(text)

            self._print(clean_text)
            self._update(status=SessionStatus.succeeded)

            if clean_text:
                self._spawn(self._convert(clean_text), self._conversions)
        except Exception as exc:
            logger.warning("Transcription of %s failed", path, exc_info=True)
            self._print(_describe(exc))
            self._update(status=SessionStatus.failed)
        finally:
            self._update(can_transcribe=True)

    async def _read_audio_samples(self, path: Path) -> np.ndarray:
        """Play the file as feedback while decoding it for the engine."""
        self._stop_playback()
        playback = asyncio.create_task(self._start_playback(path))
        try:
            return await asyncio.to_thread(self._decode, path, self._settings.sample_rate)
        finally:
            await playback

    async def _run_engine(self, samples: np.ndarray) -> str:
        engine = self._engine
        if engine is None:
            raise EngineNotLoadedError()

        started = time.perf_counter()
        text = await asyncio.to_thread(engine.transcribe, samples)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "Transcribed %.1f s of audio in %.0f ms",
            len(samples) / self._settings.sample_rate,
            elapsed_ms,
        )
        return text

    # ------------------------------------------------------------------
    # Remote conversion
    # ------------------------------------------------------------------

    async def _convert(self, text: str) -> None:
        try:
            result = await self._converter.convert(text)
        except Exception as exc:
            logger.exception("Unexpected conversion error")
            self._print(f"Conversion failed: {_describe(exc)}")
            return

        if isinstance(result, ConversionSuccess):
            self._navigate(result.body)
        else:
            self._print(result.reason)

    def _navigate(self, payload: str) -> None:
        self._state.last_converted_record = payload
        self._emit(SessionEventType.navigate, payload=payload)

    def acknowledge_navigation(self) -> None:
        """Clear the pending conversion payload once the observer consumed it."""
        if self._state.last_converted_record is not None:
            self._update(last_converted_record=None)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def _spawn(self, coro, bucket: set[asyncio.Task]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        bucket.add(task)
        task.add_done_callback(bucket.discard)
        return task

    async def close(self) -> None:
        """Stop everything and release the engine exactly once.

        Waits for setup and in-flight transcriptions, cancels pending
        conversions, and leaves no timers behind. Safe to call twice.
        """
        if self._closed:
            return
        self._closed = True

        if self._setup_task is not None:
            await asyncio.gather(self._setup_task, return_exceptions=True)

        async with self._toggle_lock:
            self._cancel_heartbeat()
            if self._state.is_recording:
                self._state.recording_file = None
                await asyncio.to_thread(self._stop_recorder_quietly)
                self._update(is_recording=False, status=SessionStatus.idle)

        await asyncio.gather(*self._pipelines, *self._background, return_exceptions=True)
        # Pipelines finishing above may have queued conversions
        for task in list(self._conversions):
            task.cancel()
        await asyncio.gather(*self._conversions, return_exceptions=True)

        self._stop_playback()

        engine, self._engine = self._engine, None
        if engine is not None:
            await asyncio.to_thread(engine.release)

        await self._converter.aclose()
        self._listeners.clear()
        logger.info("Session orchestrator closed")


# ---------------------------------------------------------------------------
# Module-level singleton management
# ---------------------------------------------------------------------------

_active_orchestrator: SessionOrchestrator | None = None


def create_orchestrator(settings: Settings | None = None) -> SessionOrchestrator:
    """Build an orchestrator wired to the sounddevice, faster-whisper and httpx backends."""
    settings = settings or get_settings()
    return SessionOrchestrator(
        recorder=create_recorder(sample_rate=settings.sample_rate),
        player=create_player(),
        converter=ConverterClient(
            url=settings.converter_url,
            timeout=settings.converter_timeout,
        ),
        engine_factory=partial(
            create_engine,
            settings.engine_provider,
            device=settings.whisper_device,
            compute_type=settings.whisper_compute_type,
            language=settings.whisper_language or None,
        ),
        settings=settings,
    )


async def start_orchestrator(orchestrator: SessionOrchestrator | None = None) -> SessionOrchestrator:
    """Register and start the process-wide orchestrator.

    Returns the already active orchestrator if there is one.
    """
    global _active_orchestrator
    if _active_orchestrator is not None:
        return _active_orchestrator

    orchestrator = orchestrator or create_orchestrator()
    orchestrator.start()
    _active_orchestrator = orchestrator
    logger.info("Started session orchestrator")
    return orchestrator


def get_active_orchestrator() -> SessionOrchestrator | None:
    """Return the currently active orchestrator, or None."""
    return _active_orchestrator


async def shutdown_orchestrator() -> None:
    """Close and unregister the active orchestrator (called during app shutdown)."""
    global _active_orchestrator
    if _active_orchestrator is None:
        return
    orchestrator = _active_orchestrator
    _active_orchestrator = None
    await orchestrator.close()
    logger.info("Stopped session orchestrator")
