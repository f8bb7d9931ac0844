"""Tests for decode_wave_file (real soundfile, temporary WAVs)."""

import struct
import wave

import numpy as np
import pytest

from whisperdesk.core.exceptions import DecodeError
from whisperdesk.services.audio.decoder import decode_wave_file


def _write_stereo_wav(path, frames: int, sample_rate: int) -> None:
    # Left channel at +0.5, right channel at -0.25 full scale
    frame = struct.pack("<hh", 16384, -8192)
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(2)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(frame * frames)


def test_mono_16k_round_trip(sample_audio_path):
    samples = decode_wave_file(sample_audio_path)

    assert samples.dtype == np.float32
    assert samples.ndim == 1
    assert len(samples) == 16000
    assert float(np.max(np.abs(samples))) == pytest.approx(16000 / 32768, abs=1e-3)


def test_stereo_is_averaged_to_mono(tmp_path):
    path = tmp_path / "stereo.wav"
    _write_stereo_wav(path, frames=1600, sample_rate=16000)

    samples = decode_wave_file(path)

    assert samples.ndim == 1
    assert len(samples) == 1600
    assert float(samples[0]) == pytest.approx((0.5 - 0.25) / 2, abs=1e-4)


def test_resamples_to_target_rate(tmp_path):
    path = tmp_path / "8k.wav"
    _write_stereo_wav(path, frames=8000, sample_rate=8000)

    samples = decode_wave_file(path, sample_rate=16000)

    assert len(samples) == 16000
    assert samples.dtype == np.float32


def test_missing_file_raises_decode_error(tmp_path):
    with pytest.raises(DecodeError, match="missing.wav"):
        decode_wave_file(tmp_path / "missing.wav")


def test_garbage_file_raises_decode_error(tmp_path):
    path = tmp_path / "garbage.wav"
    path.write_bytes(b"not a wave file at all")

    with pytest.raises(DecodeError):
        decode_wave_file(path)
