"""Decode stored audio files into float32 sample arrays for the engine."""

from pathlib import Path

import numpy as np
import soundfile as sf

from whisperdesk.core.exceptions import DecodeError


def decode_wave_file(path: str | Path, sample_rate: int = 16000) -> np.ndarray:
    """Read an audio file and return mono float32 samples at ``sample_rate``.

    Multi-channel audio is averaged down to mono; other sample rates are
    resampled by linear interpolation.

    Args:
        path: WAV (or any libsndfile-readable) file.
        sample_rate: Target rate in Hz (default: 16 kHz).

    Returns:
        Float32 numpy array normalized to [-1.0, 1.0].

    Raises:
        DecodeError: If the file is missing or unreadable.
    """
    try:
        data, file_rate = sf.read(str(path), dtype="float32", always_2d=False)
    except (OSError, RuntimeError, sf.LibsndfileError) as exc:
        raise DecodeError(detail=f"Failed to decode {Path(path).name}: {exc}") from exc

    # Convert to mono if stereo
    if data.ndim > 1:
        data = data.mean(axis=1)

    if file_rate != sample_rate and len(data) > 0:
        duration = len(data) / file_rate
        num_samples = int(duration * sample_rate)
        indices = np.linspace(0, len(data) - 1, num_samples)
        data = np.interp(indices, np.arange(len(data)), data)

    return np.asarray(data, dtype=np.float32)
