"""
Audio module - Capture, playback and decoding.

Factory functions import the sounddevice adapters lazily because
sounddevice needs the PortAudio shared library at import time.
"""

from .base import BasePlayer, BaseRecorder
from .decoder import decode_wave_file

__all__ = [
    "BasePlayer",
    "BaseRecorder",
    "create_player",
    "create_recorder",
    "decode_wave_file",
]


def create_recorder(sample_rate: int = 16000, **kwargs) -> BaseRecorder:
    """Create the default microphone recorder."""
    from .recorder import SoundDeviceRecorder

    return SoundDeviceRecorder(sample_rate=sample_rate, **kwargs)


def create_player(**kwargs) -> BasePlayer:
    """Create the default playback backend."""
    from .player import SoundDevicePlayer

    return SoundDevicePlayer(**kwargs)
