"""
Transcription module - Speech-to-text engine abstraction layer.

Factory function for creating engine instances based on provider configuration.
"""

from pathlib import Path

from .base import BaseTranscriptionEngine
from .handle import EngineHandle

__all__ = ["BaseTranscriptionEngine", "EngineHandle", "create_engine"]


def create_engine(provider: str, model_path: str | Path, **kwargs) -> BaseTranscriptionEngine:
    """
    Factory function to create an engine instance based on provider.

    Args:
        provider: Engine provider name ("whisper" or "local")
        model_path: Model directory to load
        **kwargs: Provider-specific configuration

    Returns:
        BaseTranscriptionEngine implementation instance

    Raises:
        ValueError: If provider is unknown
    """
    if provider == "whisper" or provider == "local":
        from .whisper import WhisperEngine
        return WhisperEngine(model_path, **kwargs)
    else:
        raise ValueError(f"Unknown engine provider: {provider}")
