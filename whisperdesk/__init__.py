"""WhisperDesk - single-session audio transcription workflow."""

__version__ = "0.1.0"
