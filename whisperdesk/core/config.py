"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """WhisperDesk settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        assets_dir: Read-only bundle holding ``models/`` and ``samples/``.
        data_dir: Writable storage that bundled samples are copied into.
        converter_url: Endpoint that receives normalized transcripts.
        heartbeat_interval: Seconds between recording timer ticks.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Assets & Storage ---
    # Paths are relative to the working directory; absolute paths also supported
    assets_dir: str = "assets"  # Bundled resources: models/ and samples/
    data_dir: str = "data"  # Writable copies of bundled samples
    recordings_dir: str = "data/recordings"  # New recordings land here

    # --- Audio ---
    sample_rate: int = 16000  # Whisper expects 16 kHz mono
    heartbeat_interval: float = 1.0  # Recording timer tick, seconds

    # --- Transcription engine ---
    engine_provider: str = "whisper"
    whisper_device: str = "cpu"
    whisper_compute_type: str = "int8"
    whisper_language: str = ""  # Empty = auto-detect; ISO 639-1 code e.g. "en"

    # --- Remote conversion ---
    converter_url: str = "http://localhost:5000/convert"
    converter_timeout: float = 200.0  # Applied to connect, read, write and pool

    # --- Application ---
    app_host: str = "127.0.0.1"  # Bind address for the FastAPI server
    app_port: int = 8000
    log_level: str = "INFO"  # Python logging level


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
