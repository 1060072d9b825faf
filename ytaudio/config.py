"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    # Service
    app_name: str = "ytaudio"
    port: int = 8000
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # yt-dlp invocation
    ytdlp_binary: str = "yt-dlp"
    audio_format: str = "mp3"
    audio_quality: str = "192K"
    output_template: str = "%(title)s.%(ext)s"
    ytdlp_retries: int = 2
    ytdlp_retry_sleep: int = 3

    # Retry ladder pacing (seconds)
    attempt_delay_seconds: float = 2.0
    cooldown_seconds: float = 10.0

    # Working directories
    workdir_base: Optional[str] = None  # defaults to the system temp dir
    workdir_prefix: str = "ytmp3_"
    stale_workdir_ttl_hours: int = 2

    # CLI polling
    poll_interval_seconds: float = 2.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
