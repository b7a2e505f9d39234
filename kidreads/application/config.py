"""Application configuration using Pydantic Settings."""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.services.reading_flow import ReadingConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "kidreads"
    app_version: str = "0.1.0"
    debug: bool = False

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"

    # Storage: "local" (in-memory) or "dynamodb"
    storage_backend: str = "local"
    aws_region: str = "us-east-1"
    stories_table_name: str = "KidReadsStories"
    preferences_table_name: str = "KidReadsPreferences"
    max_saved_stories: int = 10

    # Speech backend: "mock" or "cloud"
    speech_backend: str = "mock"
    functions_base_url: Optional[str] = None
    functions_api_key: Optional[str] = None
    functions_timeout: float = 30.0

    # Audio
    tts_sample_rate: int = 24000
    capture_sample_rate: int = 16000

    # Reading flow
    default_voice: str = "Leda"
    speaking_rate: float = 1.0
    phoneme_playback_rate: float = 1.0
    acceptance_threshold: float = 65.0
    correct_feedback_delay: float = 1.5
    incorrect_feedback_delay: float = 2.0
    transcription_timeout: float = 15.0
    capture_trailing_delay: float = 0.75

    def reading_config(self) -> ReadingConfig:
        """Reading flow constants for the domain layer."""
        return ReadingConfig(
            acceptance_threshold=self.acceptance_threshold,
            correct_feedback_delay=self.correct_feedback_delay,
            incorrect_feedback_delay=self.incorrect_feedback_delay,
            transcription_timeout=self.transcription_timeout,
            capture_trailing_delay=self.capture_trailing_delay,
            phoneme_playback_rate=self.phoneme_playback_rate,
        )


# Create a singleton instance
settings = Settings()
