from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    APP_ENV: str = "development"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = ["*"]

    # Upload
    MAX_UPLOAD_SIZE_MB: int = 10
    ALLOWED_AUDIO_TYPES: List[str] = [
        "audio/wav", "audio/x-wav",
        "audio/mpeg", "audio/mp3",
        "audio/x-m4a", "audio/mp4",
        "audio/aac",
    ]

    # Analysis
    WAVEFORM_BINS: int = 800
    ANALYSIS_WORKERS: int = 2


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
