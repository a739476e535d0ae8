"""
TubeLens Core Settings: video story-structure analysis service.

  - Transcript acquisition across five providers (cheapest/fastest first)
  - Eight LLM analysis sections per job, OpenAI primary + Groq fallback
  - PostgreSQL persistence, Celery/Redis for the two pipeline triggers

Provider credentials are read without the TUBELENS_ prefix so the usual
OPENAI_API_KEY / GROQ_API_KEY environment variables work unchanged.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.errors import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8",
        env_prefix="TUBELENS_", case_sensitive=False,
        extra="ignore", populate_by_name=True,
    )

    # ── App ──────────────────────────────────────────────────────────────
    app_name: str = "TubeLens"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False
    api_prefix: str = "/api/v1"

    # ── PostgreSQL ───────────────────────────────────────────────────────
    db_host: str = "postgres"
    db_port: int = 5432
    db_user: str = "tubelens"
    db_password: str = "tubelens_secret"
    db_name: str = "tubelens"
    # Full override, e.g. "sqlite+aiosqlite:///./tubelens.db" for local runs
    db_url: Optional[str] = None
    db_echo: bool = False

    @property
    def database_url(self) -> str:
        if self.db_url:
            return self.db_url
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # ── Redis / Celery ───────────────────────────────────────────────────
    celery_broker_url: str = "redis://redis:6379/1"
    celery_result_backend: str = "redis://redis:6379/2"

    # ── Provider credentials ─────────────────────────────────────────────
    openai_api_key: Optional[str] = Field(
        None, validation_alias=AliasChoices("OPENAI_API_KEY", "TUBELENS_OPENAI_API_KEY"),
    )
    groq_api_key: Optional[str] = Field(
        None, validation_alias=AliasChoices("GROQ_API_KEY", "TUBELENS_GROQ_API_KEY"),
    )
    supadata_api_key: Optional[str] = Field(
        None, validation_alias=AliasChoices("SUPADATA_API_KEY", "TUBELENS_SUPADATA_API_KEY"),
    )
    assemblyai_api_key: Optional[str] = Field(
        None, validation_alias=AliasChoices("ASSEMBLYAI_API_KEY", "TUBELENS_ASSEMBLYAI_API_KEY"),
    )
    youtube_api_key: Optional[str] = Field(
        None, validation_alias=AliasChoices("YOUTUBE_API_KEY", "TUBELENS_YOUTUBE_API_KEY"),
    )

    # ── Section generation ───────────────────────────────────────────────
    openai_model: str = "gpt-4o"
    # Tried in order: most capable first, fastest last
    groq_models: List[str] = [
        "llama-3.3-70b-versatile",
        "llama-3.1-8b-instant",
    ]
    llm_temperature: float = 0.7
    llm_timeout_seconds: float = 120.0
    llm_validation_retries: int = 1

    # ── Transcript acquisition ───────────────────────────────────────────
    supadata_base_url: str = "https://api.supadata.ai/v1"
    assemblyai_base_url: str = "https://api.assemblyai.com/v2"
    assemblyai_poll_interval_seconds: float = 3.0
    groq_whisper_model: str = "whisper-large-v3"
    groq_whisper_language: Optional[str] = "en"
    openai_whisper_model: str = "whisper-1"
    transcript_timeout_seconds: float = 600.0
    transcript_languages: List[str] = ["en"]
    # Whisper endpoints reject uploads above 25 MB
    max_audio_bytes: int = 25 * 1024 * 1024
    download_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    download_accept_language: str = "en-US,en;q=0.9"

    # ── Video metadata ───────────────────────────────────────────────────
    youtube_api_base_url: str = "https://www.googleapis.com/youtube/v3"
    metadata_timeout_seconds: float = 30.0

    # ── Helpers ──────────────────────────────────────────────────────────

    @property
    def has_openai(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def has_groq(self) -> bool:
        return bool(self.groq_api_key)

    def require_llm_provider(self) -> None:
        """Refuse to start without at least one LLM credential."""
        if not (self.has_openai or self.has_groq):
            raise ConfigurationError(
                "No LLM provider configured: set OPENAI_API_KEY or GROQ_API_KEY"
            )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
