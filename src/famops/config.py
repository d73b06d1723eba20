"""
Famops - Configuration and settings.

Settings are read from the environment (and .env) once and cached.
Authorization overrides (QA bypass, force-pro) are turned into an explicit
AccessConfig by the caller; core code never reads them from globals.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    famops_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # OpenAI (optional - without a key every generation uses the fallback)
    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1-mini"

    # Store
    store_backend: Literal["supabase", "memory"] = "supabase"
    supabase_url: str | None = None
    supabase_anon_key: str | None = None

    # Calendar days are computed in this zone
    app_timezone: str = "America/New_York"

    # Generation
    generation_timeout_seconds: float = 12.0
    retry_max_attempts: int = 3
    retry_base_delay: float = 0.5

    # Routine toggle edge function (empty = always run locally)
    routine_toggle_url: str = ""

    # Non-production authorization overrides
    features_force_pro: bool = False
    qa_auth_bypass: bool = False
    demo_user_id: str = "qa-demo-user"

    # FAMOPS_LOG_PROMPTS=1 - write prompts/responses to prompt_logs/
    famops_log_prompts: bool = False

    @property
    def is_development(self) -> bool:
        return self.famops_env == "development"

    @property
    def is_production(self) -> bool:
        return self.famops_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: Settings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()
