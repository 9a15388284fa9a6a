from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./course_evaluation.db"

    # JWT Authentication
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Application
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # AI summary generator (OpenAI-compatible chat completions API)
    AI_ENABLED: bool = False
    AI_API_KEY: Optional[str] = None
    AI_API_URL: str = "https://api.deepseek.com/v1"
    AI_MODEL: str = "deepseek-chat"
    AI_TIMEOUT_SECONDS: float = 60.0

    # AI summary regeneration policy
    AI_SUMMARY_MIN_REVIEWS: int = 10
    AI_SUMMARY_CHANGE_THRESHOLD: int = 10
    AI_SUMMARY_SWEEP_DELAY_SECONDS: float = 1.0
    AI_SUMMARY_MAX_PROMPT_REVIEWS: int = 50
    AI_SUMMARY_SWEEP_ON_STARTUP: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
