"""
Application Settings
Load from environment variables
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment"""

    # ======================
    # Database
    # ======================
    DATABASE_URL: str = "sqlite+aiosqlite:///./template_engine.db"
    AUTO_CREATE_TABLES: bool = True

    # ======================
    # Application
    # ======================
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # ======================
    # Engine
    # ======================
    ENGINE_CONFIG_DIR: str = "config"
    # Overrides resolver.repository_timeout_seconds from engine.yml when set
    REPOSITORY_TIMEOUT_SECONDS: float | None = None

    # ======================
    # Timezone
    # ======================
    # Overrides engine.timezone from engine.yml when set
    TIMEZONE: str | None = None

    # ======================
    # Pydantic v2 config
    # ======================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="forbid",
    )


settings = Settings()
