from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the API service."""

    OPENAI_API_KEY: str
    OPENAI_ASSISTANT_ID: str
    OPENAI_BASE_URL: str = "https://api.openai.com/v1/"
    OPENAI_TIMEOUT: float = 60.0

    RUN_POLL_INTERVAL: float = 1.0
    RUN_MAX_WAIT: float = 30.0
    RUN_FAIL_ON_REQUIRES_ACTION: bool = False

    APP_ENV: str = "development"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def get_settings() -> Settings:
    """Load configuration values from the environment."""
    return Settings()  # pyright: ignore[reportCallIssue]
