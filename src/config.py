"""Application configuration loaded from environment variables and .env file."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables first,
    then from a .env file in the project root as fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    DATABASE_URL: str = "sqlite:///./survey.db"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Question defaults
    DEFAULT_MAX_BUTTONS_PER_ROW: int = 3
    DEFAULT_FOLLOW_UP_SEPARATOR: str = "\n"

    # Modules imported at startup so @answer_handler / @answer_callback register
    HANDLER_MODULES: list[str] = []


settings = Settings()
