"""Settings for the signaling relay."""

from enum import Enum
from typing import Any, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment types."""

    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):  # type: ignore[misc]
    """
    Main settings class.

    Values come from case-sensitive environment variables. Logging defaults
    depend on ``ENV`` and are applied only when the matching field was not
    set, either through the environment or as a keyword argument.
    """

    model_config = SettingsConfigDict(case_sensitive=True)

    # Environment configuration
    ENV: Environment = Environment.DEV

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Relay settings
    SIGNAL_PATH: str = "/signal"
    SEND_TIMEOUT_SECONDS: float = 5.0

    # Logging settings
    LOG_FILE_PATH: str = "logs/relay_errors.log"
    LOG_EXCLUDED_PATHS: list[str] = ["/metrics", "/health"]
    LOG_LEVEL: str = "INFO"
    LOG_CONSOLE_FORMAT: Literal["human", "json"] = "human"
    LOG_PAYLOADS: bool = False

    def __init__(self, **kwargs: Any) -> None:
        """Initialize settings with environment-specific defaults."""
        super().__init__(**kwargs)
        self._apply_environment_defaults()

    def _apply_environment_defaults(self) -> None:
        """Apply environment-specific logging defaults."""
        if self.ENV == Environment.PRODUCTION:
            if "LOG_CONSOLE_FORMAT" not in self.model_fields_set:
                self.LOG_CONSOLE_FORMAT = "json"
            if "LOG_LEVEL" not in self.model_fields_set:
                self.LOG_LEVEL = "WARNING"

        elif self.ENV == Environment.STAGING:
            if "LOG_CONSOLE_FORMAT" not in self.model_fields_set:
                self.LOG_CONSOLE_FORMAT = "json"
            if "LOG_LEVEL" not in self.model_fields_set:
                self.LOG_LEVEL = "INFO"

        else:  # Environment.DEV
            if "LOG_CONSOLE_FORMAT" not in self.model_fields_set:
                self.LOG_CONSOLE_FORMAT = "human"
            if "LOG_LEVEL" not in self.model_fields_set:
                self.LOG_LEVEL = "DEBUG"

    @property
    def send_timeout(self) -> float | None:
        """Per-recipient send timeout, ``None`` when disabled."""
        if self.SEND_TIMEOUT_SECONDS <= 0:
            return None
        return self.SEND_TIMEOUT_SECONDS

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENV == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENV == Environment.DEV


app_settings = Settings()
