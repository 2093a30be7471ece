"""Configuration management using pydantic-settings."""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LogLevel = Literal["critical", "error", "warning", "info", "debug"]


class Settings(BaseSettings):
    """Settings for the orchestrated service, loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service
    service_name: str = "orchestrated-service"
    service_version: str = "1.0.0"
    log_level: LogLevel = "info"

    # Listener
    host: str = "0.0.0.0"
    port: int = Field(default=50001, ge=0, le=65535)  # 0 binds an ephemeral port
    idle_timeout: int = Field(default=120, gt=0)  # keep-alive, seconds
    drain_timeout: float = Field(default=5.0, ge=0)  # graceful shutdown bound, seconds

    # Resource lookup
    message: str = "Service running!"
    failure_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    content_language: str = "en"
    problem_type: str = "https://tools.ietf.org/html/rfc7231#section-6.6.1"

    @field_validator("log_level", mode="before")
    @classmethod
    def _lowercase_log_level(cls, value):
        return value.lower() if isinstance(value, str) else value

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

