"""
Configuration settings for the SiteInspect application.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Attributes:
        base_url: Base URL of the report API, used by the client package
        weather_api_key: OpenWeatherMap API key for temperature prefill
        weather_base_url: Base URL of the weather service
        weather_timeout: Weather lookup timeout in seconds
        uploads_dir: Directory for storing uploaded documents, served publicly
        log_dir: Directory for server log files; must lie outside uploads_dir
        redis_url: Redis connection URL for the report store (optional)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="SITEINSPECT_",
    )

    # Client settings
    base_url: str = "http://localhost:8002"

    # Weather lookup
    weather_api_key: Optional[str] = None
    weather_base_url: str = "https://api.openweathermap.org/data/2.5"
    weather_timeout: float = 10.0

    # Storage settings
    uploads_dir: Path = Path("./uploads")
    log_dir: Path = Path("./logs")
    redis_url: Optional[str] = None

    # API settings
    api_prefix: str = "/api"
    uploads_url_path: str = "/uploads"
    port: int = 8002

    # CORS settings
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # Environment
    environment: Literal["development", "staging", "production"] = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def log_file(self) -> Path:
        return self.log_dir / "siteinspect.log"

    @model_validator(mode="after")
    def check_log_dir_not_served(self) -> "Settings":
        """Reject a log directory inside the statically served upload directory."""
        if self.log_dir.resolve().is_relative_to(self.uploads_dir.resolve()):
            raise ValueError(
                f"log_dir ({self.log_dir}) must not be inside uploads_dir ({self.uploads_dir})"
            )
        return self

    def model_post_init(self, __context: object) -> None:
        """Create uploads directory if it doesn't exist."""
        self.uploads_dir.mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()
