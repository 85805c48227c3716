import os
from functools import lru_cache
from pathlib import Path

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from worktime.models import CompletionTargets

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    env: str = Field(default="dev", description="Deployment environment")
    app_name: str = "Worktime Reporting API"
    data_path: Path = Field(
        default=Path("data/worktime.json"),
        description="JSON snapshot of time entries, projects, profiles and departments",
    )
    font_path: str | None = Field(default=None, description="Local TrueType font with CJK glyphs")
    font_url: str | None = Field(default=None, description="URL of a CJK font fetched on first PDF export")
    daily_target_hours: float = Field(default=7.0, gt=0)
    weekly_target_hours: float = Field(default=35.0, gt=0)
    cors_origins: list[AnyHttpUrl] = []
    log_level: str = "INFO"
    sentry_dsn: str | None = Field(default=None, description="Sentry DSN for error monitoring")
    otlp_endpoint: str | None = Field(default=None, description="OTLP endpoint for traces/metrics")

    model_config = SettingsConfigDict(env_prefix="WORKTIME_", extra="ignore")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, value: str | list[AnyHttpUrl]) -> list[AnyHttpUrl]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin]
        return value

    @property
    def targets(self) -> CompletionTargets:
        return CompletionTargets(daily_hours=self.daily_target_hours, weekly_hours=self.weekly_target_hours)


@lru_cache
def get_settings() -> Settings:
    return Settings(_env_file=get_settings_env_file())


def get_settings_env_file() -> str | None:
    """Resolve environment-specific env file if it exists."""
    env = os.getenv("WORKTIME_ENV", "dev")
    env_file = BASE_DIR / f".env.{env}"
    default_file = BASE_DIR / ".env"
    if env_file.exists():
        return str(env_file)
    if default_file.exists():
        return str(default_file)
    return None


settings = get_settings()
