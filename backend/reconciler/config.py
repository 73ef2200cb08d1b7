"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - EVENT_CHECK_INTERVAL_SECONDS and EVENT_COMPLETED_AFTER_HOURS have no defaults:
      a missing value is a startup failure, never a silent zero
    - Interval must be finite and > 0; grace hours finite (zero/negative allowed)
    - Settings are read once at startup, never hot-reloaded
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - load_settings() maps pydantic ValidationError to ConfigurationError so the
      host sees one fatal error type
"""

from functools import lru_cache

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from reconciler.core.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://events:events@db:5432/events"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 5
    database_max_overflow: int = 5

    # Event completion sweep
    event_check_interval_seconds: float = Field(gt=0, allow_inf_nan=False)
    event_completed_after_hours: float = Field(allow_inf_nan=False)
    event_sweep_enabled: bool = True
    event_sweep_max_concurrency: int = Field(1, ge=1)
    event_playlist_page_size: int = Field(100, ge=1)

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def load_settings() -> Settings:
    """get_settings() for startup paths — invalid config raises ConfigurationError."""
    try:
        return get_settings()
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(loc) for loc in err["loc"]) for err in e.errors()
        )
        raise ConfigurationError(
            f"{e.error_count()} invalid value(s)", fields or "settings",
        ) from e
