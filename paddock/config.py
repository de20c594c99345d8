"""Application configuration using Pydantic settings."""

from datetime import datetime
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PADDOCK_",
        extra="ignore",
    )

    # Database
    db_path: Path = Path("./data/paddock.db")
    db_timeout: float = 30.0

    # App
    debug: bool = False
    log_level: str = "INFO"
    timezone: str = "Asia/Tokyo"

    # Wagering rules
    unit_stake: int = 100  # stakes must be a multiple of this
    initial_balance: int = 1000  # credited once at registration
    box_cap_two_way: int = 10
    box_cap_three_way: int = 7
    betting_cutoff_minutes: int = 2  # no purchases this close to post time

    @property
    def database_url(self) -> str:
        """SQLite database URL for SQLAlchemy."""
        return f"sqlite+aiosqlite:///{self.db_path}"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Export for convenience
settings = get_settings()


def tz_now() -> datetime:
    """Current time in the configured racing timezone."""
    return datetime.now(settings.tz)


def tz_now_naive() -> datetime:
    """Current local time as a naive datetime (for SQLAlchemy defaults).

    SQLite doesn't handle timezone-aware datetimes well, so local time is
    stored naive. Event post times are compared against this value.
    """
    return tz_now().replace(tzinfo=None)
