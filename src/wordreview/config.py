"""Configuration settings for the review scheduler."""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)

# Review settings
REVIEW_INTERVALS = [1, 2, 4, 7, 15, 30]  # days until next review, by mastery level
MAX_MASTERY_LEVEL = 5
FALLBACK_INTERVAL_DAYS = 30


def get_review_intervals() -> list[int]:
    """Get review intervals from environment variable."""
    raw = os.getenv("REVIEW_INTERVALS", "")
    if not raw:
        return list(REVIEW_INTERVALS)
    return [int(days) for days in raw.split(",") if days.strip()]


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///wordreview.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class ReviewSettings:
    """Spaced-repetition settings."""
    intervals: list[int] = field(default_factory=get_review_intervals)
    max_mastery: int = MAX_MASTERY_LEVEL
    fallback_interval_days: int = int(os.getenv("FALLBACK_INTERVAL_DAYS", str(FALLBACK_INTERVAL_DAYS)))
    initial_delay_hours: int = int(os.getenv("INITIAL_REVIEW_DELAY_HOURS", "24"))
    completion_delay_seconds: float = float(os.getenv("COMPLETION_DELAY_SECONDS", "2.0"))
    reminder_preview_size: int = int(os.getenv("REMINDER_PREVIEW_SIZE", "5"))


@dataclass
class MonitoringSettings:
    """Prometheus metrics settings."""
    enabled: bool = os.getenv("METRICS_ENABLED", "false").lower() == "true"
    port: int = int(os.getenv("METRICS_PORT", "9090"))


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_review_settings() -> ReviewSettings:
    """Get review settings."""
    return ReviewSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    review: ReviewSettings = field(default_factory=get_review_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        intervals = self.review.intervals

        if len(intervals) != self.review.max_mastery + 1:
            raise ValueError("REVIEW_INTERVALS must have one entry per mastery level (0..5)")

        if any(days <= 0 for days in intervals):
            raise ValueError("REVIEW_INTERVALS must be positive")

        if any(later < earlier for earlier, later in zip(intervals, intervals[1:])):
            raise ValueError("REVIEW_INTERVALS must be non-decreasing")

        if self.review.fallback_interval_days <= 0:
            raise ValueError("FALLBACK_INTERVAL_DAYS must be positive")

        if self.review.initial_delay_hours < 0:
            raise ValueError("INITIAL_REVIEW_DELAY_HOURS cannot be negative")

        if self.review.completion_delay_seconds < 0:
            raise ValueError("COMPLETION_DELAY_SECONDS cannot be negative")

        if self.review.reminder_preview_size < 1:
            raise ValueError("REMINDER_PREVIEW_SIZE must be positive")


# Create global settings instance
settings = Settings()
settings.validate()
