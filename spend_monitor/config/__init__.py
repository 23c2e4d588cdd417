"""
Configuration Module
====================

Application settings and configuration management using Pydantic.

Secrets and runtime knobs come from the environment (or a ``.env`` file);
the customer list and thresholds come from the monitor config file, see
``spend_monitor.monitor.domain.value_objects.MonitorConfig``.
"""

from decimal import Decimal
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="spend-monitor", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Monitor config file ==========
    config_path: Path = Field(
        default=Path("./config/config.json"),
        description="Path to the customer/threshold config file (JSON or YAML)"
    )

    # ========== Credentials ==========
    tableau_pat_secret: Optional[str] = Field(
        default=None,
        description="Tableau personal access token secret"
    )
    slack_bot_token: Optional[str] = Field(
        default=None,
        description="Slack bot token used for chat.postMessage"
    )
    telegram_bot_token: Optional[str] = Field(
        default=None,
        description="Telegram bot token"
    )

    # ========== Endpoints ==========
    slack_api_url: str = Field(
        default="https://slack.com/api/chat.postMessage",
        description="Slack message endpoint"
    )
    telegram_api_base: str = Field(
        default="https://api.telegram.org",
        description="Telegram Bot API base URL"
    )

    # ========== HTTP retry policy ==========
    http_connect_timeout: float = Field(
        default=10.0,
        description="Connection-establishment timeout in seconds",
        gt=0
    )
    http_max_time: float = Field(
        default=30.0,
        description="Total per-request time limit in seconds",
        gt=0
    )
    http_max_attempts: int = Field(
        default=3,
        description="Attempts per request including the first",
        ge=1,
        le=10
    )
    http_initial_backoff: float = Field(
        default=2.0,
        description="Seconds to wait before the first retry; doubles each retry",
        ge=0
    )

    # ========== Scheduling ==========
    schedule_cron: str = Field(
        default="0 9 * * 1-5",
        description="Crontab expression used by --schedule"
    )
    report_timezone: str = Field(
        default="UTC",
        description="Timezone used for the report date and the scheduler"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class Classification(str, Enum):
    """Month-over-month pace classification."""
    GROWING = "growing"
    DECLINING = "declining"
    NORMAL = "normal"


class PaceLabel(str):
    """Display sub-labels within a classification."""
    SURGING = "surging"
    ON_PACE = "on pace"
    CLIFF = "cliff"
    SIGNIFICANT_DECLINE = "significant decline"
    TRACKING_NORMALLY = "tracking normally"
    DRY_RUN = "[DRY RUN]"


class RevenueSource(str, Enum):
    """Where a revenue figure came from."""
    PRIMARY = "primary"
    FALLBACK = "fallback"


class WatchReason(str, Enum):
    """Why a customer landed on the watch list."""
    ESCALATIONS = "escalations"
    STALE_TICKET = "stale_ticket"
    STEEP_DROP = "steep_drop"


class TicketStatus(str):
    """Ticket statuses that take a ticket off the stale list."""
    RESOLVED = "resolved"
    CLOSED = "closed"


class DriverDirection(str, Enum):
    """Which section of the driver summary a line belongs to."""
    HIGH_GROWTH = "high_growth"
    WATCH = "watch"


# Stand-in change for "no baseline but revenue appeared"; not a division result.
UNBOUNDED_GROWTH_PCT = Decimal("999")

SURGING_PCT = Decimal("50")
CLIFF_PCT = Decimal("-50")
BIG_MOVER_PCT = Decimal("50")

ESCALATION_WINDOW_DAYS = 7
MAX_ESCALATION_EXAMPLES = 3

CLOSED_TICKET_STATUSES = [TicketStatus.RESOLVED, TicketStatus.CLOSED]
