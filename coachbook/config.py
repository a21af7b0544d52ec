"""
Centralized configuration with environment variable overrides.

Slot granularity, the nominal working window, lock budgets and
notification switches are configurable here. Nothing scheduling-specific
is hardcoded in the lifecycle or availability logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from coachbook.logging_context import install_request_id_filter

load_dotenv()

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s [%(request_id)s]: %(message)s"


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    raw = os.getenv(env_var, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class SchedulingConfig:
    """Slot grid settings used by availability queries and snapping."""

    slot_granularity_minutes: int = _safe_int("SLOT_GRANULARITY_MINUTES", "30")
    day_start_hour: int = _safe_int("DAY_START_HOUR", "6")
    day_end_hour: int = _safe_int("DAY_END_HOUR", "22")
    timezone: str = os.getenv("SCHEDULE_TIMEZONE", "UTC")


@dataclass(frozen=True)
class ConcurrencyConfig:
    """Time budgets for the validate-then-write critical sections."""

    lock_timeout_sec: float = _safe_float("LOCK_TIMEOUT_SECONDS", "5.0")
    store_timeout_sec: float = _safe_float("STORE_TIMEOUT_SECONDS", "10.0")


@dataclass(frozen=True)
class NotificationConfig:
    """Best-effort notification dispatch settings."""

    enabled: bool = _safe_bool("NOTIFICATIONS_ENABLED", "true")
    dispatch_timeout_sec: float = _safe_float("NOTIFICATION_TIMEOUT_SECONDS", "2.0")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    concurrency: ConcurrencyConfig = field(default_factory=ConcurrencyConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    service_name: str = os.getenv("SERVICE_NAME", "coachbook-scheduler")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    scheduling = config.scheduling
    granularity = scheduling.slot_granularity_minutes
    if granularity < 1 or MINUTES_PER_DAY % granularity != 0:
        raise ValueError(
            "SLOT_GRANULARITY_MINUTES must be a positive divisor of 1440, "
            f"got {granularity}"
        )
    if not 0 <= scheduling.day_start_hour <= 23:
        raise ValueError(
            f"DAY_START_HOUR must be between 0 and 23, got {scheduling.day_start_hour}"
        )
    if not 1 <= scheduling.day_end_hour <= 24:
        raise ValueError(
            f"DAY_END_HOUR must be between 1 and 24, got {scheduling.day_end_hour}"
        )
    if scheduling.day_start_hour >= scheduling.day_end_hour:
        raise ValueError(
            "DAY_START_HOUR must be before DAY_END_HOUR, "
            f"got {scheduling.day_start_hour} >= {scheduling.day_end_hour}"
        )
    window_minutes = (scheduling.day_end_hour - scheduling.day_start_hour) * 60
    if window_minutes % granularity != 0:
        raise ValueError(
            f"SLOT_GRANULARITY_MINUTES ({granularity}) must evenly divide the "
            f"working window of {window_minutes} minutes"
        )

    if config.concurrency.lock_timeout_sec <= 0:
        raise ValueError(
            f"LOCK_TIMEOUT_SECONDS must be > 0, got {config.concurrency.lock_timeout_sec}"
        )
    if config.concurrency.store_timeout_sec <= 0:
        raise ValueError(
            f"STORE_TIMEOUT_SECONDS must be > 0, got {config.concurrency.store_timeout_sec}"
        )
    if config.notifications.dispatch_timeout_sec <= 0:
        raise ValueError(
            "NOTIFICATION_TIMEOUT_SECONDS must be > 0, "
            f"got {config.notifications.dispatch_timeout_sec}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    install_request_id_filter()
    logger.info("Configuration loaded for '%s'", config.service_name)
    return config


# Singleton instance
settings = load_config()
