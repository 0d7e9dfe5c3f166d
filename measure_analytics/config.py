"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic

Only the service layer is configurable; the calculators take no settings
beyond their arguments.
"""

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

# Load environment variables from .env file
load_dotenv()

Environment = Literal["development", "staging", "production"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class AnalyticsConfig(BaseModel):
    """Limits and thresholds for trend reports and measure comparisons."""

    lookback_days: int = Field(
        default=365, gt=0, description="Default report window when no start date is given"
    )
    max_points: int = Field(
        default=1000, gt=0, description="Maximum readings fetched per measure"
    )
    min_compare_measures: int = Field(
        default=2, ge=2, description="Fewest measures a comparison accepts"
    )
    max_compare_measures: int = Field(
        default=5, ge=2, description="Most measures a comparison accepts"
    )
    min_correlation_points: int = Field(
        default=3, ge=2, description="Shared timestamps needed before a pair is correlated"
    )
    strong_correlation: float = Field(
        default=0.7, gt=0.0, lt=1.0, description="|r| above this is reported as strong"
    )
    moderate_correlation: float = Field(
        default=0.4, gt=0.0, lt=1.0, description="|r| above this is reported as moderate"
    )

    @model_validator(mode="after")
    def check_bounds(self) -> "AnalyticsConfig":
        if self.min_compare_measures > self.max_compare_measures:
            raise ValueError("min_compare_measures cannot exceed max_compare_measures")
        if self.moderate_correlation >= self.strong_correlation:
            raise ValueError("moderate_correlation must be below strong_correlation")
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default="INFO", description="Logging level")
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Environment = Field(default="development", description="Environment")
    debug: bool = Field(default=False, description="Enable debug mode")

    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def _env_to_literal(val: str) -> Environment:
    v = val.strip().lower()
    if v in {"dev", "development"}:
        return "development"
    if v in {"stage", "staging"}:
        return "staging"
    return "production"


def _level_to_literal(val: str) -> LogLevel:
    v = val.strip().upper()
    return cast(LogLevel, v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO")


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""
    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    analytics_config = AnalyticsConfig(
        lookback_days=int(os.getenv("TREND_LOOKBACK_DAYS", "365")),
        max_points=int(os.getenv("TREND_MAX_POINTS", "1000")),
        max_compare_measures=int(os.getenv("COMPARE_MAX_MEASURES", "5")),
        min_correlation_points=int(os.getenv("CORRELATION_MIN_POINTS", "3")),
    )

    log_format = os.getenv("LOG_FORMAT", "").strip().lower()
    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if log_format == "console" or (not log_format and debug) else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        analytics=analytics_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()
