"""
Configuration Management for the Budget Engine

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All tunables live here (thresholds, allocation policy,
storage location, rate cache lifetime). Engine functions read defaults
from get_settings() but accept explicit overrides so they stay testable.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


AllocationPolicy = Literal["normalize", "as_is", "reject"]
IncomeBasis = Literal["converted", "raw"]


class BudgetSettings(BaseSettings):
    """Budget calculation thresholds and policies."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    warning_threshold: float = Field(
        default=80.0,
        ge=0.0,
        description="Utilization percentage at which a category is flagged"
    )
    over_budget_threshold: float = Field(
        default=100.0,
        ge=0.0,
        description="Utilization percentage above which a category is over budget"
    )
    allocation_policy: AllocationPolicy = Field(
        default="normalize",
        description="How to treat allocation percentages that do not sum to 100"
    )
    income_basis: IncomeBasis = Field(
        default="converted",
        description="Sum basis-month income converted to the default currency, or raw"
    )
    top_categories: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of categories shown in dashboard stats"
    )
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="How many days in the future a record date can be"
    )


class StorageSettings(BaseSettings):
    """Snapshot persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: str = Field(
        default=".budget_data",
        description="Directory holding the JSON storage files"
    )
    rates_ttl_seconds: int = Field(
        default=3600,
        ge=0,
        description="How long cached currency rates stay valid"
    )
    write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for a storage write before giving up"
    )

    @property
    def data_path(self) -> Path:
        """Get data directory as a Path."""
        return Path(self.data_dir)


class RateSettings(BaseSettings):
    """Currency rate source configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_RATES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_currency: str = Field(
        default="EUR",
        min_length=3,
        max_length=3,
        description="Currency every rate is quoted against"
    )
    jitter: float = Field(
        default=0.05,
        ge=0.0,
        le=0.5,
        description="Relative random fluctuation applied by the mock rate source"
    )

    @field_validator('base_currency')
    @classmethod
    def upper_code(cls, v: str) -> str:
        return v.upper()


class LogSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    json_output: bool = Field(
        default=True,
        description="Render log lines as JSON (otherwise console format)"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def budget(self) -> BudgetSettings:
        return BudgetSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def rates(self) -> RateSettings:
        return RateSettings()

    @property
    def log(self) -> LogSettings:
        return LogSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool | str]:
    """
    Validate all settings groups load.

    Returns a dict of {group_name: is_valid} plus {group_name_error: message}
    for groups that failed.
    """
    results: dict[str, bool | str] = {}
    settings = get_settings()

    for name in ("budget", "storage", "rates", "log"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
