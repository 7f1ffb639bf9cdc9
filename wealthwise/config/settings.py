"""
Configuration Management for WealthWise

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every external service is optional: without a Gemini key the planner runs
on the offline rule engine, and without Google Sheets credentials the
application keeps its data in memory.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: Optional[str] = Field(
        default=None,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: Optional[str] = Field(
        default=None,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    store_sheet_name: str = Field(
        default="WealthStore",
        description="Name of the key-value sheet holding ledger data"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: Optional[str]) -> Optional[str]:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if v and not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v

    @property
    def is_configured(self) -> bool:
        return bool(self.credentials_path and self.spreadsheet_id)


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key (absent = offline mode)"
    )
    model_name: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=2048,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )
    analysis_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Give up on the advisor and use the rule engine after this long"
    )
    system_instruction: str = Field(
        default="You are a helpful financial advisor.",
        description="System prompt for the chat advisor"
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class EngineSettings(BaseSettings):
    """
    Tunables of the calculation engine.

    The defaults are the documented behaviour; tests
    rely on them.
    """

    model_config = SettingsConfigDict(
        env_prefix="ENGINE_",
        extra="ignore"
    )

    backfill_monthly_growth: float = Field(
        default=0.008,
        ge=0.0,
        description="Assumed monthly growth used to backfill months without a snapshot"
    )
    backfill_noise_pct: float = Field(
        default=0.0,
        ge=0.0,
        le=10.0,
        description="Max +/- jitter (percent) applied to backfilled values; 0 disables it"
    )
    retirement_horizon_months: int = Field(
        default=240,
        ge=1,
        description="Fixed projection horizon for retirement goals"
    )
    safe_withdrawal_rate: float = Field(
        default=0.04,
        gt=0.0,
        le=1.0,
        description="Annual withdrawal rate of the 4% rule"
    )
    currency_symbol: str = Field(
        default="¥",
        description="Symbol used in generated texts"
    )
    projection_horizons: str = Field(
        default="5,10",
        description="Comma-separated year horizons for the net-worth projection"
    )

    @property
    def projection_horizons_list(self) -> list[int]:
        """Get projection horizons as a list of years."""
        return [int(y.strip()) for y in self.projection_horizons.split(",") if y.strip()]


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Ledger sanity thresholds
    max_reasonable_rate_pct: float = Field(
        default=100.0,
        gt=0,
        description="Annual rates beyond +/- this value are flagged for review"
    )


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
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def engine(self) -> EngineSettings:
        return EngineSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}. Optional services that
    are simply not configured report False without an error entry.
    """
    results = {}

    settings = get_settings()

    for name in ("google_sheets", "gemini", "engine", "app"):
        try:
            section = getattr(settings, name)
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)
            continue
        results[name] = getattr(section, "is_configured", True)

    return results
