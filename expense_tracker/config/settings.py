"""
Configuration Management for Expense Tracker Pro

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The license key allow-list and the per-key device limit are NOT
configuration - both are embedded at build time in expense_tracker.constants
and cannot be changed from the environment.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from expense_tracker.constants import DEFAULT_CURRENCY_CODE, CURRENCIES


class StorageSettings(BaseSettings):
    """Local persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: str = Field(
        default="~/.expense_tracker_pro",
        description="Directory holding the local key-value store"
    )
    audit_log_filename: str = Field(
        default="audit_log.jsonl",
        description="Audit log file, kept next to (not inside) the key-value store"
    )

    @property
    def data_path(self) -> Path:
        """Expanded data directory."""
        return Path(self.data_dir).expanduser()

    @property
    def store_path(self) -> Path:
        """Directory for the key-value store files."""
        return self.data_path / "store"

    @property
    def audit_log_path(self) -> Path:
        """Path of the JSON-lines audit log."""
        return self.data_path / self.audit_log_filename


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Optional: AI features are disabled without a key
    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key"
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

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())


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
    default_currency: str = Field(
        default=DEFAULT_CURRENCY_CODE,
        description="Currency code used until the user picks one"
    )

    @field_validator('default_currency')
    @classmethod
    def validate_default_currency(cls, v: str) -> str:
        """Only currencies the app knows how to display."""
        code = v.strip().upper()
        if code not in CURRENCIES:
            raise ValueError(
                f"Unsupported currency: {v}. Allowed: {sorted(CURRENCIES)}"
            )
        return code


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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

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

    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry for each section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "gemini", "app"):
        try:
            section = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)
            continue

        if name == "gemini" and not section.is_configured:
            results[name] = False
            results[f"{name}_error"] = "GEMINI_API_KEY is not set"

    return results
