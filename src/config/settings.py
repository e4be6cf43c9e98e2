"""
Configuration Management for Pocket Assistant

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external services exist and which
of them are optional. Every remote provider can be left unconfigured;
the services degrade to their local fallbacks instead of failing.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key (provider is skipped when missing)"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=500,
        ge=100,
        le=8192,
        description="Maximum tokens in a chat response"
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Chat temperature"
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class OpenAISettings(BaseSettings):
    """OpenAI-compatible chat completion endpoint."""

    model_config = SettingsConfigDict(
        env_prefix="OPENAI_",
        env_file=".env",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="API key (provider is skipped when missing)"
    )
    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the chat completions API"
    )
    model_name: str = Field(
        default="gpt-3.5-turbo",
        description="Model to request"
    )
    max_tokens: int = Field(default=500, ge=16, le=8192)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    timeout_seconds: float = Field(default=30.0, gt=0)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class RetrySettings(BaseSettings):
    """
    Retry policy for remote responders.

    Delay before retry n (zero-based) is
    min(base * factor**n, cap) plus up to `jitter` of that value.
    """

    model_config = SettingsConfigDict(
        env_prefix="RETRY_",
        env_file=".env",
        extra="ignore"
    )

    max_attempts: int = Field(default=3, ge=1, le=10)
    base_delay_seconds: float = Field(default=0.5, gt=0)
    factor: float = Field(default=2.0, ge=1.0)
    max_delay_seconds: float = Field(default=5.0, gt=0)
    jitter: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Maximum random jitter as a fraction of the delay"
    )


class ExchangeRateSettings(BaseSettings):
    """Exchange-rate lookup API."""

    model_config = SettingsConfigDict(
        env_prefix="EXCHANGE_RATE_",
        env_file=".env",
        extra="ignore"
    )

    base_url: str = Field(
        default="https://api.exchangerate-api.com/v4",
        description="Base URL; rates are fetched from {base_url}/latest/{BASE}"
    )
    timeout_seconds: float = Field(default=10.0, gt=0)


class MarketDataSettings(BaseSettings):
    """Stock and crypto quote endpoints."""

    model_config = SettingsConfigDict(
        env_prefix="MARKET_DATA_",
        env_file=".env",
        extra="ignore"
    )

    yahoo_base_url: str = Field(default="https://query1.finance.yahoo.com")
    coingecko_base_url: str = Field(default="https://api.coingecko.com/api/v3")
    timeout_seconds: float = Field(default=10.0, gt=0)


class GoogleCalendarSettings(BaseSettings):
    """Google Calendar sync configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_CALENDAR_",
        env_file=".env",
        extra="ignore"
    )

    credentials_path: Optional[str] = Field(
        default=None,
        description="Path to Google service account credentials JSON"
    )
    calendar_id: str = Field(
        default="primary",
        description="Calendar to mirror events into"
    )
    time_zone: str = Field(
        default="UTC",
        description="Time zone used for event start/end times"
    )
    event_duration_minutes: int = Field(default=60, ge=1)

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: Optional[str]) -> Optional[str]:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if v and not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Calendar sync will fail until it exists."
            )
        return v

    @property
    def is_configured(self) -> bool:
        return bool(self.credentials_path)


class StorageSettings(BaseSettings):
    """Local key-value store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        extra="ignore"
    )

    path: str = Field(
        default=".pocket_assistant/store.json",
        description="JSON file holding messages, events, transactions and profile"
    )
    audit_log_path: Optional[str] = Field(
        default=".pocket_assistant/audit.jsonl",
        description="Append-only audit log; unset to log locally only"
    )


class VoiceSettings(BaseSettings):
    """Text-to-speech configuration."""

    model_config = SettingsConfigDict(
        env_prefix="VOICE_",
        env_file=".env",
        extra="ignore"
    )

    voice: str = Field(default="en-US-JennyNeural")
    rate: str = Field(
        default="-10%",
        description="Speaking rate offset understood by edge-tts"
    )
    pitch: str = Field(default="+0Hz")


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

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug logging"
    )
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum statement upload size in MB"
    )

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


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

    # Sub-settings are loaded lazily so one broken section
    # doesn't stop the others from loading.

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def openai(self) -> OpenAISettings:
        return OpenAISettings()

    @property
    def retry(self) -> RetrySettings:
        return RetrySettings()

    @property
    def exchange_rate(self) -> ExchangeRateSettings:
        return ExchangeRateSettings()

    @property
    def market_data(self) -> MarketDataSettings:
        return MarketDataSettings()

    @property
    def google_calendar(self) -> GoogleCalendarSettings:
        return GoogleCalendarSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def voice(self) -> VoiceSettings:
        return VoiceSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


SECTIONS = (
    "gemini",
    "openai",
    "retry",
    "exchange_rate",
    "market_data",
    "google_calendar",
    "storage",
    "voice",
    "app",
)


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings sections load.

    Returns a dict of {section: is_valid}, plus `{section}_error` entries
    for sections that failed. Useful for startup checks.
    """
    results: dict[str, object] = {}
    settings = get_settings()

    for section in SECTIONS:
        try:
            getattr(settings, section)
            results[section] = True
        except Exception as e:
            results[section] = False
            results[f"{section}_error"] = str(e)

    return results
