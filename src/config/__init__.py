"""Configuration package."""

from src.config.settings import (
    AppSettings,
    ExchangeRateSettings,
    GeminiSettings,
    GoogleCalendarSettings,
    MarketDataSettings,
    OpenAISettings,
    RetrySettings,
    Settings,
    StorageSettings,
    VoiceSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "ExchangeRateSettings",
    "GeminiSettings",
    "GoogleCalendarSettings",
    "MarketDataSettings",
    "OpenAISettings",
    "RetrySettings",
    "Settings",
    "StorageSettings",
    "VoiceSettings",
    "get_settings",
    "validate_all_settings",
]
