"""AI Agents package."""

from src.agents.assistant import AssistantAgent
from src.agents.fallback import (
    APOLOGY_MESSAGE,
    ERROR_PROVIDER,
    ProviderFallbackOrchestrator,
)
from src.agents.guard import (
    REDIRECT_MESSAGE,
    enforce_financial_context,
    is_financial_query,
    strip_financial_context,
    validate_financial_response,
)
from src.agents.intent import detect_intent, extract_conversion_entities
from src.agents.llm import MalformedOutputError, build_gemini_model, parse_structured_output
from src.agents.providers import (
    AIProvider,
    EmptyResponseError,
    GeminiProvider,
    LocalFinanceFallback,
    OpenAIProvider,
    ProviderError,
    ProviderNotConfiguredError,
    default_providers,
)
from src.agents.retry import backoff_delay, build_retrying, wait_proportional_jitter

__all__ = [
    "AssistantAgent",
    "APOLOGY_MESSAGE",
    "ERROR_PROVIDER",
    "ProviderFallbackOrchestrator",
    "REDIRECT_MESSAGE",
    "enforce_financial_context",
    "is_financial_query",
    "strip_financial_context",
    "validate_financial_response",
    "detect_intent",
    "extract_conversion_entities",
    "MalformedOutputError",
    "build_gemini_model",
    "parse_structured_output",
    "AIProvider",
    "EmptyResponseError",
    "GeminiProvider",
    "LocalFinanceFallback",
    "OpenAIProvider",
    "ProviderError",
    "ProviderNotConfiguredError",
    "default_providers",
    "backoff_delay",
    "build_retrying",
    "wait_proportional_jitter",
]
