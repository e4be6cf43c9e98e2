"""
AI Providers

A provider is a named strategy that turns user text into a reply.
They are tried in a fixed priority order by the fallback orchestrator:

1. Gemini            - remote, needs GEMINI_API_KEY
2. OpenAI-compatible - remote, needs OPENAI_API_KEY
3. Local             - keyword rules, always available

CRITICAL BOUNDARIES:
- A provider either returns non-empty text or raises
- A provider never retries on its own (the orchestrator does)
- Availability is a cheap precondition check, no network
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ValidationError

from src.agents.guard import (
    FINANCIAL_SYSTEM_PROMPT,
    REDIRECT_MESSAGE,
    is_financial_query,
    strip_financial_context,
)
from src.agents.llm import build_gemini_model
from src.config import GeminiSettings, OpenAISettings


class ProviderError(Exception):
    """A provider call failed."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class ProviderNotConfiguredError(ProviderError):
    """Provider was called without its credential."""
    pass


class EmptyResponseError(ProviderError):
    """Provider answered with nothing usable."""
    pass


class AIProvider(ABC):
    """Interface every responder implements."""

    name: str

    @abstractmethod
    def is_available(self) -> bool:
        """Check the precondition (e.g., credential present)."""
        pass

    @abstractmethod
    async def generate_response(self, text: str) -> str:
        """
        Generate a reply to the user's text.

        Raises:
            ProviderError: On any failure, including an empty reply
        """
        pass


class GeminiProvider(AIProvider):
    """Google Gemini via google-generativeai."""

    name = "Gemini"

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Any = None,
    ):
        self._settings = settings or GeminiSettings()
        self._model = model

    def is_available(self) -> bool:
        return self._model is not None or self._settings.is_configured

    def _get_model(self):
        if self._model is None:
            self._model = build_gemini_model(
                self._settings,
                temperature=self._settings.temperature,
                max_output_tokens=self._settings.max_tokens,
            )
        if self._model is None:
            raise ProviderNotConfiguredError(self.name, "GEMINI_API_KEY not configured")
        return self._model

    async def generate_response(self, text: str) -> str:
        model = self._get_model()
        prompt = f"{FINANCIAL_SYSTEM_PROMPT}\n\nUser: {text}"

        try:
            response = await model.generate_content_async(prompt)
            reply = response.text
        except Exception as e:
            raise ProviderError(self.name, f"Gemini API error: {e}") from e

        if not reply or not reply.strip():
            raise EmptyResponseError(self.name, "No response from Gemini")
        return reply.strip()


class _ChatMessage(BaseModel):
    content: Optional[str] = None


class _ChatChoice(BaseModel):
    message: _ChatMessage


class _ChatCompletion(BaseModel):
    """The part of a chat completion response we rely on."""
    choices: list[_ChatChoice]


class OpenAIProvider(AIProvider):
    """Any OpenAI-compatible /chat/completions endpoint, called with httpx."""

    name = "OpenAI"

    def __init__(
        self,
        settings: Optional[OpenAISettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or OpenAISettings()
        self._transport = transport

    def is_available(self) -> bool:
        return self._settings.is_configured

    async def generate_response(self, text: str) -> str:
        if not self._settings.is_configured:
            raise ProviderNotConfiguredError(self.name, "OPENAI_API_KEY not configured")

        payload = {
            "model": self._settings.model_name,
            "messages": [
                {"role": "system", "content": FINANCIAL_SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
        }
        headers = {"Authorization": f"Bearer {self._settings.api_key}"}

        try:
            async with httpx.AsyncClient(
                base_url=self._settings.base_url,
                timeout=self._settings.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    "/chat/completions", json=payload, headers=headers
                )
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"OpenAI request failed: {e}") from e

        if response.is_error:
            raise ProviderError(
                self.name,
                f"OpenAI API error: {response.status_code} - {response.text[:200]}",
            )

        try:
            completion = _ChatCompletion.model_validate_json(response.content)
        except ValidationError as e:
            raise ProviderError(self.name, "Unexpected response shape") from e

        reply = completion.choices[0].message.content if completion.choices else None
        if not reply or not reply.strip():
            raise EmptyResponseError(self.name, "No response from OpenAI")
        return reply.strip()


class LocalFinanceFallback(AIProvider):
    """
    Static keyword rules. Always available, never fails.

    This is what keeps the chat useful offline.
    """

    name = "Local"

    def is_available(self) -> bool:
        return True

    async def generate_response(self, text: str) -> str:
        text = strip_financial_context(text)
        lowered = text.lower()

        if not is_financial_query(text):
            return REDIRECT_MESSAGE

        if "budget" in lowered:
            return (
                "Creating a budget is essential for financial health! Track your income "
                "and expenses in the Finances tab. I recommend the 50/30/20 rule: 50% for "
                "needs, 30% for wants, and 20% for savings and debt repayment."
            )

        if "save" in lowered or "saving" in lowered:
            return (
                "Great question about savings! Start by setting aside at least 20% of your "
                "income. Build an emergency fund covering 3-6 months of expenses, then focus "
                "on long-term goals. Use the Finances tab to track your progress."
            )

        if "expense" in lowered or "spend" in lowered:
            return (
                "Track your expenses in the Finances tab to see where your money goes. "
                "Categorizing transactions helps identify areas where you can cut back. "
                "Small daily expenses often add up more than you think!"
            )

        if "invest" in lowered:
            return (
                "Investing is important for long-term wealth building. Consider starting "
                "with low-cost index funds, diversify your portfolio, and think long-term. "
                "Always research before investing!"
            )

        if "currency" in lowered or "convert" in lowered:
            return (
                "You can convert currencies in the Finances tab! I'll help you get "
                "real-time exchange rates for accurate conversions between different currencies."
            )

        return (
            "I can help you with budgeting, expense tracking, currency conversion, savings "
            "advice, and investment monitoring. What specific financial question do you have?"
        )


def default_providers(
    gemini: Optional[GeminiSettings] = None,
    openai: Optional[OpenAISettings] = None,
) -> list[AIProvider]:
    """The standard priority order: Gemini, then OpenAI, then local rules."""
    return [
        GeminiProvider(gemini),
        OpenAIProvider(openai),
        LocalFinanceFallback(),
    ]
