"""
Provider Fallback Orchestrator

DESIGN DECISION: The chat must always answer. Responders are tried in a
fixed priority order; each gets its own retry budget. Nothing a
responder does can raise past this class.

Flow for one message:
1. Skip a responder whose precondition fails (no credential)
2. Call it, retrying transient failures with jittered backoff
3. First success wins
4. If every responder fails, answer with a fixed apology tagged "Error"
"""

import asyncio
import random
from typing import Awaitable, Callable, Optional
from uuid import UUID

import structlog

from src.agents.providers import AIProvider, EmptyResponseError
from src.agents.retry import build_retrying
from src.audit import AuditLogger
from src.config import RetrySettings
from src.models import ProviderResponse

logger = structlog.get_logger(__name__)

APOLOGY_MESSAGE = "I'm having trouble connecting right now. Please try again in a moment."
ERROR_PROVIDER = "Error"


class ProviderFallbackOrchestrator:
    """
    Sequential multi-provider call with per-provider retry.

    Usage:
        orchestrator = ProviderFallbackOrchestrator(default_providers())
        result = await orchestrator.generate("How do I build a budget?")
        print(result.provider, result.response)
    """

    def __init__(
        self,
        providers: list[AIProvider],
        retry_settings: Optional[RetrySettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.providers = providers
        self._retry_settings = retry_settings or RetrySettings()
        self._audit = audit_logger or AuditLogger()
        self._sleep = sleep
        self._rng = rng

    async def _call_with_retry(self, provider: AIProvider, text: str) -> str:
        retrying = build_retrying(
            self._retry_settings,
            label=provider.name,
            sleep=self._sleep,
            rng=self._rng,
        )
        async for attempt in retrying:
            with attempt:
                reply = await provider.generate_response(text)
                if not reply or not reply.strip():
                    raise EmptyResponseError(provider.name, "Empty response")
                return reply
        # AsyncRetrying either returns from the block above or re-raises.
        raise EmptyResponseError(provider.name, "No attempt was made")

    async def generate(
        self,
        text: str,
        correlation_id: Optional[UUID] = None,
    ) -> ProviderResponse:
        """
        Get a reply from the first responder that succeeds.

        Never raises. Returns the apology with provider "Error" when
        every responder is skipped or fails.
        """
        attempted: list[str] = []

        for provider in self.providers:
            if not provider.is_available():
                await self._audit.log_provider_skipped(provider.name, correlation_id)
                continue

            attempted.append(provider.name)
            try:
                reply = await self._call_with_retry(provider, text)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                await self._audit.log_provider_failed(
                    provider.name, str(e), correlation_id
                )
                continue

            await self._audit.log_provider_succeeded(provider.name, correlation_id)
            return ProviderResponse(response=reply, provider=provider.name)

        await self._audit.log_all_providers_failed(attempted, correlation_id)
        return ProviderResponse(response=APOLOGY_MESSAGE, provider=ERROR_PROVIDER)
