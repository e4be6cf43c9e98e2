"""
Assistant Agent

CRITICAL BOUNDARIES:
- CAN: Answer finance questions through the provider chain
- CAN: Detect what the user wants (schedule, convert, analyze)
- CANNOT: Act on the intent itself (the chat flow does that)
- CANNOT: Raise to the caller; every message gets an answer
"""

from typing import Optional
from uuid import UUID

import structlog

from src.agents.fallback import APOLOGY_MESSAGE, ERROR_PROVIDER, ProviderFallbackOrchestrator
from src.agents.guard import enforce_financial_context, validate_financial_response
from src.agents.intent import detect_intent, extract_conversion_entities
from src.models import AIIntent, IntentType

logger = structlog.get_logger(__name__)


class AssistantAgent:
    """Turns one user message into an AIIntent."""

    def __init__(self, orchestrator: ProviderFallbackOrchestrator):
        self._orchestrator = orchestrator

    async def process_user_input(
        self,
        text: str,
        correlation_id: Optional[UUID] = None,
    ) -> AIIntent:
        intent_type = detect_intent(text)
        entities = (
            extract_conversion_entities(text)
            if intent_type == IntentType.CONVERT_CURRENCY
            else {}
        )

        try:
            result = await self._orchestrator.generate(
                enforce_financial_context(text), correlation_id
            )
            response, provider = result.response, result.provider
        except Exception as e:
            logger.error("assistant_failed", error=str(e), correlation_id=str(correlation_id))
            response, provider = APOLOGY_MESSAGE, ERROR_PROVIDER

        if provider != ERROR_PROVIDER:
            response = validate_financial_response(response, text)

        logger.info("assistant_replied", provider=provider, intent=intent_type.value)

        return AIIntent(
            type=intent_type,
            entities=entities,
            response=response or APOLOGY_MESSAGE,
            provider=provider,
        )
