"""Keyword intent detection for chat messages."""

import re
from decimal import Decimal, InvalidOperation
from typing import Any

from src.models import IntentType

SCHEDULE_KEYWORDS = ("schedule", "meeting", "event", "remind", "calendar")
CURRENCY_KEYWORDS = ("convert", "currency")
EXPENSE_KEYWORDS = ("expense", "spend", "transaction", "budget", "finance", "money")

_AMOUNT_WITH_CODE = re.compile(r"\d+\s*(usd|eur|gbp|jpy|cad|aud)", re.IGNORECASE)

# "100 USD to EUR", "250.50 gbp in jpy"
_CONVERSION_PHRASE = re.compile(
    r"(?P<amount>\d+(?:[.,]\d+)?)\s*(?P<from>[a-z]{3})\s+(?:to|in|into)\s+(?P<to>[a-z]{3})\b",
    re.IGNORECASE,
)


def detect_intent(text: str) -> IntentType:
    """Scheduling wins over currency, currency over expenses."""
    lowered = text.lower()

    if any(word in lowered for word in SCHEDULE_KEYWORDS):
        return IntentType.SCHEDULE_MEETING

    if any(word in lowered for word in CURRENCY_KEYWORDS) or _AMOUNT_WITH_CODE.search(text):
        return IntentType.CONVERT_CURRENCY

    if any(word in lowered for word in EXPENSE_KEYWORDS):
        return IntentType.ANALYZE_EXPENSE

    return IntentType.GENERAL


def extract_conversion_entities(text: str) -> dict[str, Any]:
    """
    Pull amount and currency codes out of a conversion request.

    Returns an empty dict when no "<amount> <CUR> to <CUR>" phrase is found.
    """
    match = _CONVERSION_PHRASE.search(text)
    if not match:
        return {}

    try:
        amount = Decimal(match.group("amount").replace(",", "."))
    except InvalidOperation:
        return {}

    return {
        "amount": amount,
        "from_currency": match.group("from").upper(),
        "to_currency": match.group("to").upper(),
    }
