"""
Currency conversion against a public exchange-rate API.

One GET per conversion, keyed by the base currency. No retry and no
caching: a failed lookup is reported to the caller as-is.
"""

from datetime import datetime
from typing import Optional

import httpx
import structlog

from src.config import ExchangeRateSettings
from src.models import ConversionResult

logger = structlog.get_logger(__name__)

POPULAR_CURRENCIES = [
    {"code": "USD", "name": "US Dollar", "symbol": "$"},
    {"code": "EUR", "name": "Euro", "symbol": "€"},
    {"code": "GBP", "name": "British Pound", "symbol": "£"},
    {"code": "JPY", "name": "Japanese Yen", "symbol": "¥"},
    {"code": "AUD", "name": "Australian Dollar", "symbol": "A$"},
    {"code": "CAD", "name": "Canadian Dollar", "symbol": "C$"},
    {"code": "CHF", "name": "Swiss Franc", "symbol": "Fr"},
    {"code": "CNY", "name": "Chinese Yuan", "symbol": "¥"},
    {"code": "INR", "name": "Indian Rupee", "symbol": "₹"},
]


class CurrencyConversionError(Exception):
    """Exchange rate could not be fetched or was missing."""
    pass


class CurrencyService:
    """Converts amounts using the latest published rates."""

    def __init__(
        self,
        settings: Optional[ExchangeRateSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or ExchangeRateSettings()
        self._transport = transport

    async def _fetch_rates(self, base: str) -> dict:
        url = f"{self._settings.base_url.rstrip('/')}/latest/{base}"
        async with httpx.AsyncClient(
            timeout=self._settings.timeout_seconds,
            transport=self._transport,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()

    async def convert_currency(
        self,
        amount: float,
        from_currency: str,
        to_currency: str,
    ) -> ConversionResult:
        """
        Convert `amount` from one currency to another.

        Raises:
            CurrencyConversionError: On HTTP failure or when the target
                currency has no published rate
        """
        base = from_currency.upper()
        target = to_currency.upper()

        try:
            data = await self._fetch_rates(base)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("currency_api_error", base=base, error=str(e))
            raise CurrencyConversionError("Currency API error") from e

        rates = data.get("rates") if isinstance(data, dict) else None
        rate = rates.get(target) if isinstance(rates, dict) else None
        if not rate:
            logger.error("exchange_rate_missing", base=base, target=target)
            raise CurrencyConversionError(f"Exchange rate not found for {target}")

        try:
            rate = float(rate)
        except (TypeError, ValueError) as e:
            logger.error("exchange_rate_invalid", base=base, target=target, rate=repr(rate))
            raise CurrencyConversionError(f"Invalid exchange rate for {target}") from e

        return ConversionResult(
            amount=amount,
            from_currency=base,
            to_currency=target,
            rate=rate,
            converted_amount=amount * rate,
            timestamp=datetime.now(),
        )
