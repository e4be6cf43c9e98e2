"""
Stock and crypto market data.

Stock quotes come from Yahoo's chart endpoint. When that fails we
return a generated quote flagged `is_mock` so screens always have a
number to show. Crypto quotes come from CoinGecko and fail loudly.
"""

import asyncio
import random
from datetime import datetime
from typing import Optional

import httpx
import structlog

from src.config import MarketDataSettings
from src.models import CryptoQuote, Holding, Portfolio, PortfolioHolding, StockQuote

logger = structlog.get_logger(__name__)

TOP_COINS = [
    "bitcoin", "ethereum", "binancecoin", "cardano", "solana",
    "polkadot", "dogecoin", "avalanche", "chainlink", "polygon",
]


class MarketDataError(Exception):
    """Market data could not be fetched or was incomplete."""
    pass


def _last_or(values: Optional[list], default):
    if values and values[-1] is not None:
        return values[-1]
    return default


def calculate_portfolio(holdings: list[Holding], quotes: list[StockQuote]) -> Portfolio:
    """
    Value each holding at its quoted price (or its cost when unquoted).

    A zero cost basis reports 0% instead of dividing by zero.
    """
    quote_map = {quote.symbol: quote for quote in quotes}
    portfolio_holdings = []

    for holding in holdings:
        symbol = holding.symbol.upper()
        quote = quote_map.get(symbol)
        current_price = quote.price if quote and quote.price else holding.avg_cost
        total_value = holding.shares * current_price
        cost_basis = holding.shares * holding.avg_cost
        gain_loss = total_value - cost_basis

        portfolio_holdings.append(
            PortfolioHolding(
                symbol=symbol,
                name=quote.name if quote else holding.symbol,
                shares=holding.shares,
                avg_cost=holding.avg_cost,
                current_price=current_price,
                total_value=total_value,
                gain_loss=gain_loss,
                gain_loss_percent=(gain_loss / cost_basis * 100) if cost_basis else 0.0,
            )
        )

    total_value = sum(h.total_value for h in portfolio_holdings)
    total_cost = sum(h.shares * h.avg_cost for h in portfolio_holdings)
    total_gain_loss = total_value - total_cost

    return Portfolio(
        holdings=portfolio_holdings,
        total_value=total_value,
        total_gain_loss=total_gain_loss,
        total_gain_loss_percent=(total_gain_loss / total_cost * 100) if total_cost else 0.0,
    )


class InvestmentService:
    """Stock quotes, symbol search and crypto prices."""

    def __init__(
        self,
        settings: Optional[MarketDataSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        rng: Optional[random.Random] = None,
    ):
        self._settings = settings or MarketDataSettings()
        self._transport = transport
        self._rng = rng or random.Random()

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._settings.timeout_seconds,
            transport=self._transport,
        )

    async def _get_json(self, url: str, params: Optional[dict] = None):
        async with self._client() as client:
            response = await client.get(url, params=params)
            response.raise_for_status()
            return response.json()

    def _mock_quote(self, symbol: str) -> StockQuote:
        base_price = 100 + self._rng.random() * 400
        change = (self._rng.random() - 0.5) * 10
        return StockQuote(
            symbol=symbol,
            name=symbol,
            price=base_price,
            change=change,
            change_percent=change / base_price * 100,
            high=base_price + abs(change),
            low=base_price - abs(change),
            volume=int(self._rng.random() * 10_000_000),
            timestamp=datetime.now(),
            is_mock=True,
        )

    async def get_stock_quote(self, symbol: str) -> StockQuote:
        """Latest quote; a mock quote when the API fails."""
        symbol = symbol.upper()
        url = f"{self._settings.yahoo_base_url}/v8/finance/chart/{symbol}"

        try:
            data = await self._get_json(url, params={"interval": "1d", "range": "1d"})
            result = data["chart"]["result"][0]
            meta = result["meta"]
            quote = result["indicators"]["quote"][0]

            price = float(meta["regularMarketPrice"])
            previous_close = float(meta["chartPreviousClose"])
            change = price - previous_close

            return StockQuote(
                symbol=symbol,
                name=meta.get("symbol", symbol),
                price=price,
                change=change,
                change_percent=(change / previous_close * 100) if previous_close else 0.0,
                high=_last_or(quote.get("high"), price),
                low=_last_or(quote.get("low"), price),
                volume=int(_last_or(quote.get("volume"), 0)),
                timestamp=datetime.fromtimestamp(meta["regularMarketTime"]),
            )
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
            logger.warning("stock_quote_failed", symbol=symbol, error=str(e))
            return self._mock_quote(symbol)

    async def get_multiple_quotes(self, symbols: list[str]) -> list[StockQuote]:
        return list(await asyncio.gather(*(self.get_stock_quote(s) for s in symbols)))

    async def search_symbols(self, query: str) -> list[dict[str, str]]:
        """Matching tickers as {"symbol", "name"}; empty on failure."""
        url = f"{self._settings.yahoo_base_url}/v1/finance/search"
        try:
            data = await self._get_json(
                url, params={"q": query, "quotesCount": 10, "newsCount": 0}
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("symbol_search_failed", query=query, error=str(e))
            return []

        results = []
        for quote in data.get("quotes") or []:
            symbol = quote.get("symbol")
            if not symbol:
                continue
            results.append({
                "symbol": symbol,
                "name": quote.get("shortname") or quote.get("longname") or symbol,
            })
        return results

    async def get_crypto_quote(self, coin_id: str) -> CryptoQuote:
        """
        Price and 24h stats for one coin.

        Raises:
            MarketDataError: If the API fails or does not know the coin
        """
        coin_id = coin_id.lower()
        url = f"{self._settings.coingecko_base_url}/simple/price"
        params = {
            "ids": coin_id,
            "vs_currencies": "usd",
            "include_24hr_change": "true",
            "include_24hr_vol": "true",
            "include_market_cap": "true",
        }

        try:
            data = await self._get_json(url, params=params)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("crypto_quote_failed", coin=coin_id, error=str(e))
            raise MarketDataError("Crypto API failed") from e

        coin = data.get(coin_id) if isinstance(data, dict) else None
        if not coin or "usd" not in coin:
            raise MarketDataError(f"Crypto not found: {coin_id}")

        price = float(coin["usd"])
        change_percent = float(coin.get("usd_24h_change") or 0.0)
        return CryptoQuote(
            symbol=coin_id.upper(),
            name=coin_id.upper(),
            price=price,
            change_24h=price * change_percent / 100,
            change_percent_24h=change_percent,
            market_cap=float(coin.get("usd_market_cap") or 0.0),
            volume_24h=float(coin.get("usd_24h_vol") or 0.0),
        )

    async def get_top_cryptos(self, limit: int = 10) -> list[CryptoQuote]:
        """Quotes for the best-known coins; coins that fail are left out."""
        results = await asyncio.gather(
            *(self.get_crypto_quote(coin) for coin in TOP_COINS[:limit]),
            return_exceptions=True,
        )
        return [result for result in results if isinstance(result, CryptoQuote)]
