"""
Finance Models

Results returned by the currency, categorization, market data
and statement OCR services.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models.records import Transaction, TransactionType


class ConversionResult(BaseModel):
    """A currency conversion at the rate reported by the API."""

    amount: float
    from_currency: str
    to_currency: str
    rate: float
    converted_amount: float
    timestamp: datetime = Field(default_factory=datetime.now)


class CategoryResult(BaseModel):
    """Category assigned to a transaction description."""

    category: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0.0, le=1.0)
    subcategory: Optional[str] = None


class StockQuote(BaseModel):
    symbol: str
    name: str
    price: float
    change: float
    change_percent: float
    high: float
    low: float
    volume: int
    timestamp: datetime
    is_mock: bool = Field(
        default=False,
        description="True when the quote was generated locally because the API failed"
    )


class CryptoQuote(BaseModel):
    symbol: str
    name: str
    price: float
    change_24h: float
    change_percent_24h: float
    market_cap: float
    volume_24h: float


class Holding(BaseModel):
    """A position as entered by the user."""

    symbol: str
    shares: float = Field(..., ge=0)
    avg_cost: float = Field(..., ge=0)


class PortfolioHolding(BaseModel):
    symbol: str
    name: str
    shares: float
    avg_cost: float
    current_price: float
    total_value: float
    gain_loss: float
    gain_loss_percent: float


class Portfolio(BaseModel):
    holdings: list[PortfolioHolding]
    total_value: float
    total_gain_loss: float
    total_gain_loss_percent: float


class ParsedTransaction(BaseModel):
    """
    A transaction as read off a statement, before categorization.

    Used both as the strict schema for LLM output and for the
    regex bank-format parsers.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    date: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    type: TransactionType


class StatementResult(BaseModel):
    """Transactions imported from one bank statement."""

    transactions: list[Transaction]
    bank_name: str
    format: str
    confidence: float = Field(..., ge=0.0, le=1.0)
