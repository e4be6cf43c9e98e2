"""Services package."""

from src.services.storage import (
    AssistantStorage,
    AuditStorageInterface,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    JsonLinesAuditStorage,
    KeyValueStore,
    NotFoundError,
    StorageError,
    StorageKey,
)
from src.services.currency import (
    POPULAR_CURRENCIES,
    CurrencyConversionError,
    CurrencyService,
)
from src.services.categorization import (
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    CategorizationService,
    infer_basic_category,
)
from src.services.ocr import (
    ExtractionFailedError,
    OCRError,
    StatementOCRService,
    UnsupportedDocumentError,
)
from src.services.investments import (
    InvestmentService,
    MarketDataError,
    calculate_portfolio,
)
from src.services.calendar import (
    CalendarError,
    CalendarNotConfiguredError,
    GoogleCalendarService,
)
from src.services.voice import VoiceService

__all__ = [
    # Storage
    "AssistantStorage",
    "AuditStorageInterface",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "JsonLinesAuditStorage",
    "KeyValueStore",
    "NotFoundError",
    "StorageError",
    "StorageKey",
    # Currency
    "POPULAR_CURRENCIES",
    "CurrencyConversionError",
    "CurrencyService",
    # Categorization
    "EXPENSE_CATEGORIES",
    "INCOME_CATEGORIES",
    "CategorizationService",
    "infer_basic_category",
    # OCR
    "ExtractionFailedError",
    "OCRError",
    "StatementOCRService",
    "UnsupportedDocumentError",
    # Investments
    "InvestmentService",
    "MarketDataError",
    "calculate_portfolio",
    # Calendar
    "CalendarError",
    "CalendarNotConfiguredError",
    "GoogleCalendarService",
    # Voice
    "VoiceService",
]
