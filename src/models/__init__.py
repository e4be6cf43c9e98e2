"""
Data Models Package

This package contains all Pydantic models used in Pocket Assistant.
All data flowing through the system must conform to these schemas.
"""

from src.models.records import (
    AvatarOption,
    BalanceSheet,
    Event,
    Message,
    ReminderFlags,
    ReminderLead,
    Transaction,
    TransactionType,
    UserProfile,
    new_record_id,
    to_local_naive,
)
from src.models.chat import (
    AIIntent,
    ChatRequest,
    IntentType,
    ProviderResponse,
)
from src.models.finance import (
    CategoryResult,
    ConversionResult,
    CryptoQuote,
    Holding,
    ParsedTransaction,
    Portfolio,
    PortfolioHolding,
    StatementResult,
    StockQuote,
)
from src.models.schedule import (
    ParsedEventData,
    PatternType,
    RecurringPattern,
    SchedulingSuggestion,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Records
    "AvatarOption",
    "BalanceSheet",
    "Event",
    "Message",
    "ReminderFlags",
    "ReminderLead",
    "Transaction",
    "TransactionType",
    "UserProfile",
    "new_record_id",
    "to_local_naive",
    # Chat
    "AIIntent",
    "ChatRequest",
    "IntentType",
    "ProviderResponse",
    # Finance
    "CategoryResult",
    "ConversionResult",
    "CryptoQuote",
    "Holding",
    "ParsedTransaction",
    "Portfolio",
    "PortfolioHolding",
    "StatementResult",
    "StockQuote",
    # Scheduling
    "ParsedEventData",
    "PatternType",
    "RecurringPattern",
    "SchedulingSuggestion",
    # Audit
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
