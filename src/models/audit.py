"""
Audit Models for Pocket Assistant

Every provider attempt, fallback and destructive action is recorded.
This provides:
1. A trail of which responder actually answered each message
2. Debugging information when remote services misbehave
3. Visibility into how often the local fallbacks are carrying the app

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Provider fallback chain
    PROVIDER_SKIPPED = "provider_skipped"
    PROVIDER_FAILED = "provider_failed"
    PROVIDER_SUCCEEDED = "provider_succeeded"
    ALL_PROVIDERS_FAILED = "all_providers_failed"

    # Local fallbacks for single-call services
    FALLBACK_USED = "fallback_used"

    # Data
    STATEMENT_IMPORTED = "statement_imported"
    EVENT_CREATED = "event_created"
    EVENT_UPDATED = "event_updated"
    EVENT_DELETED = "event_deleted"
    STORAGE_CLEARED = "storage_cleared"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'provider', 'event', 'statement')"
    )
    entity_id: Optional[str] = None

    # Correlation - for tracking related events (one chat message, one import)
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_json_line(self) -> str:
        """Serialize as one line of JSON for append-only files."""
        return json.dumps(self.to_log_dict(), default=str)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.provider_failed("Gemini", "timeout", correlation_id)
        event = AuditEventBuilder.storage_cleared(keys)
    """

    @staticmethod
    def provider_skipped(provider: str, correlation_id: Optional[UUID]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROVIDER_SKIPPED,
            severity=AuditSeverity.DEBUG,
            entity_type="provider",
            entity_id=provider,
            correlation_id=correlation_id,
            description=f"{provider} provider not available, skipped",
        )

    @staticmethod
    def provider_failed(
        provider: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROVIDER_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="provider",
            entity_id=provider,
            correlation_id=correlation_id,
            description=f"{provider} provider failed",
            error_message=error_message,
        )

    @staticmethod
    def provider_succeeded(provider: str, correlation_id: Optional[UUID]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROVIDER_SUCCEEDED,
            entity_type="provider",
            entity_id=provider,
            correlation_id=correlation_id,
            description=f"{provider} provider succeeded",
        )

    @staticmethod
    def all_providers_failed(
        providers: list[str],
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALL_PROVIDERS_FAILED,
            severity=AuditSeverity.CRITICAL,
            correlation_id=correlation_id,
            description="Every responder failed; returned apology",
            details={"providers": providers},
        )

    @staticmethod
    def fallback_used(
        service: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FALLBACK_USED,
            severity=AuditSeverity.WARNING,
            entity_type="service",
            entity_id=service,
            correlation_id=correlation_id,
            description=f"{service} fell back to local rules",
            details={"reason": reason},
        )

    @staticmethod
    def statement_imported(
        bank_name: str,
        transaction_count: int,
        confidence: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATEMENT_IMPORTED,
            entity_type="statement",
            correlation_id=correlation_id,
            description=f"Imported {transaction_count} transactions from {bank_name}",
            details={
                "bank_name": bank_name,
                "transaction_count": transaction_count,
                "confidence": confidence,
            },
            is_user_action=True,
        )

    @staticmethod
    def event_changed(
        event_type: AuditEventType,
        event_id: str,
        title: str,
        synced: bool,
    ) -> AuditEvent:
        verb = event_type.value.split("_")[-1]
        return AuditEvent(
            event_type=event_type,
            entity_type="event",
            entity_id=event_id,
            description=f"Event {verb}: {title}",
            details={"google_calendar_synced": synced},
            is_user_action=True,
        )

    @staticmethod
    def storage_cleared(keys: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="storage",
            description="All local data cleared",
            details={"keys": keys},
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
            correlation_id=correlation_id,
        )
