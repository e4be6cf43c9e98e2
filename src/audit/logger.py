"""
Audit Logger

DESIGN DECISION: Every provider attempt and every fallback is logged.
This provides:
1. Traceability of which responder answered each message
2. Debugging capability when remote APIs degrade
3. A record of destructive user actions (clearing data)

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder, AuditEventType

if TYPE_CHECKING:
    from src.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(debug: bool = False) -> None:
    """Route structlog output through a stdlib handler at INFO (or DEBUG)."""
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if debug else logging.INFO,
    )


class AuditLogger:
    """
    Records provider, import, calendar and storage events.

    Every event goes to the structured log under the "audit" logger.
    When an audit store is given (e.g. JsonLinesAuditStorage) the
    event is appended there as well.
    """

    def __init__(
        self,
        storage: Optional["AuditStorageInterface"] = None,
    ):
        """
        Args:
            storage: Append-only audit store. None keeps events in the
                    structured log only (tests, in-memory runs).
        """
        self._storage = storage
        self._logger = structlog.get_logger("audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()
        severity = event.severity.value

        if severity in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif severity == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif severity == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_provider_skipped(
        self,
        provider: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a responder skipped for a failed precondition."""
        await self.log(AuditEventBuilder.provider_skipped(provider, correlation_id))

    async def log_provider_failed(
        self,
        provider: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a responder that exhausted its retries."""
        await self.log(
            AuditEventBuilder.provider_failed(provider, error_message, correlation_id)
        )

    async def log_provider_succeeded(
        self,
        provider: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.provider_succeeded(provider, correlation_id))

    async def log_all_providers_failed(
        self,
        providers: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(
            AuditEventBuilder.all_providers_failed(providers, correlation_id)
        )

    async def log_fallback_used(
        self,
        service: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a single-call service answering from local rules."""
        await self.log(
            AuditEventBuilder.fallback_used(service, reason, correlation_id)
        )

    async def log_statement_imported(
        self,
        bank_name: str,
        transaction_count: int,
        confidence: float,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(
            AuditEventBuilder.statement_imported(
                bank_name=bank_name,
                transaction_count=transaction_count,
                confidence=confidence,
                correlation_id=correlation_id,
            )
        )

    async def log_event_changed(
        self,
        event_type: AuditEventType,
        event_id: str,
        title: str,
        synced: bool,
    ) -> None:
        """Log a calendar event created, updated or deleted."""
        await self.log(
            AuditEventBuilder.event_changed(event_type, event_id, title, synced)
        )

    async def log_storage_cleared(self, keys: list[str]) -> None:
        await self.log(AuditEventBuilder.storage_cleared(keys))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(
            AuditEventBuilder.system_error(
                error_type=error_type,
                error_message=error_message,
                details=details,
                correlation_id=correlation_id,
            )
        )

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        await self.log(
            AuditEventBuilder.external_service_error(
                service=service,
                error_message=error_message,
                correlation_id=correlation_id,
            )
        )


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., one chat message).
    Pass it through all subsequent operations.
    """
    return uuid4()
