"""Audit logging package."""

from src.audit.logger import AuditLogger, create_correlation_id, configure_logging

__all__ = ["AuditLogger", "create_correlation_id", "configure_logging"]
