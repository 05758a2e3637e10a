"""Audit logging package."""

from finance_ai.audit.logger import AuditLogger, get_logger

__all__ = ["AuditLogger", "get_logger"]
