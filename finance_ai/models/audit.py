"""
Audit Models for FinanceAI

Every change to the finance aggregate, and every recovery the store
performs on its own, is described by an AuditEvent. Events are rendered
as structured log lines so lost writes and restored backups leave a trace
even though the store never raises.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Savings goals
    GOAL_ADDED = "goal_added"
    GOAL_UPDATED = "goal_updated"
    GOAL_DELETED = "goal_deleted"
    GOAL_DEPOSIT = "goal_deposit"

    # Onboarding
    ONBOARDING_SAVED = "onboarding_saved"
    CURRENCY_NORMALIZED = "currency_normalized"

    # Persistence
    DATA_SAVED = "data_saved"
    SAVE_FAILED = "save_failed"
    BACKUP_WRITE_FAILED = "backup_write_failed"
    PRIMARY_UNREADABLE = "primary_unreadable"
    BACKUP_RESTORED = "backup_restored"
    BACKUP_UNREADABLE = "backup_unreadable"
    DATA_CLEARED = "data_cleared"

    # Import / export
    DATA_IMPORTED = "data_imported"
    IMPORT_REJECTED = "import_rejected"

    # Insights
    INSIGHTS_FAILED = "insights_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g. 'transaction', 'goal', 'slot')"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(txn_id, amount, tier)
        event = AuditEventBuilder.save_failed(slot, "storage_full", message)
    """

    @staticmethod
    def transaction_added(transaction_id: str, amount: float, tier: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction added: {amount:,.2f} ({tier})",
            details={"amount": amount, "type": tier},
        )

    @staticmethod
    def entity_changed(
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        fields: Optional[list[str]] = None,
    ) -> AuditEvent:
        """Update or delete of a transaction or goal."""
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} {event_type.value.rsplit('_', 1)[-1]}: {entity_id}",
            details={"fields": fields} if fields else {},
        )

    @staticmethod
    def goal_added(goal_id: str, name: str, target_amount: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_ADDED,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Savings goal added: {name}",
            details={"target_amount": target_amount},
        )

    @staticmethod
    def goal_deposit(goal_id: str, requested: float, applied: float) -> AuditEvent:
        clamped = applied < requested
        return AuditEvent(
            event_type=AuditEventType.GOAL_DEPOSIT,
            severity=AuditSeverity.WARNING if clamped else AuditSeverity.INFO,
            entity_type="goal",
            entity_id=goal_id,
            description=(
                f"Deposit clamped at goal target ({applied:,.2f} of {requested:,.2f})"
                if clamped
                else f"Deposit of {applied:,.2f}"
            ),
            details={"requested": requested, "applied": applied},
        )

    @staticmethod
    def onboarding_saved(currency: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ONBOARDING_SAVED,
            entity_type="onboarding",
            description="Onboarding data saved",
            details={"currency": currency},
        )

    @staticmethod
    def currency_normalized(found: str, forced: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CURRENCY_NORMALIZED,
            severity=AuditSeverity.WARNING,
            entity_type="onboarding",
            description=f"Stored currency {found} replaced with {forced}",
            details={"found": found, "forced": forced},
        )

    @staticmethod
    def data_saved(slot: str, size_bytes: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_SAVED,
            severity=AuditSeverity.DEBUG,
            entity_type="slot",
            entity_id=slot,
            description=f"Aggregate written to {slot}",
            details={"size_bytes": size_bytes},
        )

    @staticmethod
    def save_failed(slot: str, reason: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="slot",
            entity_id=slot,
            description=f"Could not write aggregate to {slot}",
            details={"reason": reason},
            error_message=error_message,
        )

    @staticmethod
    def backup_write_failed(slot: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_WRITE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="slot",
            entity_id=slot,
            description=f"Could not refresh backup slot {slot}",
            error_message=error_message,
        )

    @staticmethod
    def slot_unreadable(slot: str, is_backup: bool, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.BACKUP_UNREADABLE
                if is_backup
                else AuditEventType.PRIMARY_UNREADABLE
            ),
            severity=AuditSeverity.ERROR,
            entity_type="slot",
            entity_id=slot,
            description=f"Stored aggregate in {slot} could not be loaded",
            error_message=error_message,
        )

    @staticmethod
    def backup_restored(backup_slot: str, primary_slot: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_RESTORED,
            severity=AuditSeverity.WARNING,
            entity_type="slot",
            entity_id=primary_slot,
            description=f"Restored {primary_slot} from {backup_slot}",
            details={"backup_slot": backup_slot},
        )

    @staticmethod
    def data_cleared(slots: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_CLEARED,
            severity=AuditSeverity.WARNING,
            description="All stored finance data removed",
            details={"slots": slots},
        )

    @staticmethod
    def data_imported(transaction_count: int, goal_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_IMPORTED,
            description=(
                f"Imported {transaction_count} transactions and {goal_count} goals"
            ),
            details={
                "transaction_count": transaction_count,
                "goal_count": goal_count,
            },
        )

    @staticmethod
    def import_rejected(reason: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_REJECTED,
            severity=AuditSeverity.WARNING,
            description=f"Import rejected: {reason}",
            details={"reason": reason},
            error_message=error_message[:500],
        )

    @staticmethod
    def insights_failed(model_name: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHTS_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="insights",
            description=f"Insights request to {model_name} failed",
            error_message=error_message,
        )
