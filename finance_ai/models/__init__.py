"""
Data Models Package

This package contains all Pydantic models used by FinanceAI.
Everything stored in, or returned from, the finance store conforms to
these schemas.
"""

from finance_ai.models.finance import (
    GoalPriority,
    MonthlySpending,
    OnboardingData,
    SavingsGoal,
    SavingsGoalDraft,
    SpendingCategories,
    SpendingTier,
    Transaction,
    TransactionDraft,
    UserData,
    as_local,
    local_now,
)
from finance_ai.models.results import OperationStatus, StoreResult
from finance_ai.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "GoalPriority",
    "MonthlySpending",
    "OnboardingData",
    "SavingsGoal",
    "SavingsGoalDraft",
    "SpendingCategories",
    "SpendingTier",
    "Transaction",
    "TransactionDraft",
    "UserData",
    "as_local",
    "local_now",
    # Results
    "OperationStatus",
    "StoreResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
