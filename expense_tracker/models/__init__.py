"""
Data Models Package

This package contains all Pydantic models used in Expense Tracker Pro.
All data flowing through the system must conform to these schemas.
"""

from expense_tracker.models.expense import (
    Budget,
    BudgetProgress,
    Category,
    Currency,
    Expense,
    ExpenseDraft,
    Goal,
    GoalDraft,
    SpendingSummary,
    TimeView,
    all_currencies,
)
from expense_tracker.models.license import (
    ActivationFailureReason,
    ActivationResult,
    LicenseStatus,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "Budget",
    "BudgetProgress",
    "Category",
    "Currency",
    "Expense",
    "ExpenseDraft",
    "Goal",
    "GoalDraft",
    "SpendingSummary",
    "TimeView",
    "all_currencies",
    # License models
    "ActivationFailureReason",
    "ActivationResult",
    "LicenseStatus",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
