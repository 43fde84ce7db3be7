"""
Audit Models for Expense Tracker Pro

Every significant action in the system is logged for audit purposes:
license checks and activations, and every change to stored records.

DESIGN DECISION: The audit file is only ever appended to. Events are
kept apart from the key-value store, so writing an audit event never
changes the state the license gate reads.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Licensing
    DEVICE_REGISTERED = "device_registered"
    LICENSE_CHECKED = "license_checked"
    LICENSE_ACTIVATED = "license_activated"
    LICENSE_ACTIVATION_REJECTED = "license_activation_rejected"
    STALE_ACTIVATION_CLEARED = "stale_activation_cleared"

    # Records
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    BUDGET_UPDATED = "budget_updated"
    GOAL_ADDED = "goal_added"
    GOAL_DELETED = "goal_deleted"

    # AI
    INSIGHTS_GENERATED = "insights_generated"

    # System events
    STORAGE_ERROR = "storage_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """How loudly the event is logged."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """One line of the audit file."""

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'device', 'expense', 'goal')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one license screen submission)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Flat dict for structlog and the audit file.
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
        """Single-line JSON for the append-only audit file."""
        return json.dumps(self.to_log_dict(), default=str, ensure_ascii=False)


def _mask_key(license_key: str) -> str:
    """Keep license keys out of the audit trail, all but the last 4 chars."""
    if len(license_key) <= 4:
        return "*" * len(license_key)
    return "*" * (len(license_key) - 4) + license_key[-4:]


class AuditEventBuilder:
    """
    Constructors for each event type, so call sites never assemble
    descriptions or details by hand.

        event = AuditEventBuilder.expense_added(expense.id, "Coffee", Decimal("4.75"))
    """

    @staticmethod
    def device_registered(device_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEVICE_REGISTERED,
            entity_type="device",
            entity_id=device_id,
            description="New device id generated on first run",
        )

    @staticmethod
    def license_checked(
        device_id: str,
        licensed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LICENSE_CHECKED,
            entity_type="device",
            entity_id=device_id,
            correlation_id=correlation_id,
            description="Device is licensed" if licensed else "Device is not licensed",
            details={"licensed": licensed},
        )

    @staticmethod
    def license_activated(
        device_id: str,
        license_key: str,
        device_count: int,
        already_active: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LICENSE_ACTIVATED,
            entity_type="device",
            entity_id=device_id,
            correlation_id=correlation_id,
            description=(
                "License re-confirmed on an already activated device"
                if already_active
                else f"License activated ({device_count} device(s) on key)"
            ),
            details={
                "license_key": _mask_key(license_key),
                "device_count": device_count,
                "already_active": already_active,
            },
            is_user_action=True,
        )

    @staticmethod
    def activation_rejected(
        device_id: Optional[str],
        license_key: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LICENSE_ACTIVATION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="device",
            entity_id=device_id,
            correlation_id=correlation_id,
            description=f"License activation rejected: {reason}",
            details={
                "license_key": _mask_key(license_key),
                "reason": reason,
            },
            is_user_action=True,
        )

    @staticmethod
    def stale_activation_cleared(
        device_id: str,
        license_key: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STALE_ACTIVATION_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="device",
            entity_id=device_id,
            description="Remembered license key no longer lists this device; cleared",
            details={"license_key": _mask_key(license_key)},
        )

    @staticmethod
    def expense_added(expense_id: str, title: str, amount: Decimal) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Expense added: {title}",
            details={"title": title, "amount": str(amount)},
            is_user_action=True,
        )

    @staticmethod
    def expense_updated(expense_id: str, title: str, amount: Decimal) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Expense updated: {title}",
            details={"title": title, "amount": str(amount)},
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(expense_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            description="Expense deleted",
            is_user_action=True,
        )

    @staticmethod
    def budget_updated(category: str, amount: Decimal) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_UPDATED,
            entity_type="budget",
            entity_id=category,
            description=f"Budget for {category} set to {amount}",
            details={"category": category, "amount": str(amount)},
            is_user_action=True,
        )

    @staticmethod
    def goal_added(goal_id: str, title: str, target_amount: Decimal) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_ADDED,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Goal added: {title}",
            details={"title": title, "target_amount": str(target_amount)},
            is_user_action=True,
        )

    @staticmethod
    def goal_deleted(goal_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_DELETED,
            entity_type="goal",
            entity_id=goal_id,
            description="Goal deleted",
            is_user_action=True,
        )

    @staticmethod
    def insights_generated(time_view: str, expense_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHTS_GENERATED,
            entity_type="insight",
            description=f"AI insights generated for {expense_count} expense(s)",
            details={"time_view": time_view, "expense_count": expense_count},
            is_user_action=True,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
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
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
