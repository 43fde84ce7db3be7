"""
Tests for Expense Tracker Pro models

Test strategy:
1. Unit tests for individual components (models, storage, summaries)
2. Integration tests for flows (with in-memory stores)
3. No real API calls in tests (use mocks)
"""

import json

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from expense_tracker.models.expense import (
    Budget,
    BudgetProgress,
    Category,
    Currency,
    Expense,
    ExpenseDraft,
    GoalDraft,
    TimeView,
    all_currencies,
)
from expense_tracker.models.license import (
    ActivationFailureReason,
    ActivationResult,
    LicenseStatus,
)


class TestActivationResult:
    """Tests for activation outcome values."""

    def test_success_wire_shape(self):
        """A success serializes to just {success: true}."""
        assert ActivationResult.succeeded().to_dict() == {"success": True}

    def test_invalid_key_wire_shape(self):
        """InvalidKey carries no limit."""
        assert ActivationResult.invalid_key().to_dict() == {
            "success": False,
            "reason": "InvalidKey",
        }

    def test_device_limit_wire_shape(self):
        """DeviceLimitReached reports the limit."""
        assert ActivationResult.device_limit_reached(5).to_dict() == {
            "success": False,
            "reason": "DeviceLimitReached",
            "limit": 5,
        }

    def test_success_with_reason_rejected(self):
        """A success cannot carry a failure reason."""
        with pytest.raises(ValidationError):
            ActivationResult(success=True, reason=ActivationFailureReason.INVALID_KEY)

    def test_failure_without_reason_rejected(self):
        """A failure must say why."""
        with pytest.raises(ValidationError):
            ActivationResult(success=False)

    def test_limit_only_with_device_limit_reason(self):
        """limit is meaningless for other reasons."""
        with pytest.raises(ValidationError):
            ActivationResult(
                success=False,
                reason=ActivationFailureReason.INVALID_KEY,
                limit=5,
            )

    def test_license_status_wire_shape(self):
        """Only the licensed flag is exposed."""
        status = LicenseStatus(licensed=True, device_id="abc", activated_key="KEY-A")
        assert status.to_dict() == {"licensed": True}


class TestExpenseModels:
    """Tests for expense-related Pydantic models."""

    def test_expense_draft_strips_whitespace(self):
        """Test that whitespace is stripped from the title."""
        draft = ExpenseDraft(title="  Coffee  ", amount=Decimal("4.50"))
        assert draft.title == "Coffee"
        assert draft.category == Category.OTHER
        assert draft.date == date.today()

    def test_expense_draft_requires_title(self):
        """Empty titles are rejected."""
        with pytest.raises(ValidationError):
            ExpenseDraft(title="   ", amount=Decimal("4.50"))

    @pytest.mark.parametrize("amount", ["0", "-1.00", "1.234"])
    def test_expense_draft_rejects_bad_amounts(self, amount):
        """Amounts must be positive with at most two decimals."""
        with pytest.raises(ValidationError):
            ExpenseDraft(title="Coffee", amount=Decimal(amount))

    def test_expense_gets_unique_id(self):
        """Each stored expense gets its own id."""
        draft = ExpenseDraft(title="Coffee", amount=Decimal("4.50"))
        first = Expense(**draft.model_dump())
        second = Expense(**draft.model_dump())
        assert first.id != second.id

    def test_expense_json_round_trip(self):
        """Stored JSON validates back into the same expense."""
        expense = Expense(
            title="Train",
            amount=Decimal("12.30"),
            category=Category.TRANSPORT,
            date=date(2024, 3, 5),
        )
        data = json.loads(json.dumps(expense.model_dump(mode="json")))
        assert Expense.model_validate(data) == expense

    def test_budget_allows_zero(self):
        """Zero means no budget."""
        assert Budget(category=Category.FOOD, amount=Decimal("0")).amount == 0

    def test_goal_draft_requires_positive_target(self):
        with pytest.raises(ValidationError):
            GoalDraft(title="Laptop", target_amount=Decimal("0"))

    def test_budget_progress_over_budget(self):
        """Over-budget progress still renders a full bar."""
        progress = BudgetProgress(
            category=Category.FOOD,
            budget=Decimal("100"),
            spent=Decimal("150"),
            percentage=150.0,
        )
        assert progress.is_over_budget is True
        assert progress.bar_percentage == 100.0


class TestCurrency:
    """Tests for display currencies."""

    def test_unknown_code_falls_back_to_usd(self):
        assert Currency.from_code("XYZ").code == "USD"
        assert Currency.from_code(None).code == "USD"

    def test_lowercase_code(self):
        assert Currency.from_code("eur").symbol == "€"

    def test_format(self):
        """Yen has no minor unit."""
        assert Currency.from_code("USD").format(Decimal("1234.5")) == "$1,234.50"
        assert Currency.from_code("JPY").format(Decimal("1234")) == "¥1,234"

    def test_all_currencies(self):
        codes = [c.code for c in all_currencies()]
        assert "USD" in codes and "PKR" in codes

    def test_time_view_period_noun(self):
        assert TimeView.WEEKLY.period_noun == "week"


class TestAuditModels:
    """Tests for audit event models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id="abc",
            description="Expense added",
        )
        assert event.event_id is not None
        assert event.timestamp is not None
        assert event.severity == AuditSeverity.INFO

    def test_license_key_is_masked(self):
        """Only the last four characters of a key reach the audit trail."""
        event = AuditEventBuilder.license_activated(
            device_id="device-1",
            license_key="ETP-7Q2M-9XKD-4HWN",
            device_count=1,
            already_active=False,
        )
        assert event.details["license_key"].endswith("4HWN")
        assert "7Q2M" not in event.to_json_line()

    def test_activation_rejected_is_warning(self):
        event = AuditEventBuilder.activation_rejected(
            device_id=None,
            license_key="NOPE",
            reason="InvalidKey",
        )
        assert event.event_type == AuditEventType.LICENSE_ACTIVATION_REJECTED
        assert event.severity == AuditSeverity.WARNING
        assert event.details["license_key"] == "****"

    def test_correlation_id_in_log_dict(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.storage_error(
            operation="activate",
            error_message="disk full",
            correlation_id=correlation_id,
        )
        log_dict = event.to_log_dict()
        assert log_dict["correlation_id"] == str(correlation_id)
        assert log_dict["severity"] == "error"

    def test_builders_match_event_types(self):
        """Every event type has exactly one builder, and nothing else is built."""
        builders = {name for name in vars(AuditEventBuilder) if not name.startswith("_")}
        expected = {
            "activation_rejected" if t == AuditEventType.LICENSE_ACTIVATION_REJECTED else t.value
            for t in AuditEventType
        }
        assert builders == expected


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
