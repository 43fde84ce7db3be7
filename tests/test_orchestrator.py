"""
Integration tests for the UI-facing flows.

Everything runs against in-memory stores with a mocked model.
"""

import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from expense_tracker.audit import AuditLogger
from expense_tracker.config import GeminiSettings, Settings
from expense_tracker.constants import (
    ACTIVATED_LICENSE_KEY,
    DEFAULT_DEVICE_LIMIT,
    DEVICE_ID_KEY,
    VALID_LICENSE_KEYS,
)
from expense_tracker.licensing import LicenseActivationManager
from expense_tracker.models.audit import AuditEventType
from expense_tracker.models.expense import Category, ExpenseDraft, GoalDraft, TimeView
from expense_tracker.models.license import ActivationFailureReason
from expense_tracker.orchestrator import (
    CHAT_UNAVAILABLE_MESSAGE,
    INSIGHTS_UNAVAILABLE_MESSAGE,
    LICENSE_REQUIRED_MESSAGE,
    ExpenseFlow,
    LicenseFlow,
    create_app_components,
)
from expense_tracker.services.insights import InsightGenerationError, InsightService
from expense_tracker.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    LocalState,
)


TODAY = date(2024, 5, 15)


@pytest.fixture
def license_flow(state, audit_logger):
    manager = LicenseActivationManager(
        state,
        valid_keys={"KEY-A", "KEY-B"},
        device_limit=5,
        audit_logger=audit_logger,
    )
    return LicenseFlow(manager)


@pytest.fixture
def insight_service(mock_model):
    return InsightService(GeminiSettings(api_key="test"), model=mock_model)


@pytest.fixture
def expense_flow(store, insight_service, audit_logger):
    components = create_app_components(
        settings=Settings(),
        store=store,
        audit_logger=audit_logger,
        insight_service=insight_service,
    )
    return components.expense_flow


class TestLicenseFlow:
    """Tests for the license screen flow."""

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_input(self, license_flow, store, raw):
        """Blank input never reaches the manager."""
        result, message = license_flow.submit_license_key(raw)

        assert result is None
        assert message == LICENSE_REQUIRED_MESSAGE
        assert store.snapshot() == {}

    def test_input_is_stripped(self, license_flow):
        result, message = license_flow.submit_license_key("  KEY-A \n")

        assert result.success is True
        assert license_flow.check_license().licensed is True

    def test_invalid_key_message(self, license_flow):
        result, message = license_flow.submit_license_key("WRONG")

        assert result.reason == ActivationFailureReason.INVALID_KEY
        assert message == "Invalid or incorrect license key."

    def test_device_limit_message(self, store):
        for _ in range(3):
            flow = LicenseFlow(LicenseActivationManager(LocalState(store), valid_keys={"KEY-A"}, device_limit=3))
            assert flow.submit_license_key("KEY-A")[0].success is True
            store.delete("device_id")
            store.delete("activated_license_key")

        flow = LicenseFlow(LicenseActivationManager(LocalState(store), valid_keys={"KEY-A"}, device_limit=3))
        result, message = flow.submit_license_key("KEY-A")

        assert result.limit == 3
        assert message == "This license key has already been activated on the maximum of 3 devices."

    def test_events_share_correlation_id(self, license_flow, audit_logger):
        license_flow.submit_license_key("WRONG")

        event = audit_logger.recent_events(limit=1)[0]
        assert event["event_type"] == AuditEventType.LICENSE_ACTIVATION_REJECTED.value
        assert event["correlation_id"] is not None


class TestExpenseFlow:
    """Tests for the tracker screens' flow."""

    def test_add_expense_is_audited(self, expense_flow, audit_logger):
        expense = expense_flow.add_expense(ExpenseDraft(title="Coffee", amount=Decimal("3.40")))

        assert expense_flow.list_expenses() == [expense]
        event = audit_logger.recent_events(limit=1)[0]
        assert event["event_type"] == AuditEventType.EXPENSE_ADDED.value
        assert event["entity_id"] == expense.id

    def test_update_and_delete(self, expense_flow):
        expense = expense_flow.add_expense(ExpenseDraft(title="Coffee", amount=Decimal("3.40")))
        expense_flow.update_expense(expense.id, ExpenseDraft(title="Tea", amount=Decimal("2.00")))

        assert expense_flow.list_expenses()[0].title == "Tea"
        assert expense_flow.delete_expense(expense.id) is True
        assert expense_flow.delete_expense(expense.id) is False

    def test_dashboard(self, expense_flow):
        expense_flow.add_expense(ExpenseDraft(
            title="Lunch", amount=Decimal("10.00"), category=Category.FOOD, date=TODAY,
        ))
        expense_flow.add_expense(ExpenseDraft(
            title="Rent", amount=Decimal("900.00"), category=Category.HOUSING, date=date(2024, 4, 1),
        ))
        expense_flow.update_budget(Category.FOOD, Decimal("20.00"))

        summary = expense_flow.dashboard_summary(TimeView.MONTHLY, today=TODAY)
        assert summary.total == Decimal("10.00")

        progress = expense_flow.monthly_budget_progress(today=TODAY)
        assert len(progress) == 1
        assert progress[0].percentage == pytest.approx(50.0)

    def test_insights(self, expense_flow, mock_model, audit_logger):
        expense_flow.add_expense(ExpenseDraft(title="Lunch", amount=Decimal("10.00"), date=TODAY))

        assert expense_flow.get_insights(TimeView.DAILY, today=TODAY) == "## Summary\nYou spent wisely."
        assert audit_logger.recent_events(limit=1)[0]["event_type"] == AuditEventType.INSIGHTS_GENERATED.value

    def test_insights_failure_is_friendly(self, expense_flow, mock_model, audit_logger):
        mock_model.generate_content.side_effect = RuntimeError("boom")
        expense_flow.add_expense(ExpenseDraft(title="Lunch", amount=Decimal("10.00"), date=TODAY))

        assert expense_flow.get_insights(TimeView.DAILY, today=TODAY) == INSIGHTS_UNAVAILABLE_MESSAGE
        event = audit_logger.recent_events(limit=1)[0]
        assert event["event_type"] == AuditEventType.EXTERNAL_SERVICE_ERROR.value


    def test_ask_assistant_uses_selected_period(self, expense_flow, mock_model):
        expense_flow.add_expense(ExpenseDraft(title="Lunch", amount=Decimal("10.00"), date=TODAY))
        expense_flow.add_expense(ExpenseDraft(title="Rent", amount=Decimal("900.00"), date=date(2024, 4, 1)))
        expense_flow.update_budget(Category.FOOD, Decimal("20.00"))

        answer = expense_flow.ask_assistant("How am I doing?", TimeView.MONTHLY, today=TODAY)

        assert answer == "## Summary\nYou spent wisely."
        prompt = mock_model.generate_content.call_args[0][0]
        assert '"title": "Lunch"' in prompt
        assert "Rent" not in prompt
        assert "- Food: $20.00 per month" in prompt

    def test_ask_assistant_failure_is_friendly(self, expense_flow, mock_model, audit_logger):
        mock_model.generate_content.side_effect = RuntimeError("boom")

        assert expense_flow.ask_assistant("Hi", TimeView.DAILY, today=TODAY) == CHAT_UNAVAILABLE_MESSAGE
        event = audit_logger.recent_events(limit=1)[0]
        assert event["event_type"] == AuditEventType.EXTERNAL_SERVICE_ERROR.value

    def test_ask_assistant_blank_question(self, expense_flow):
        with pytest.raises(ValueError):
            expense_flow.ask_assistant("  ", TimeView.DAILY, today=TODAY)

    def test_spending_trend(self, expense_flow):
        expense_flow.add_expense(ExpenseDraft(title="Lunch", amount=Decimal("10.00"), date=TODAY))
        expense_flow.add_expense(ExpenseDraft(title="Rent", amount=Decimal("900.00"), date=date(2024, 4, 1)))

        trend = expense_flow.spending_trend(today=TODAY)

        assert len(trend) == 6
        assert [m.total for m in trend[-2:]] == [Decimal("900.00"), Decimal("10.00")]

    def test_goal_with_plan(self, expense_flow, mock_model):
        draft = GoalDraft(title="Bike", target_amount=Decimal("300.00"))
        draft.ai_plan = expense_flow.propose_goal_plan(draft)
        goal = expense_flow.add_goal(draft)

        assert expense_flow.list_goals()[0].ai_plan == "## Summary\nYou spent wisely."
        assert expense_flow.delete_goal(goal.id) is True

    def test_goal_plan_failure_propagates(self, expense_flow, mock_model):
        mock_model.generate_content.side_effect = RuntimeError("boom")
        with pytest.raises(InsightGenerationError):
            expense_flow.propose_goal_plan(GoalDraft(title="Bike", target_amount=Decimal("300.00")))

    def test_currency(self, expense_flow, state):
        assert expense_flow.get_currency().code == "USD"
        assert expense_flow.set_currency("jpy").code == "JPY"
        assert state.get_currency_code() == "JPY"
        assert expense_flow.get_currency().symbol == "¥"

    def test_default_currency_from_settings(self, store):
        flow = ExpenseFlow(
            expenses=MagicMock(),
            budgets=MagicMock(),
            goals=MagicMock(),
            state=LocalState(store),
            insight_service=MagicMock(),
            default_currency="GBP",
        )
        assert flow.get_currency().code == "GBP"


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_components_share_one_store(self, store, audit_logger):
        components = create_app_components(
            settings=Settings(),
            store=store,
            audit_logger=audit_logger,
        )

        assert components.state.store is store
        assert components.license_flow.manager is components.license_manager
        assert components.license_flow.check_license().licensed is False

    def test_default_store_location(self, tmp_path, monkeypatch):
        monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path))
        components = create_app_components(settings=Settings())

        assert isinstance(components.store, JsonFileKeyValueStore)
        assert components.store.directory == tmp_path / "store"
        assert components.license_manager.device_limit == DEFAULT_DEVICE_LIMIT

        components.license_flow.check_license()
        assert (tmp_path / "store" / "device_id.json").is_file()
        assert (tmp_path / "audit_log.jsonl").is_file()

    def test_independent_installations(self):
        """Two component sets over two stores share nothing."""
        first = create_app_components(settings=Settings(), store=InMemoryKeyValueStore(), audit_logger=AuditLogger())
        second = create_app_components(settings=Settings(), store=InMemoryKeyValueStore(), audit_logger=AuditLogger())

        first_key = sorted(VALID_LICENSE_KEYS)[0]
        assert first.license_flow.submit_license_key(first_key)[0].success is True
        assert second.license_flow.check_license().licensed is False

    def test_device_limit_ignores_environment(self, monkeypatch):
        """A sixth device is refused even if the environment asks for more."""
        monkeypatch.setenv("LICENSE_DEVICE_LIMIT", "50")
        store = InMemoryKeyValueStore()
        key = sorted(VALID_LICENSE_KEYS)[0]

        for _ in range(5):
            components = create_app_components(settings=Settings(), store=store, audit_logger=AuditLogger())
            assert components.license_flow.submit_license_key(key)[0].success is True
            store.delete(DEVICE_ID_KEY)
            store.delete(ACTIVATED_LICENSE_KEY)

        components = create_app_components(settings=Settings(), store=store, audit_logger=AuditLogger())
        result, message = components.license_flow.submit_license_key(key)

        assert result.reason == ActivationFailureReason.DEVICE_LIMIT_REACHED
        assert result.limit == 5
        assert "maximum of 5 devices" in message


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
