"""
Main Orchestrator for Expense Tracker Pro

This module ties together all the components and defines the
flows the UI calls:
1. License gate (start-up check -> license screen -> activation)
2. Expense tracking (records, budgets, goals, dashboard, AI insights
   and chat)

DESIGN DECISION: Components are built once by create_app_components()
and passed to the UI explicitly. There is no module-level global state;
two AppComponents over two stores are fully independent.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from expense_tracker.audit import AuditLogger, create_correlation_id
from expense_tracker.config import Settings, get_settings
from expense_tracker.expenses import (
    BudgetRepository,
    ExpenseRepository,
    GoalRepository,
    budget_progress,
    filter_by_time_view,
    monthly_trend,
    summarize,
)
from expense_tracker.licensing import LicenseActivationManager
from expense_tracker.models.audit import AuditEventBuilder
from expense_tracker.models.expense import (
    Budget,
    BudgetProgress,
    Category,
    Currency,
    Expense,
    ExpenseDraft,
    Goal,
    GoalDraft,
    MonthlySpending,
    SpendingSummary,
    TimeView,
)
from expense_tracker.models.license import (
    ActivationFailureReason,
    ActivationResult,
    LicenseStatus,
)
from expense_tracker.services.insights import InsightGenerationError, InsightService
from expense_tracker.services.storage import (
    JsonFileKeyValueStore,
    JsonLinesAuditStorage,
    KeyValueStoreInterface,
    LocalState,
)


LICENSE_REQUIRED_MESSAGE = "License key is required."
INSIGHTS_UNAVAILABLE_MESSAGE = (
    "Sorry, I couldn't generate insights at the moment. Please try again later."
)
CHAT_GREETING = (
    "Hello! I'm your AI Financial Assistant. "
    "Ask me anything about your spending for the selected period."
)
CHAT_UNAVAILABLE_MESSAGE = (
    "Sorry, I'm having trouble connecting right now. Please try again later."
)


class LicenseFlow:
    """
    Caller-facing side of the license gate.

    The license screen only talks to this class. It strips and
    checks the raw input, runs the activation, and turns the
    structured result into a message for the user.
    """

    def __init__(self, manager: LicenseActivationManager):
        self._manager = manager

    @property
    def manager(self) -> LicenseActivationManager:
        return self._manager

    def check_license(self, correlation_id: Optional[UUID] = None) -> LicenseStatus:
        """Run once at start-up, before any protected screen renders."""
        return self._manager.initialize(correlation_id=correlation_id or create_correlation_id())

    def submit_license_key(
        self,
        raw_key: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[ActivationResult], str]:
        """
        Handle a license screen submission.

        Returns:
            (result, message). result is None when the input was
            rejected before reaching the manager.
        """
        license_key = (raw_key or "").strip()
        if not license_key:
            return None, LICENSE_REQUIRED_MESSAGE

        result = self._manager.activate(
            license_key,
            correlation_id=correlation_id or create_correlation_id(),
        )
        return result, self.describe_result(result)

    def describe_result(self, result: ActivationResult) -> str:
        """User-facing text for an activation outcome."""
        if result.success:
            return "License activated. Welcome!"
        if result.reason == ActivationFailureReason.DEVICE_LIMIT_REACHED:
            return (
                "This license key has already been activated on the maximum "
                f"of {result.limit} devices."
            )
        if result.reason == ActivationFailureReason.STORAGE_UNAVAILABLE:
            return (
                "Your activation could not be saved on this device. "
                "Please check disk space and permissions, then try again."
            )
        return "Invalid or incorrect license key."


class ExpenseFlow:
    """
    Orchestrates everything behind the tracker screens.

    Every change is audited. AI failures in get_insights and
    ask_assistant are turned into a friendly message instead of an
    exception.
    """

    def __init__(
        self,
        expenses: ExpenseRepository,
        budgets: BudgetRepository,
        goals: GoalRepository,
        state: LocalState,
        insight_service: Optional[InsightService] = None,
        audit_logger: Optional[AuditLogger] = None,
        default_currency: Optional[str] = None,
    ):
        self._expenses = expenses
        self._budgets = budgets
        self._goals = goals
        self._state = state
        self._insight_service = insight_service or InsightService()
        self._audit_logger = audit_logger
        self._default_currency = default_currency

    # ---------------------------
    # Expenses
    # ---------------------------
    def list_expenses(self) -> list[Expense]:
        return self._expenses.list_expenses()

    def add_expense(self, draft: ExpenseDraft) -> Expense:
        expense = self._expenses.add_expense(draft)
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.expense_added(
                expense.id, expense.title, expense.amount,
            ))
        return expense

    def update_expense(self, expense_id: str, draft: ExpenseDraft) -> Expense:
        expense = self._expenses.update_expense(expense_id, draft)
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.expense_updated(
                expense.id, expense.title, expense.amount,
            ))
        return expense

    def delete_expense(self, expense_id: str) -> bool:
        deleted = self._expenses.delete_expense(expense_id)
        if deleted and self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.expense_deleted(expense_id))
        return deleted

    # ---------------------------
    # Budgets and goals
    # ---------------------------
    def list_budgets(self) -> list[Budget]:
        return self._budgets.list_budgets()

    def update_budget(self, category: Category, amount: Decimal) -> Budget:
        budget = self._budgets.update_budget(category, amount)
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.budget_updated(
                category.value, budget.amount,
            ))
        return budget

    def list_goals(self) -> list[Goal]:
        return self._goals.list_goals()

    def propose_goal_plan(self, draft: GoalDraft) -> str:
        """
        Ask the AI for a savings plan before the goal is saved.

        Raises:
            InsightGenerationError: If the plan could not be generated
        """
        try:
            return self._insight_service.generate_goal_plan(
                title=draft.title,
                target_amount=draft.target_amount,
                expenses=self.list_expenses(),
                currency=self.get_currency(),
            )
        except InsightGenerationError as e:
            if self._audit_logger:
                self._audit_logger.log_external_service_error(
                    service=e.service,
                    error_message=str(e),
                )
            raise

    def add_goal(self, draft: GoalDraft) -> Goal:
        goal = self._goals.add_goal(draft)
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.goal_added(
                goal.id, goal.title, goal.target_amount,
            ))
        return goal

    def delete_goal(self, goal_id: str) -> bool:
        deleted = self._goals.delete_goal(goal_id)
        if deleted and self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.goal_deleted(goal_id))
        return deleted

    # ---------------------------
    # Dashboard
    # ---------------------------
    def expenses_for_period(
        self,
        time_view: TimeView,
        today: Optional[date] = None,
    ) -> list[Expense]:
        return filter_by_time_view(self.list_expenses(), time_view, today)

    def dashboard_summary(
        self,
        time_view: TimeView,
        today: Optional[date] = None,
    ) -> SpendingSummary:
        return summarize(self.expenses_for_period(time_view, today))

    def monthly_budget_progress(self, today: Optional[date] = None) -> list[BudgetProgress]:
        """Budgets are monthly, whatever the dashboard view."""
        return budget_progress(
            self.list_budgets(),
            self.expenses_for_period(TimeView.MONTHLY, today),
        )

    def get_insights(
        self,
        time_view: TimeView,
        today: Optional[date] = None,
    ) -> str:
        """AI summary for the period, or an apology if the model failed."""
        expenses = self.expenses_for_period(time_view, today)
        try:
            insight = self._insight_service.generate_insights(
                expenses=expenses,
                time_view=time_view,
                currency=self.get_currency(),
            )
        except InsightGenerationError as e:
            if self._audit_logger:
                self._audit_logger.log_external_service_error(
                    service=e.service,
                    error_message=str(e),
                )
            return INSIGHTS_UNAVAILABLE_MESSAGE

        if self._audit_logger and expenses and self._insight_service.is_enabled:
            self._audit_logger.log(AuditEventBuilder.insights_generated(
                time_view.value, len(expenses),
            ))
        return insight

    def ask_assistant(
        self,
        question: str,
        time_view: TimeView,
        today: Optional[date] = None,
    ) -> str:
        """
        Chat answer about the selected period, or an apology if the model failed.

        Raises:
            ValueError: If the question is blank
        """
        try:
            return self._insight_service.chat(
                question=question,
                expenses=self.expenses_for_period(time_view, today),
                budgets=self.list_budgets(),
                time_view=time_view,
                currency=self.get_currency(),
            )
        except InsightGenerationError as e:
            if self._audit_logger:
                self._audit_logger.log_external_service_error(
                    service=e.service,
                    error_message=str(e),
                )
            return CHAT_UNAVAILABLE_MESSAGE

    def spending_trend(
        self,
        months: int = 6,
        today: Optional[date] = None,
    ) -> list[MonthlySpending]:
        return monthly_trend(self.list_expenses(), months, today)

    # ---------------------------
    # Preferences
    # ---------------------------
    def get_currency(self) -> Currency:
        return Currency.from_code(self._state.get_currency_code() or self._default_currency)

    def set_currency(self, code: str) -> Currency:
        currency = Currency.from_code(code)
        self._state.set_currency_code(currency.code)
        return currency


@dataclass
class AppComponents:
    """Everything the UI needs, built once per process."""

    store: KeyValueStoreInterface
    state: LocalState
    license_manager: LicenseActivationManager
    license_flow: LicenseFlow
    expense_flow: ExpenseFlow
    audit_logger: AuditLogger


def create_app_components(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStoreInterface] = None,
    audit_logger: Optional[AuditLogger] = None,
    insight_service: Optional[InsightService] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Defaults to get_settings()
        store: Key-value store. Defaults to the JSON store in
               STORAGE_DATA_DIR.
        audit_logger: Defaults to a logger writing the JSON-lines
                      audit file next to the store.
        insight_service: Defaults to Gemini from GEMINI_* settings.
    """
    settings = settings or get_settings()
    storage_settings = settings.storage

    if store is None:
        store = JsonFileKeyValueStore(storage_settings.store_path)
    if audit_logger is None:
        audit_logger = AuditLogger(JsonLinesAuditStorage(storage_settings.audit_log_path))

    state = LocalState(store)
    manager = LicenseActivationManager(state, audit_logger=audit_logger)

    expense_flow = ExpenseFlow(
        expenses=ExpenseRepository(store),
        budgets=BudgetRepository(store),
        goals=GoalRepository(store),
        state=state,
        insight_service=insight_service or InsightService(settings.gemini),
        audit_logger=audit_logger,
        default_currency=settings.app.default_currency,
    )

    return AppComponents(
        store=store,
        state=state,
        license_manager=manager,
        license_flow=LicenseFlow(manager),
        expense_flow=expense_flow,
        audit_logger=audit_logger,
    )
