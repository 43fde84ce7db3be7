"""
Expense, Budget and Goal Repositories

Each collection is one JSON array under a single key of the
key-value store. Lists are small (one person's expenses), so every
change rewrites the array.

Malformed entries are skipped on read rather than failing the whole
list - one bad record should not hide the rest. They are written back
unchanged after the valid entries, so a save never loses data this
version cannot read. A value that is not an array at all is replaced
on the next write.
"""

from decimal import Decimal
from typing import Optional, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from expense_tracker.constants import BUDGETS_KEY, EXPENSES_KEY, GOALS_KEY
from expense_tracker.models.expense import (
    Budget,
    Category,
    Expense,
    ExpenseDraft,
    Goal,
    GoalDraft,
)
from expense_tracker.services.storage import KeyValueStoreInterface, NotFoundError


logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _load_list(
    store: KeyValueStoreInterface,
    key: str,
    model: type[ModelT],
) -> list[ModelT]:
    raw = store.get(key, [])
    if not isinstance(raw, list):
        logger.warning("collection_malformed", key=key, value_type=type(raw).__name__)
        return []

    items = []
    for index, entry in enumerate(raw):
        try:
            items.append(model.model_validate(entry))
        except ValidationError as e:
            logger.warning(
                "collection_entry_skipped",
                key=key,
                index=index,
                errors=e.error_count(),
            )
    return items


def _unreadable_entries(
    store: KeyValueStoreInterface,
    key: str,
    model: type[BaseModel],
) -> list:
    raw = store.get(key, [])
    if not isinstance(raw, list):
        return []

    unreadable = []
    for entry in raw:
        try:
            model.model_validate(entry)
        except ValidationError:
            unreadable.append(entry)
    return unreadable


def _save_list(
    store: KeyValueStoreInterface,
    key: str,
    model: type[ModelT],
    items: list[ModelT],
) -> None:
    kept = _unreadable_entries(store, key, model)
    store.set(key, [item.model_dump(mode="json") for item in items] + kept)


def _newest_first(expenses: list[Expense]) -> list[Expense]:
    return sorted(expenses, key=lambda e: e.date, reverse=True)


class ExpenseRepository:
    """Expenses, always returned newest date first."""

    def __init__(self, store: KeyValueStoreInterface):
        self._store = store

    def list_expenses(self) -> list[Expense]:
        return _newest_first(_load_list(self._store, EXPENSES_KEY, Expense))

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        for expense in self.list_expenses():
            if expense.id == expense_id:
                return expense
        return None

    def add_expense(self, draft: ExpenseDraft) -> Expense:
        """Store a new expense under a fresh id."""
        expense = Expense(**draft.model_dump())
        expenses = self.list_expenses()
        expenses.append(expense)
        _save_list(self._store, EXPENSES_KEY, Expense, _newest_first(expenses))
        return expense

    def update_expense(self, expense_id: str, draft: ExpenseDraft) -> Expense:
        """
        Replace an expense's fields, keeping its id.

        Raises:
            NotFoundError: If no expense has this id
        """
        expenses = self.list_expenses()
        for index, existing in enumerate(expenses):
            if existing.id == expense_id:
                updated = Expense(id=expense_id, **draft.model_dump())
                expenses[index] = updated
                _save_list(self._store, EXPENSES_KEY, Expense, _newest_first(expenses))
                return updated

        raise NotFoundError(f"Expense not found: {expense_id}", key=EXPENSES_KEY)

    def delete_expense(self, expense_id: str) -> bool:
        """Delete an expense. Returns False if it did not exist."""
        expenses = self.list_expenses()
        remaining = [e for e in expenses if e.id != expense_id]
        if len(remaining) == len(expenses):
            return False
        _save_list(self._store, EXPENSES_KEY, Expense, remaining)
        return True


class BudgetRepository:
    """One budget per category."""

    def __init__(self, store: KeyValueStoreInterface):
        self._store = store

    def list_budgets(self) -> list[Budget]:
        return _load_list(self._store, BUDGETS_KEY, Budget)

    def get_budget(self, category: Category) -> Optional[Budget]:
        for budget in self.list_budgets():
            if budget.category == category:
                return budget
        return None

    def update_budget(self, category: Category, amount: Decimal) -> Budget:
        """Create or replace the budget for a category."""
        new_budget = Budget(category=category, amount=amount)
        budgets = self.list_budgets()
        for index, existing in enumerate(budgets):
            if existing.category == category:
                budgets[index] = new_budget
                break
        else:
            budgets.append(new_budget)
        _save_list(self._store, BUDGETS_KEY, Budget, budgets)
        return new_budget


class GoalRepository:
    """Savings goals, in the order they were added."""

    def __init__(self, store: KeyValueStoreInterface):
        self._store = store

    def list_goals(self) -> list[Goal]:
        return _load_list(self._store, GOALS_KEY, Goal)

    def add_goal(self, draft: GoalDraft) -> Goal:
        goal = Goal(**draft.model_dump())
        goals = self.list_goals()
        goals.append(goal)
        _save_list(self._store, GOALS_KEY, Goal, goals)
        return goal

    def delete_goal(self, goal_id: str) -> bool:
        goals = self.list_goals()
        remaining = [g for g in goals if g.id != goal_id]
        if len(remaining) == len(goals):
            return False
        _save_list(self._store, GOALS_KEY, Goal, remaining)
        return True
