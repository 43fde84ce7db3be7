"""Expense, budget and goal records."""

from expense_tracker.expenses.repository import (
    BudgetRepository,
    ExpenseRepository,
    GoalRepository,
)
from expense_tracker.expenses.summary import (
    budget_progress,
    filter_by_time_view,
    monthly_trend,
    period_bounds,
    summarize,
)

__all__ = [
    "BudgetRepository",
    "ExpenseRepository",
    "GoalRepository",
    "budget_progress",
    "filter_by_time_view",
    "monthly_trend",
    "period_bounds",
    "summarize",
]
