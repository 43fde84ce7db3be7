"""
Spending Summaries

Deterministic dashboard numbers: which expenses fall in the selected
period, their totals, how far each budget has been used, and the
month-by-month spending trend.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from expense_tracker.models.expense import (
    Budget,
    BudgetProgress,
    Category,
    Expense,
    MonthlySpending,
    SpendingSummary,
    TimeView,
)


_CENTS = Decimal("0.01")


def _in_period(day: date, view: TimeView, today: date) -> bool:
    if view == TimeView.DAILY:
        return day == today
    if view == TimeView.WEEKLY:
        # ISO weeks start on Monday
        return day.isocalendar()[:2] == today.isocalendar()[:2]
    if view == TimeView.YEARLY:
        return day.year == today.year
    return (day.year, day.month) == (today.year, today.month)


def filter_by_time_view(
    expenses: list[Expense],
    view: TimeView,
    today: Optional[date] = None,
) -> list[Expense]:
    """Expenses falling in the same day/week/month/year as today."""
    today = today or date.today()
    return [e for e in expenses if _in_period(e.date, view, today)]


def period_bounds(view: TimeView, today: Optional[date] = None) -> tuple[date, date]:
    """First and last day of the period containing today."""
    today = today or date.today()

    if view == TimeView.DAILY:
        return today, today
    if view == TimeView.WEEKLY:
        start = date.fromordinal(today.toordinal() - today.weekday())
        return start, date.fromordinal(start.toordinal() + 6)
    if view == TimeView.YEARLY:
        return date(today.year, 1, 1), date(today.year, 12, 31)

    start = today.replace(day=1)
    if today.month == 12:
        next_month = date(today.year + 1, 1, 1)
    else:
        next_month = date(today.year, today.month + 1, 1)
    return start, date.fromordinal(next_month.toordinal() - 1)


def summarize(expenses: list[Expense]) -> SpendingSummary:
    """Total, count, average and per-category spending."""
    if not expenses:
        return SpendingSummary()

    total = sum((e.amount for e in expenses), Decimal("0"))
    by_category: dict[Category, Decimal] = {}
    for expense in expenses:
        by_category[expense.category] = by_category.get(expense.category, Decimal("0")) + expense.amount

    average = (total / len(expenses)).quantize(_CENTS, rounding=ROUND_HALF_UP)
    return SpendingSummary(
        total=total,
        transaction_count=len(expenses),
        average=average,
        by_category=by_category,
    )


def budget_progress(
    budgets: list[Budget],
    expenses: list[Expense],
) -> list[BudgetProgress]:
    """
    Progress for every category with a positive budget.

    Expenses should already be filtered to the budget period
    (the dashboard uses the current month).
    """
    spent_by_category = summarize(expenses).by_category

    progress = []
    for category in Category:
        budget = next((b for b in budgets if b.category == category), None)
        if budget is None or budget.amount <= 0:
            continue
        spent = spent_by_category.get(category, Decimal("0"))
        progress.append(BudgetProgress(
            category=category,
            budget=budget.amount,
            spent=spent,
            percentage=float(spent / budget.amount * 100),
        ))
    return progress


def monthly_trend(
    expenses: list[Expense],
    months: int = 6,
    today: Optional[date] = None,
) -> list[MonthlySpending]:
    """
    Spending per calendar month, oldest first, ending with the current month.

    Every month in the window appears, with a zero total if nothing
    was spent. Expenses outside the window are ignored.
    """
    if months < 1:
        raise ValueError(f"months must be at least 1, got {months}")
    today = today or date.today()

    starts = []
    year, month = today.year, today.month
    for _ in range(months):
        starts.append(date(year, month, 1))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    starts.reverse()

    totals = {start: Decimal("0") for start in starts}
    for expense in expenses:
        start = expense.date.replace(day=1)
        if start in totals:
            totals[start] += expense.amount

    return [MonthlySpending(month=start, total=totals[start]) for start in starts]
