"""
Core Data Models for Expense Tracker Pro

These models define the schemas for everything kept in the
device's key-value store besides license state.

DESIGN DECISION: Records are stored as plain JSON (model_dump(mode="json"))
so the store never holds anything a JSON reader cannot parse.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from expense_tracker.constants import CURRENCIES, DEFAULT_CURRENCY_CODE


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Category(str, Enum):
    """Supported expense categories."""
    FOOD = "Food"
    TRANSPORT = "Transport"
    HOUSING = "Housing"
    UTILITIES = "Utilities"
    ENTERTAINMENT = "Entertainment"
    HEALTH = "Health"
    SHOPPING = "Shopping"
    OTHER = "Other"


class TimeView(str, Enum):
    """Dashboard period. Weeks start on Monday."""
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    YEARLY = "Yearly"

    @property
    def period_noun(self) -> str:
        """'day', 'week', ... for user-facing text."""
        return {
            TimeView.DAILY: "day",
            TimeView.WEEKLY: "week",
            TimeView.MONTHLY: "month",
            TimeView.YEARLY: "year",
        }[self]


class Currency(BaseModel):
    """Display currency."""

    code: str
    name: str
    symbol: str

    @classmethod
    def from_code(cls, code: Optional[str]) -> 'Currency':
        """Look up a known currency, falling back to the default."""
        code = (code or "").upper()
        if code not in CURRENCIES:
            code = DEFAULT_CURRENCY_CODE
        name, symbol = CURRENCIES[code]
        return cls(code=code, name=name, symbol=symbol)

    def format(self, amount: Decimal) -> str:
        if self.code == "JPY":
            return f"{self.symbol}{amount:,.0f}"
        return f"{self.symbol}{amount:,.2f}"


def all_currencies() -> list[Currency]:
    return [Currency.from_code(code) for code in CURRENCIES]


# =============================================================================
# EXPENSES
# =============================================================================

class ExpenseDraft(BaseModel):
    """
    An expense as entered by the user, before it has an id.

    Title is required and the amount must be positive.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the money was spent on"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Amount in the user's currency"
    )
    category: Category = Field(
        default=Category.OTHER,
        description="Expense category"
    )
    date: dt.date = Field(
        default_factory=dt.date.today,
        description="Day the expense happened"
    )


class Expense(ExpenseDraft):
    """A stored expense."""

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Unique expense ID"
    )


# =============================================================================
# BUDGETS AND GOALS
# =============================================================================

class Budget(BaseModel):
    """Monthly spending limit for one category."""

    category: Category
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Budgeted amount; 0 means no budget"
    )


class GoalDraft(BaseModel):
    """A savings goal before it has an id."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    target_amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
    )
    ai_plan: Optional[str] = Field(
        default=None,
        description="AI-generated savings plan, if one was requested"
    )


class Goal(GoalDraft):
    """A stored savings goal."""

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Unique goal ID"
    )


# =============================================================================
# DASHBOARD MODELS
# =============================================================================

class SpendingSummary(BaseModel):
    """Totals for a set of expenses (usually one time view)."""

    total: Decimal = Decimal("0")
    transaction_count: int = Field(default=0, ge=0)
    average: Decimal = Decimal("0")
    by_category: dict[Category, Decimal] = Field(default_factory=dict)


class BudgetProgress(BaseModel):
    """How much of a category's budget has been spent."""

    category: Category
    budget: Decimal
    spent: Decimal
    percentage: float = Field(
        ...,
        ge=0.0,
        description="Spent as a percentage of budget"
    )

    @property
    def is_over_budget(self) -> bool:
        return self.percentage > 100

    @property
    def bar_percentage(self) -> float:
        """Percentage clamped for progress bars."""
        return min(self.percentage, 100.0)


class MonthlySpending(BaseModel):
    """Total spent in one calendar month, for the trend chart."""

    month: dt.date = Field(..., description="First day of the month")
    total: Decimal = Decimal("0")

    @property
    def key(self) -> str:
        return self.month.strftime("%Y-%m")

    @property
    def label(self) -> str:
        """Short axis label, e.g. "May 24"."""
        return self.month.strftime("%b %y")
