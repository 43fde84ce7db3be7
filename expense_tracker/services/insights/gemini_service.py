"""
AI Insight Service

DESIGN DECISION: The LLM only ever sees the user's own expenses and
only produces prose. Every number on the dashboard is computed
deterministically in expense_tracker.expenses.summary; the model
summarizes, it does not calculate.

Without GEMINI_API_KEY the service stays usable and returns a
"disabled" message instead of calling out.
"""

import json
from decimal import Decimal
from typing import Any, Optional

import google.generativeai as genai

from expense_tracker.config import GeminiSettings, get_settings
from expense_tracker.expenses.summary import summarize
from expense_tracker.models.expense import Budget, Currency, Expense, TimeView


AI_DISABLED_MESSAGE = "AI features are disabled because the API key is not configured."


class InsightGenerationError(Exception):
    """The generative model failed or returned nothing usable."""

    def __init__(self, message: str, service: str = "gemini"):
        super().__init__(message)
        self.service = service


class InsightService:
    """
    Spending summaries, savings plans and chat answers from Gemini.

    The model is created on first use, so constructing the service
    never needs network access or credentials.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[Any] = None,
    ):
        """
        Args:
            settings: Gemini configuration. Defaults to the environment.
            model: Pre-built model exposing generate_content(prompt).
                   Mainly for tests.
        """
        self._settings = settings or get_settings().gemini
        self._model = model

    @property
    def is_enabled(self) -> bool:
        return self._model is not None or self._settings.is_configured

    def _get_model(self):
        """Configure Google Generative AI."""
        if self._model is None:
            genai.configure(api_key=self._settings.api_key)
            self._model = genai.GenerativeModel(
                model_name=self._settings.model_name,
                generation_config={
                    "temperature": self._settings.temperature,
                    "max_output_tokens": self._settings.max_tokens,
                }
            )
        return self._model

    def _generate(self, prompt: str) -> str:
        try:
            response = self._get_model().generate_content(prompt)
            text = (response.text or "").strip()
        except Exception as e:
            raise InsightGenerationError(f"Failed to generate insights from Gemini API: {e}") from e

        if not text:
            raise InsightGenerationError("Gemini API returned an empty response")
        return text

    def generate_insights(
        self,
        expenses: list[Expense],
        time_view: TimeView,
        currency: Currency,
    ) -> str:
        """
        Markdown summary of a period's spending with three saving tips.

        Raises:
            InsightGenerationError: If the model call fails
        """
        if not self.is_enabled:
            return AI_DISABLED_MESSAGE

        if not expenses:
            return (
                f"You have no expenses logged for this {time_view.period_noun}. "
                "Add some expenses to get AI-powered insights!"
            )

        expense_data = json.dumps(
            [e.model_dump(mode="json") for e in expenses],
            indent=2,
            ensure_ascii=False,
        )

        prompt = f"""You are a friendly and insightful financial assistant.
The user's currency is {currency.name} ({currency.code}). When you mention any monetary values, use the symbol: {currency.symbol}.
Based on the following expense data for the last {time_view.period_noun}, provide a brief summary of spending habits and offer 3 actionable, personalized tips for saving money.
Format your response in Markdown. Use headings for the summary and tips. Use bullet points for the tips. Keep the tone encouraging and helpful.

Expense Data (JSON):
{expense_data}
"""
        return self._generate(prompt)

    def generate_goal_plan(
        self,
        title: str,
        target_amount: Decimal,
        expenses: list[Expense],
        currency: Currency,
    ) -> str:
        """
        Short savings plan for a goal, based on recent spending by category.

        Raises:
            InsightGenerationError: If the model call fails
        """
        if not self.is_enabled:
            return AI_DISABLED_MESSAGE

        summary = summarize(expenses)
        spending_lines = "\n".join(
            f"- {category.value}: {currency.format(amount)}"
            for category, amount in sorted(
                summary.by_category.items(),
                key=lambda item: item[1],
                reverse=True,
            )
        ) or "- No expenses recorded yet"

        prompt = f"""You are a friendly financial assistant helping someone save for a goal.
Goal: {title}
Target amount: {currency.format(target_amount)}

Their recorded spending by category:
{spending_lines}

Write a short, practical savings plan (at most 5 bullet points) in Markdown.
Suggest specific categories to cut back on and a realistic monthly saving amount in {currency.code} ({currency.symbol}).
"""
        return self._generate(prompt)

    def chat(
        self,
        question: str,
        expenses: list[Expense],
        budgets: list[Budget],
        time_view: TimeView,
        currency: Currency,
    ) -> str:
        """
        Answer a free-form question about the selected period's spending.

        Raises:
            ValueError: If the question is blank
            InsightGenerationError: If the model call fails
        """
        question = (question or "").strip()
        if not question:
            raise ValueError("Question is required")

        if not self.is_enabled:
            return AI_DISABLED_MESSAGE

        expense_data = json.dumps(
            [e.model_dump(mode="json") for e in expenses],
            indent=2,
            ensure_ascii=False,
        )
        budget_lines = "\n".join(
            f"- {b.category.value}: {currency.format(b.amount)} per month"
            for b in budgets
            if b.amount > 0
        ) or "- No budgets set"

        prompt = f"""You are a friendly financial assistant answering questions about the user's own spending.
The user's currency is {currency.name} ({currency.code}). When you mention any monetary values, use the symbol: {currency.symbol}.
Only use the data below, which covers the current {time_view.period_noun}. If the data cannot answer the question, say so.
Keep the answer short and format it in Markdown.

Monthly budgets:
{budget_lines}

Expense Data (JSON):
{expense_data}

Question: {question}
"""
        return self._generate(prompt)
