"""AI insight services."""

from expense_tracker.services.insights.gemini_service import (
    AI_DISABLED_MESSAGE,
    InsightGenerationError,
    InsightService,
)

__all__ = [
    "AI_DISABLED_MESSAGE",
    "InsightGenerationError",
    "InsightService",
]
