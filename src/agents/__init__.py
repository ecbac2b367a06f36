"""AI Agents package."""

from src.agents.expense_agent import (
    AmbiguousMemberError,
    ExpenseSuggestionAgent,
    InvalidSuggestedAmountError,
    InvalidSuggestedCategoryError,
    MalformedResponseError,
    ResponseParseError,
    UnknownMemberError,
)
from src.agents.text_generator import GeminiTextGenerator, TextGenerator

__all__ = [
    "ExpenseSuggestionAgent",
    "GeminiTextGenerator",
    "TextGenerator",
    # Exceptions
    "AmbiguousMemberError",
    "InvalidSuggestedAmountError",
    "InvalidSuggestedCategoryError",
    "MalformedResponseError",
    "ResponseParseError",
    "UnknownMemberError",
]
