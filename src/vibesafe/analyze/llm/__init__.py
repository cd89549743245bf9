"""Fix-suggestion generation backed by an LLM."""

from .llm_client import LLMClient, LLMResponse, LLMUsage
from .suggestions import SuggestionGenerator, summarize_findings

__all__ = [
    "LLMClient",
    "LLMResponse",
    "LLMUsage",
    "SuggestionGenerator",
    "summarize_findings",
]
