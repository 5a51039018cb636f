"""
LLM layer for the plan pipeline.

- providers: vendor adapters (DeepSeek/OpenAI over requests, Gemini via google-genai)
- completion: CompletionClient fallback chain returning CompletionResult
- extractor: raw text -> JSON value
"""

from app.llm.completion import CompletionClient, CompletionResult, get_completion_client
from app.llm.extractor import ExtractionResult, extract
from app.llm.providers import (
    CompletionProvider,
    FailingProvider,
    GeminiProvider,
    MockProvider,
    OpenAICompatibleProvider,
)

__all__ = [
    # Completion
    "CompletionClient",
    "CompletionResult",
    "get_completion_client",
    # Extraction
    "ExtractionResult",
    "extract",
    # Providers
    "CompletionProvider",
    "FailingProvider",
    "GeminiProvider",
    "MockProvider",
    "OpenAICompatibleProvider",
]
