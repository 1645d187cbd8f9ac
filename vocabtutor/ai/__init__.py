"""Remote AI provider clients."""

from .gemini_client import GeminiClient

__all__ = [
    "GeminiClient",
]
