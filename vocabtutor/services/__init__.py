"""Services for the vocabtutor application."""

from .practice_service import PracticeService

__all__ = [
    "PracticeService",
]
