"""Pronunciation evaluation models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class SpeechEvaluation:
    """AI-graded pronunciation result for one attempt."""
    score: float  # 0-100
    feedback: str
    mispronounced_phonemes: List[str] = field(default_factory=list)
    improvement_tip: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpeechEvaluation":
        """Build an evaluation from the provider's camelCase JSON object.

        Raises:
            ValueError: If a required field is missing or has the wrong type,
                or the score falls outside [0, 100].
        """
        if not isinstance(data, dict):
            raise ValueError(f"Evaluation must be a JSON object, got {type(data).__name__}")

        missing = [k for k in ("score", "feedback", "mispronouncedPhonemes", "improvementTip")
                   if k not in data]
        if missing:
            raise ValueError(f"Evaluation missing fields: {', '.join(missing)}")

        score = data["score"]
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise ValueError(f"Evaluation score is not numeric: {score!r}")
        if not 0 <= score <= 100:
            raise ValueError(f"Evaluation score out of range: {score}")

        phonemes = data["mispronouncedPhonemes"]
        if not isinstance(phonemes, list):
            raise ValueError("mispronouncedPhonemes must be a list")

        return cls(
            score=float(score),
            feedback=str(data["feedback"]),
            mispronounced_phonemes=[str(p) for p in phonemes],
            improvement_tip=str(data["improvementTip"]),
        )
