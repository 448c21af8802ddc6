"""
Request and response types of the next-lesson recommendation service.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol


@dataclass(frozen=True)
class RecommendationRequest:
    """
    Learner context sent to the recommendation service.

    Attributes:
        child_age: Learner age in years
        interests: Free-text interests
        learning_difficulties: Free-text difficulties
        curriculum: Curriculum focus the topic must align with
        lesson_history_summary: Recent attempts, one per line
        learning_style: Preferred learning style tag
    """
    child_age: int
    curriculum: str
    lesson_history_summary: str
    interests: str = ""
    learning_difficulties: str = ""
    learning_style: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "childAge": self.child_age,
            "interests": self.interests,
            "learningDifficulties": self.learning_difficulties,
            "curriculum": self.curriculum,
            "lessonHistorySummary": self.lesson_history_summary,
            "learningStyle": self.learning_style,
        }


@dataclass(frozen=True)
class Recommendation:
    """Suggested next lesson topic."""
    recommended_topic: str
    reasoning: str
    confidence: Optional[float] = None

    def __post_init__(self):
        if self.confidence is not None and not (0.0 <= self.confidence <= 1.0):
            raise ValueError(f"confidence must be between 0 and 1, got {self.confidence}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recommendedTopic": self.recommended_topic,
            "reasoning": self.reasoning,
            "confidence": self.confidence,
        }


class RecommendationService(Protocol):
    """Anything that can suggest a next topic. Failures raise RecommendationError."""

    async def recommend(self, request: RecommendationRequest) -> Recommendation: ...
