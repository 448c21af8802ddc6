"""
Attempt: the outcome record of one completed lesson session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Attempt:
    """
    Finished lesson session, handed to persistence once and never changed.

    Attributes:
        lesson_title: Title of the lesson taken
        lesson_topic: Requested topic (falls back to the title)
        subject: Lesson subject
        score: Quiz score percentage (0-100); 100 for lessons without a quiz
        total_questions: Number of quiz questions (0 when there was no quiz)
        correct_count: Questions answered correctly
        timestamp: Completion time, ISO 8601 in UTC
        chose_to_relearn: The learner was repeating this lesson on purpose
        attempt_id: Assigned by persistence
    """
    lesson_title: str
    lesson_topic: str
    subject: str
    score: int
    total_questions: int
    correct_count: int
    timestamp: str = field(default_factory=_utc_now_iso)
    chose_to_relearn: bool = False
    attempt_id: Optional[str] = None

    def __post_init__(self):
        if not (0 <= self.score <= 100):
            raise ValueError(f"Score must be between 0 and 100, got {self.score}")
        if self.total_questions < 0:
            raise ValueError(f"total_questions cannot be negative: {self.total_questions}")
        if not (0 <= self.correct_count <= self.total_questions):
            raise ValueError(
                f"correct_count must be between 0 and {self.total_questions}, "
                f"got {self.correct_count}"
            )

    @property
    def had_quiz(self) -> bool:
        return self.total_questions > 0

    @property
    def completed_at(self) -> datetime:
        """Timestamp as an aware datetime."""
        parsed = datetime.fromisoformat(self.timestamp.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def to_dict(self) -> Dict[str, Any]:
        """Persisted (camelCase) representation."""
        data: Dict[str, Any] = {
            "lessonTitle": self.lesson_title,
            "lessonTopic": self.lesson_topic,
            "subject": self.subject,
            "quizScore": self.score,
            "quizTotalQuestions": self.total_questions,
            "questionsAnsweredCorrectly": self.correct_count,
            "timestamp": self.timestamp,
            "choseToRelearn": self.chose_to_relearn,
        }
        if self.attempt_id:
            data["attemptId"] = self.attempt_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Attempt":
        return cls(
            lesson_title=data["lessonTitle"],
            lesson_topic=data.get("lessonTopic") or data["lessonTitle"],
            subject=data.get("subject", ""),
            score=int(data["quizScore"]),
            total_questions=int(data["quizTotalQuestions"]),
            correct_count=int(data["questionsAnsweredCorrectly"]),
            timestamp=data["timestamp"],
            chose_to_relearn=bool(data.get("choseToRelearn", False)),
            attempt_id=data.get("attemptId"),
        )
