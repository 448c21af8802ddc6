"""
Learner profile: the slice of a child profile a lesson session needs.

Profiles are owned by the external profile store; the session only reads the
recommendation context, the read-aloud language and the usage limits.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

LearningStyle = Literal[
    "visual", "auditory", "kinesthetic", "reading_writing", "balanced_mixed"
]


@dataclass(frozen=True)
class LearnerProfile:
    """
    Child profile fields used by the session controller.

    Attributes:
        learner_id: Profile identifier
        name: Display name
        age: Age in years
        interests: Free text, e.g. "Dinosaurs, space"
        learning_difficulties: Free text, e.g. "Dyslexia"
        curriculum: Curriculum focus, e.g. "US Grade 2 Math"
        learning_style: Preferred learning style tag
        language: BCP 47 language tag used for read-aloud
        daily_usage_limit_minutes: None means unlimited
        weekly_usage_limit_minutes: None means unlimited
    """
    learner_id: str
    name: str
    age: int
    curriculum: str
    interests: str = ""
    learning_difficulties: str = ""
    learning_style: Optional[LearningStyle] = None
    language: Optional[str] = None
    daily_usage_limit_minutes: Optional[int] = None
    weekly_usage_limit_minutes: Optional[int] = None

    def __post_init__(self):
        if not self.learner_id:
            raise ValueError("learner_id cannot be empty")
        if self.age < 0:
            raise ValueError(f"age cannot be negative: {self.age}")
        for name in ("daily_usage_limit_minutes", "weekly_usage_limit_minutes"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} cannot be negative: {value}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LearnerProfile":
        """Build from the profile store's camelCase document."""
        return cls(
            learner_id=data["id"],
            name=data.get("name", ""),
            age=int(data.get("age", 0)),
            curriculum=data.get("curriculum", ""),
            interests=data.get("interests", "") or "",
            learning_difficulties=data.get("learningDifficulties", "") or "",
            learning_style=data.get("learningStyle"),
            language=data.get("language"),
            daily_usage_limit_minutes=data.get("dailyUsageLimitMinutes"),
            weekly_usage_limit_minutes=data.get("weeklyUsageLimitMinutes"),
        )
