"""
Data models for lesson sessions.

This module contains pure data and logic (no I/O):
- Lesson, LessonPage, QuizQuestion, CurriculumAlignment: lesson content
- Attempt: outcome record of a completed session
- LearnerProfile: profile fields a session needs
- SessionState and reduce: the session state machine
- evaluate / aggregate: answer checking and quiz scoring
"""

from .attempt import Attempt
from .learner_profile import LearnerProfile
from .lesson import CurriculumAlignment, Lesson, LessonPage, QuizQuestion
from .recommendation import Recommendation, RecommendationRequest
from .scoring import Evaluation, ScoreSummary, aggregate, evaluate
from .session_state import SessionState, SessionView, Transition, TransitionOutcome, reduce

__all__ = [
    "Attempt",
    "LearnerProfile",
    "CurriculumAlignment",
    "Lesson",
    "LessonPage",
    "QuizQuestion",
    "Recommendation",
    "RecommendationRequest",
    "Evaluation",
    "ScoreSummary",
    "aggregate",
    "evaluate",
    "SessionState",
    "SessionView",
    "Transition",
    "TransitionOutcome",
    "reduce",
]
