"""
Utility modules for ShannonLearn.

- speech: single-owner read-aloud coordinator
- usage: daily/weekly usage gate and stores
- recommendation: stale-safe recommendation fetcher
- persistence: attempt storage with schema validation
- validation: JSON Schema validation
- history: lesson history summaries
- background: fire-and-forget dispatch (loop task or daemon thread)
"""

from .background import join_background, spawn_background
from .history import format_lesson_history_summary
from .persistence import AttemptPersistence, get_persistence_manager
from .recommendation import RecommendationFetcher
from .speech import SpeechAction, SpeechCoordinator, SpeechEngine
from .usage import InMemoryUsageStore, JsonUsageStore, UsageGuard, UsageSnapshot
from .validation import (
    AttemptValidator,
    LessonValidator,
    SchemaValidator,
    validate_attempt,
    validate_lesson,
)

__all__ = [
    "join_background",
    "spawn_background",
    "format_lesson_history_summary",
    "AttemptPersistence",
    "get_persistence_manager",
    "RecommendationFetcher",
    "SpeechAction",
    "SpeechCoordinator",
    "SpeechEngine",
    "InMemoryUsageStore",
    "JsonUsageStore",
    "UsageGuard",
    "UsageSnapshot",
    "AttemptValidator",
    "LessonValidator",
    "SchemaValidator",
    "validate_attempt",
    "validate_lesson",
]
