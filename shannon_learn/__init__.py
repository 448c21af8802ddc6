"""
ShannonLearn lesson session core.

Drives a learner through lesson pages and a retry-until-correct quiz, scores
the result, and coordinates read-aloud, usage limits and next-lesson
recommendations.
"""

from .session_controller import Notice, SessionController

__all__ = [
    "Notice",
    "SessionController",
]

__version__ = "0.1.0"
