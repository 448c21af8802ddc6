"""
Lesson history summaries for the recommendation prompt.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

from ..models.attempt import Attempt

NO_HISTORY = "No lesson history available yet."


def time_ago(moment: datetime, now: Optional[datetime] = None) -> str:
    """
    Rough relative age, e.g. "3 days ago".

    Example:
        >>> time_ago(now - timedelta(hours=5), now)
        'about 5 hours ago'
    """
    now = now or datetime.now(timezone.utc)
    seconds = max(0.0, (now - moment).total_seconds())

    minutes = round(seconds / 60)
    if minutes < 1:
        return "less than a minute ago"
    if minutes < 45:
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"

    hours = round(seconds / 3600)
    if hours < 24:
        return f"about {hours} hour{'s' if hours != 1 else ''} ago"

    days = round(seconds / 86400)
    if days < 30:
        return f"{days} day{'s' if days != 1 else ''} ago"

    months = round(days / 30)
    if months < 12:
        return f"{months} month{'s' if months != 1 else ''} ago"

    years = round(days / 365)
    return f"about {years} year{'s' if years != 1 else ''} ago"


def format_attempt_line(attempt: Attempt, now: Optional[datetime] = None) -> str:
    """One history line for an attempt."""
    line = (
        f'Lesson: "{attempt.lesson_title}" '
        f"(Topic: {attempt.lesson_topic or 'N/A'}, Subject: {attempt.subject or 'N/A'})"
    )
    if attempt.had_quiz:
        line += (
            f", Score: {attempt.score}% "
            f"({attempt.correct_count}/{attempt.total_questions} correct)"
        )
    else:
        line += ", No quiz"
    line += f", completed {time_ago(attempt.completed_at, now)}."
    if attempt.chose_to_relearn:
        line += " Chose to relearn."
    return line


def format_lesson_history_summary(
    attempts: Sequence[Attempt],
    now: Optional[datetime] = None,
    limit: int = 5,
) -> str:
    """
    Summarise the most recent attempts, newest first.

    Args:
        attempts: Attempts in completion order (oldest first)
        now: Reference time for relative ages
        limit: Maximum number of attempts to include

    Returns:
        Newline-separated summary, or a fixed sentence when there is no history
    """
    if not attempts:
        return NO_HISTORY
    recent = list(attempts)[-limit:]
    return "\n".join(format_attempt_line(a, now) for a in reversed(recent))
