"""
Answer evaluation and quiz scoring.

Both functions are pure: no state, no side effects, safe to call repeatedly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from .lesson import QuizQuestion


@dataclass(frozen=True)
class Evaluation:
    """Outcome of checking one selected option."""
    is_correct: bool


@dataclass(frozen=True)
class ScoreSummary:
    """Final quiz result."""
    correct_count: int
    score_percent: int


def evaluate(question: QuizQuestion, selected_index: Optional[int]) -> Evaluation:
    """
    Check a selected option against the question's correct index.

    Args:
        question: Question being answered
        selected_index: Index of the option the learner picked

    Returns:
        Evaluation with is_correct set
    """
    return Evaluation(is_correct=selected_index == question.correct_answer_index)


def round_half_up_percent(part: int, whole: int) -> int:
    """part/whole as a percentage, rounded half up without float error."""
    return (200 * part + whole) // (2 * whole)


def aggregate(
    questions: Sequence[QuizQuestion],
    answers: Mapping[int, int],
) -> ScoreSummary:
    """
    Score a quiz from the final answer map.

    Unanswered questions count as incorrect. A quiz with no questions scores 100.

    Args:
        questions: All quiz questions, index-addressed
        answers: Question index -> selected option index (may be sparse)

    Returns:
        ScoreSummary with correct_count and score_percent

    Example:
        >>> aggregate(quiz, {0: 2, 1: 1, 2: 0})  # two of three right
        ScoreSummary(correct_count=2, score_percent=67)
    """
    total = len(questions)
    if total == 0:
        return ScoreSummary(correct_count=0, score_percent=100)

    correct_count = sum(
        1
        for index, question in enumerate(questions)
        if index in answers and evaluate(question, answers[index]).is_correct
    )
    return ScoreSummary(
        correct_count=correct_count,
        score_percent=round_half_up_percent(correct_count, total),
    )
