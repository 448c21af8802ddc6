"""
Lesson session state machine.

A session is always in exactly one view:

    lesson[page] --next--> lesson[page+1] ... lesson[last] --next--> quiz[0]
                                                      \\--(no quiz)--> results
    quiz[i] --correct submit--> quiz[i+1] ... quiz[last] --correct--> results
    quiz[i] --wrong submit--> quiz[i] (explanation shown, retry allowed)

Every change goes through ``reduce``, which takes the current state, the
lesson and an action and returns a ``Transition``. ``reduce`` never mutates
its inputs and never raises for malformed lesson data; it reports
``malformed`` and leaves the state where it was.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, Mapping, Optional, Union

from .lesson import OPTIONS_PER_QUESTION, Lesson
from .scoring import aggregate, evaluate


class SessionView(str, Enum):
    LESSON = "lesson"
    QUIZ = "quiz"
    RESULTS = "results"


class TransitionOutcome(str, Enum):
    """What an action did to the session."""
    MOVED = "moved"            # page or question navigation
    SELECTED = "selected"      # answer recorded for the current question
    ADVANCED = "advanced"      # correct answer, next question shown
    RETRY = "retry"            # wrong answer, same question, explanation shown
    REJECTED = "rejected"      # submit without a selection
    FINALIZED = "finalized"    # entered results
    IGNORED = "ignored"        # action not applicable in this view/position
    MALFORMED = "malformed"    # expected page/question missing, progress halted
    RESET = "reset"            # back to lesson[0]


@dataclass(frozen=True)
class SessionState:
    """
    Snapshot of one session.

    Attributes:
        view: Active view
        page_index: Current lesson page
        question_index: Current quiz question (meaningful only in quiz view)
        answers: Question index -> selected option index
        correctly_answered: Questions answered correctly at least once
        score: Final percentage, set on entering results
        correct_count: Final correct count, set on entering results
        explanation: Explanation surfaced after a wrong answer
    """
    view: SessionView = SessionView.LESSON
    page_index: int = 0
    question_index: int = 0
    answers: Mapping[int, int] = field(default_factory=dict)
    correctly_answered: FrozenSet[int] = frozenset()
    score: Optional[int] = None
    correct_count: Optional[int] = None
    explanation: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.view is SessionView.RESULTS

    def selected_answer(self) -> Optional[int]:
        """Option recorded for the current question, if any."""
        return self.answers.get(self.question_index)


@dataclass(frozen=True)
class NextPage:
    pass


@dataclass(frozen=True)
class PreviousPage:
    pass


@dataclass(frozen=True)
class SelectAnswer:
    option_index: int


@dataclass(frozen=True)
class SubmitAnswer:
    pass


@dataclass(frozen=True)
class PreviousQuestion:
    pass


@dataclass(frozen=True)
class Restart:
    pass


Action = Union[NextPage, PreviousPage, SelectAnswer, SubmitAnswer, PreviousQuestion, Restart]


@dataclass(frozen=True)
class Transition:
    """Result of applying one action."""
    state: SessionState
    outcome: TransitionOutcome
    message: Optional[str] = None


def reduce(state: SessionState, lesson: Lesson, action: Action) -> Transition:
    """
    Apply an action to a session state.

    Args:
        state: Current state
        lesson: Lesson the session runs over
        action: Learner action

    Returns:
        Transition with the new state (the same object when nothing changed)

    Raises:
        ValueError: If SelectAnswer names an option outside 0-3
    """
    if isinstance(action, Restart):
        return Transition(SessionState(), TransitionOutcome.RESET)
    if isinstance(action, NextPage):
        return _next_page(state, lesson)
    if isinstance(action, PreviousPage):
        return _previous_page(state)
    if isinstance(action, SelectAnswer):
        return _select_answer(state, action.option_index)
    if isinstance(action, SubmitAnswer):
        return _submit_answer(state, lesson)
    if isinstance(action, PreviousQuestion):
        return _previous_question(state)
    raise TypeError(f"Unknown session action: {action!r}")


def _ignored(state: SessionState) -> Transition:
    return Transition(state, TransitionOutcome.IGNORED)


def _next_page(state: SessionState, lesson: Lesson) -> Transition:
    if state.view is not SessionView.LESSON:
        return _ignored(state)

    if lesson.page_at(state.page_index) is None:
        return Transition(
            state,
            TransitionOutcome.MALFORMED,
            f"Lesson page {state.page_index + 1} is missing.",
        )

    if state.page_index < lesson.page_count - 1:
        target = state.page_index + 1
        if lesson.page_at(target) is None:
            return Transition(
                state, TransitionOutcome.MALFORMED, f"Lesson page {target + 1} is missing."
            )
        return Transition(replace(state, page_index=target), TransitionOutcome.MOVED)

    # Last page: on to the quiz, or straight to results when there is none
    if lesson.has_quiz:
        return Transition(
            replace(state, view=SessionView.QUIZ, question_index=0, explanation=None),
            TransitionOutcome.MOVED,
        )
    return _finalize(state, lesson)


def _previous_page(state: SessionState) -> Transition:
    if state.view is not SessionView.LESSON or state.page_index == 0:
        return _ignored(state)
    return Transition(replace(state, page_index=state.page_index - 1), TransitionOutcome.MOVED)


def _select_answer(state: SessionState, option_index: int) -> Transition:
    if not (0 <= option_index < OPTIONS_PER_QUESTION):
        raise ValueError(
            f"Option index must be between 0 and {OPTIONS_PER_QUESTION - 1}, got {option_index}"
        )
    if state.view is not SessionView.QUIZ:
        return _ignored(state)

    answers = dict(state.answers)
    answers[state.question_index] = option_index
    return Transition(replace(state, answers=answers, explanation=None), TransitionOutcome.SELECTED)


def _submit_answer(state: SessionState, lesson: Lesson) -> Transition:
    if state.view is not SessionView.QUIZ:
        return _ignored(state)

    question = lesson.question_at(state.question_index)
    if question is None:
        return Transition(
            state,
            TransitionOutcome.MALFORMED,
            f"Quiz question {state.question_index + 1} is missing.",
        )

    selected = state.selected_answer()
    if selected is None:
        return Transition(state, TransitionOutcome.REJECTED, "Please choose an answer first.")

    if not evaluate(question, selected).is_correct:
        return Transition(
            replace(state, explanation=question.explanation),
            TransitionOutcome.RETRY,
            question.explanation,
        )

    state = replace(
        state,
        correctly_answered=state.correctly_answered | {state.question_index},
        explanation=None,
    )
    if state.question_index < lesson.question_count - 1:
        return Transition(
            replace(state, question_index=state.question_index + 1),
            TransitionOutcome.ADVANCED,
        )
    return _finalize(state, lesson)


def _previous_question(state: SessionState) -> Transition:
    if state.view is not SessionView.QUIZ or state.question_index == 0:
        return _ignored(state)
    return Transition(
        replace(state, question_index=state.question_index - 1, explanation=None),
        TransitionOutcome.MOVED,
    )


def _finalize(state: SessionState, lesson: Lesson) -> Transition:
    summary = aggregate(lesson.quiz, state.answers)
    return Transition(
        replace(
            state,
            view=SessionView.RESULTS,
            score=summary.score_percent,
            correct_count=summary.correct_count,
            explanation=None,
        ),
        TransitionOutcome.FINALIZED,
    )
