"""
Unit tests for the session state machine (reduce).

Every transition is exercised without a controller or any I/O.
"""

import unittest

from shannon_learn.models.lesson import Lesson, LessonPage
from shannon_learn.models.session_state import (
    NextPage,
    PreviousPage,
    PreviousQuestion,
    Restart,
    SelectAnswer,
    SessionState,
    SessionView,
    SubmitAnswer,
    TransitionOutcome,
    reduce,
)
from tests.unit.fakes import make_lesson, make_question


def run(lesson, actions, state=None):
    """Apply actions in order and return the last transition."""
    state = state or SessionState()
    transition = None
    for action in actions:
        transition = reduce(state, lesson, action)
        state = transition.state
    return transition


class TestLessonNavigation(unittest.TestCase):
    """Test page traversal."""

    def setUp(self):
        self.lesson = make_lesson(pages=3, questions=[make_question()])

    def test_initial_state(self):
        state = SessionState()
        self.assertIs(state.view, SessionView.LESSON)
        self.assertEqual(state.page_index, 0)
        self.assertEqual(dict(state.answers), {})
        self.assertIsNone(state.score)

    def test_next_page_advances(self):
        transition = reduce(SessionState(), self.lesson, NextPage())
        self.assertEqual(transition.outcome, TransitionOutcome.MOVED)
        self.assertEqual(transition.state.page_index, 1)

    def test_previous_page_goes_back(self):
        transition = run(self.lesson, [NextPage(), NextPage(), PreviousPage()])
        self.assertEqual(transition.state.page_index, 1)

    def test_previous_on_first_page_ignored(self):
        state = SessionState()
        transition = reduce(state, self.lesson, PreviousPage())
        self.assertEqual(transition.outcome, TransitionOutcome.IGNORED)
        self.assertIs(transition.state, state)

    def test_last_page_enters_quiz(self):
        transition = run(self.lesson, [NextPage(), NextPage(), NextPage()])
        self.assertIs(transition.state.view, SessionView.QUIZ)
        self.assertEqual(transition.state.question_index, 0)

    def test_last_page_without_quiz_finalizes_with_100(self):
        lesson = make_lesson(pages=3)
        transition = run(lesson, [NextPage(), NextPage(), NextPage()])
        self.assertEqual(transition.outcome, TransitionOutcome.FINALIZED)
        self.assertIs(transition.state.view, SessionView.RESULTS)
        self.assertEqual(transition.state.score, 100)
        self.assertEqual(transition.state.correct_count, 0)

    def test_page_actions_ignored_in_quiz(self):
        transition = run(self.lesson, [NextPage(), NextPage(), NextPage(), PreviousPage()])
        self.assertEqual(transition.outcome, TransitionOutcome.IGNORED)
        self.assertIs(transition.state.view, SessionView.QUIZ)


class TestMalformedLesson(unittest.TestCase):
    """Missing data halts progress instead of raising."""

    def test_missing_next_page(self):
        lesson = Lesson(
            title="Broken",
            subject="Math",
            lesson_format="story",
            pages=[LessonPage(sentences=["One."]), None, LessonPage(sentences=["Three."])],
        )
        state = SessionState()
        transition = reduce(state, lesson, NextPage())
        self.assertEqual(transition.outcome, TransitionOutcome.MALFORMED)
        self.assertIs(transition.state, state)
        self.assertIn("page 2", transition.message)

    def test_lesson_without_pages(self):
        lesson = Lesson(title="Empty", subject="Math", lesson_format="story", pages=[])
        transition = reduce(SessionState(), lesson, NextPage())
        self.assertEqual(transition.outcome, TransitionOutcome.MALFORMED)
        self.assertIs(transition.state.view, SessionView.LESSON)

    def test_question_index_out_of_range(self):
        lesson = make_lesson(pages=1, questions=[make_question()])
        state = SessionState(view=SessionView.QUIZ, question_index=5, answers={5: 1})
        transition = reduce(state, lesson, SubmitAnswer())
        self.assertEqual(transition.outcome, TransitionOutcome.MALFORMED)
        self.assertIs(transition.state, state)


class TestQuizFlow(unittest.TestCase):
    """Test answering with retry-until-correct."""

    def setUp(self):
        self.lesson = make_lesson(pages=1, questions=[make_question(correct=2), make_question(correct=0)])
        self.quiz_state = reduce(SessionState(), self.lesson, NextPage()).state

    def test_submit_without_selection_rejected(self):
        transition = reduce(self.quiz_state, self.lesson, SubmitAnswer())
        self.assertEqual(transition.outcome, TransitionOutcome.REJECTED)
        self.assertIs(transition.state, self.quiz_state)

    def test_wrong_answer_stays_and_shows_explanation(self):
        transition = run(self.lesson, [SelectAnswer(0), SubmitAnswer()], self.quiz_state)
        self.assertEqual(transition.outcome, TransitionOutcome.RETRY)
        self.assertEqual(transition.state.question_index, 0)
        self.assertEqual(transition.state.explanation, "Look again at page 2.")
        self.assertEqual(transition.message, "Look again at page 2.")
        self.assertNotIn(0, transition.state.correctly_answered)

    def test_new_selection_clears_explanation(self):
        transition = run(
            self.lesson, [SelectAnswer(0), SubmitAnswer(), SelectAnswer(1)], self.quiz_state
        )
        self.assertEqual(transition.outcome, TransitionOutcome.SELECTED)
        self.assertIsNone(transition.state.explanation)
        self.assertEqual(transition.state.answers[0], 1)

    def test_correct_answer_advances(self):
        transition = run(self.lesson, [SelectAnswer(2), SubmitAnswer()], self.quiz_state)
        self.assertEqual(transition.outcome, TransitionOutcome.ADVANCED)
        self.assertEqual(transition.state.question_index, 1)
        self.assertIn(0, transition.state.correctly_answered)

    def test_retries_then_all_correct_scores_100(self):
        transition = run(
            self.lesson,
            [
                SelectAnswer(0), SubmitAnswer(),
                SelectAnswer(3), SubmitAnswer(),
                SelectAnswer(2), SubmitAnswer(),
                SelectAnswer(1), SubmitAnswer(),
                SelectAnswer(0), SubmitAnswer(),
            ],
            self.quiz_state,
        )
        self.assertEqual(transition.outcome, TransitionOutcome.FINALIZED)
        self.assertEqual(transition.state.score, 100)
        self.assertEqual(transition.state.correct_count, 2)
        self.assertEqual(transition.state.correctly_answered, frozenset({0, 1}))

    def test_previous_question_keeps_answer(self):
        transition = run(
            self.lesson, [SelectAnswer(2), SubmitAnswer(), PreviousQuestion()], self.quiz_state
        )
        self.assertEqual(transition.outcome, TransitionOutcome.MOVED)
        self.assertEqual(transition.state.question_index, 0)
        self.assertEqual(transition.state.answers[0], 2)

    def test_resubmit_after_going_back_advances_again(self):
        transition = run(
            self.lesson,
            [SelectAnswer(2), SubmitAnswer(), PreviousQuestion(), SubmitAnswer()],
            self.quiz_state,
        )
        self.assertEqual(transition.outcome, TransitionOutcome.ADVANCED)
        self.assertEqual(transition.state.question_index, 1)

    def test_previous_on_first_question_ignored(self):
        transition = reduce(self.quiz_state, self.lesson, PreviousQuestion())
        self.assertEqual(transition.outcome, TransitionOutcome.IGNORED)

    def test_invalid_option_raises(self):
        with self.assertRaises(ValueError):
            reduce(self.quiz_state, self.lesson, SelectAnswer(4))
        with self.assertRaises(ValueError):
            reduce(self.quiz_state, self.lesson, SelectAnswer(-1))

    def test_select_outside_quiz_ignored(self):
        transition = reduce(SessionState(), self.lesson, SelectAnswer(1))
        self.assertEqual(transition.outcome, TransitionOutcome.IGNORED)
        self.assertEqual(dict(transition.state.answers), {})

    def test_reduce_does_not_mutate_input(self):
        before = dict(self.quiz_state.answers)
        reduce(self.quiz_state, self.lesson, SelectAnswer(3))
        self.assertEqual(dict(self.quiz_state.answers), before)


class TestResults(unittest.TestCase):
    """Results is terminal until restart."""

    def setUp(self):
        self.lesson = make_lesson(pages=1, questions=[make_question(correct=1)])
        self.results = run(self.lesson, [NextPage(), SelectAnswer(1), SubmitAnswer()]).state

    def test_actions_ignored_in_results(self):
        for action in (NextPage(), PreviousPage(), SelectAnswer(0), SubmitAnswer(), PreviousQuestion()):
            transition = reduce(self.results, self.lesson, action)
            self.assertEqual(transition.outcome, TransitionOutcome.IGNORED)
            self.assertIs(transition.state, self.results)

    def test_restart_resets_everything(self):
        transition = reduce(self.results, self.lesson, Restart())
        self.assertEqual(transition.outcome, TransitionOutcome.RESET)
        self.assertEqual(transition.state, SessionState())

    def test_restart_twice_is_stable(self):
        first = reduce(self.results, self.lesson, Restart()).state
        second = reduce(first, self.lesson, Restart()).state
        self.assertEqual(first, second)

    def test_unknown_action_raises(self):
        with self.assertRaises(TypeError):
            reduce(self.results, self.lesson, "next")


if __name__ == "__main__":
    unittest.main()
