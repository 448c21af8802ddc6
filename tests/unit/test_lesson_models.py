"""
Unit tests for lesson, attempt and learner profile models.
"""

import unittest
from datetime import timezone

import pytest

from shannon_learn.models.attempt import Attempt
from shannon_learn.models.learner_profile import LearnerProfile
from shannon_learn.models.lesson import Lesson, LessonPage, QuizQuestion
from tests.unit.fakes import make_attempt, make_lesson, make_question


class TestQuizQuestion(unittest.TestCase):
    """Test QuizQuestion invariants."""

    def test_requires_four_options(self):
        with self.assertRaises(ValueError):
            QuizQuestion(question="Q?", options=["A", "B", "C"], correct_answer_index=0)

    def test_correct_index_in_range(self):
        with self.assertRaises(ValueError):
            QuizQuestion(question="Q?", options=["A", "B", "C", "D"], correct_answer_index=4)

    def test_options_frozen(self):
        options = ["A", "B", "C", "D"]
        question = QuizQuestion(question="Q?", options=options, correct_answer_index=0)
        options.append("E")
        self.assertEqual(question.options, ("A", "B", "C", "D"))


class TestLesson(unittest.TestCase):
    """Test Lesson accessors."""

    def test_counts(self):
        lesson = make_lesson(pages=3, questions=[make_question()])
        self.assertEqual(lesson.page_count, 3)
        self.assertEqual(lesson.question_count, 1)
        self.assertTrue(lesson.has_quiz)

    def test_out_of_range_access(self):
        lesson = make_lesson(pages=1)
        self.assertIsNone(lesson.page_at(1))
        self.assertIsNone(lesson.page_at(-1))
        self.assertIsNone(lesson.question_at(0))

    def test_topic_falls_back_to_title(self):
        lesson = Lesson(title="Magnets", subject="Science", lesson_format="story", pages=[])
        self.assertEqual(lesson.topic_label, "Magnets")

    def test_page_text(self):
        page = LessonPage(sentences=[" Plants need light. ", "", "They drink water."])
        self.assertEqual(page.text, "Plants need light. They drink water.")

    def test_page_sentences_frozen_as_tuple(self):
        source = ["One.", "Two."]
        page = LessonPage(sentences=source)
        source.append("Three.")
        self.assertEqual(page.sentences, ("One.", "Two."))


class TestLessonWireFormat:
    """Lesson.from_dict / to_dict."""

    def test_from_dict(self, valid_lesson_payload):
        lesson = Lesson.from_dict(valid_lesson_payload)
        assert lesson.title == "The Water Cycle"
        assert lesson.topic == "Evaporation and condensation"
        assert lesson.page_count == 2
        assert lesson.pages[1].image == "data:image/png;base64,AAAA"
        assert lesson.quiz[0].correct_answer_index == 1
        assert lesson.curriculum.source_hints == ("NGSS 2-PS1",)
        assert not lesson.curriculum.is_placeholder

    def test_from_dict_rejects_invalid(self, valid_lesson_payload):
        valid_lesson_payload["quiz"][0]["options"].pop()
        with pytest.raises(ValueError, match="Invalid lesson payload"):
            Lesson.from_dict(valid_lesson_payload)

    def test_to_dict_round_trip(self, valid_lesson_payload):
        assert Lesson.from_dict(valid_lesson_payload).to_dict() == valid_lesson_payload


class TestAttempt(unittest.TestCase):
    """Test Attempt invariants and wire format."""

    def test_score_bounds(self):
        with self.assertRaises(ValueError):
            make_attempt(score=101)

    def test_correct_count_cannot_exceed_total(self):
        with self.assertRaises(ValueError):
            make_attempt(total_questions=2, correct_count=3)

    def test_default_timestamp_is_utc(self):
        attempt = Attempt(
            lesson_title="Plants",
            lesson_topic="Plants",
            subject="Science",
            score=100,
            total_questions=0,
            correct_count=0,
        )
        self.assertEqual(attempt.completed_at.tzinfo, timezone.utc)
        self.assertFalse(attempt.had_quiz)

    def test_zulu_timestamp(self):
        attempt = make_attempt(timestamp="2026-10-19T08:00:00Z")
        self.assertEqual(attempt.completed_at.hour, 8)

    def test_wire_format(self):
        data = make_attempt(chose_to_relearn=True).to_dict()
        self.assertEqual(data["quizScore"], 80)
        self.assertEqual(data["quizTotalQuestions"], 5)
        self.assertEqual(data["questionsAnsweredCorrectly"], 4)
        self.assertTrue(data["choseToRelearn"])
        self.assertNotIn("attemptId", data)
        self.assertEqual(Attempt.from_dict(data), make_attempt(chose_to_relearn=True))


class TestLearnerProfile(unittest.TestCase):
    """Test LearnerProfile."""

    def test_from_dict(self):
        profile = LearnerProfile.from_dict(
            {
                "id": "child-9",
                "name": "Ada",
                "age": 9,
                "curriculum": "UK Year 4 Maths",
                "learningDifficulties": "Dyscalculia",
                "learningStyle": "kinesthetic",
                "language": "en-GB",
                "dailyUsageLimitMinutes": 45,
            }
        )
        self.assertEqual(profile.learner_id, "child-9")
        self.assertEqual(profile.learning_difficulties, "Dyscalculia")
        self.assertEqual(profile.daily_usage_limit_minutes, 45)
        self.assertIsNone(profile.weekly_usage_limit_minutes)
        self.assertEqual(profile.interests, "")

    def test_negative_limit_rejected(self):
        with self.assertRaises(ValueError):
            LearnerProfile(
                learner_id="child-1", name="A", age=7, curriculum="X", daily_usage_limit_minutes=-5
            )

    def test_empty_id_rejected(self):
        with self.assertRaises(ValueError):
            LearnerProfile(learner_id="", name="A", age=7, curriculum="X")


if __name__ == "__main__":
    unittest.main()
