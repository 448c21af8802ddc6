"""
Lesson Session Controller

Walks one learner through one lesson:
1. Usage gate before the session starts
2. Lesson pages, then the quiz (retry until correct)
3. Scoring and the finished Attempt
4. Background persistence of the Attempt
5. Next-lesson recommendation after a passing result

All navigation, evaluation and scoring is synchronous and goes through the
pure reducer in ``models.session_state``. The only asynchronous work is the
persistence write and the recommendation fetch, both fire-and-forget.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Literal, Optional, Sequence

from .config import config
from .models.attempt import Attempt
from .models.learner_profile import LearnerProfile
from .models.lesson import Lesson, LessonPage, QuizQuestion
from .models.recommendation import Recommendation, RecommendationRequest
from .models.session_state import (
    Action,
    NextPage,
    PreviousPage,
    PreviousQuestion,
    SelectAnswer,
    SessionState,
    SessionView,
    SubmitAnswer,
    Transition,
    TransitionOutcome,
    reduce,
)
from .utils.background import spawn_background
from .utils.history import format_lesson_history_summary
from .utils.persistence import AttemptSink
from .utils.recommendation import RecommendationFetcher
from .utils.speech import SpeechAction, SpeechCoordinator
from .utils.usage import UsageGuard

logger = logging.getLogger(__name__)

NoticeLevel = Literal["info", "warning", "error"]


@dataclass(frozen=True)
class Notice:
    """Non-fatal message for the presentation layer."""
    level: NoticeLevel
    title: str
    message: str


class SessionController:
    """
    State machine driving a single lesson session.

    Features:
    - Page navigation with bounds and missing-page checks
    - Quiz with mandatory selection and unlimited retries
    - Exactly one Attempt per completed session, none for abandoned ones
    - Read-aloud through the shared SpeechCoordinator, stopped on teardown
    - Stale recommendation results discarded after restart or lesson change
    """

    def __init__(
        self,
        learner: LearnerProfile,
        *,
        usage_guard: UsageGuard,
        speech: SpeechCoordinator,
        recommendations: RecommendationFetcher,
        persistence: Optional[AttemptSink] = None,
        attempt_history: Optional[Sequence[Attempt]] = None,
        notify: Optional[Callable[[Notice], None]] = None,
    ):
        """
        Initialize the session controller.

        Args:
            learner: Profile the sessions run against
            usage_guard: Daily/weekly usage gate
            speech: Shared read-aloud coordinator
            recommendations: Next-lesson fetcher
            persistence: Sink for finished attempts (None to skip saving)
            attempt_history: Learner's earlier attempts, oldest first
            notify: Receives every Notice as it is raised
        """
        self.learner = learner
        self.usage_guard = usage_guard
        self.speech = speech
        self.recommendations = recommendations
        self.persistence = persistence
        self.attempt_history: List[Attempt] = list(attempt_history or [])
        self.notify = notify
        # Notices of the current session; cleared on teardown
        self.notices: List[Notice] = []

        self._lesson: Optional[Lesson] = None
        self._restart_target: Optional[Lesson] = None
        self._state: Optional[SessionState] = None
        self._relearn = False
        self._last_attempt: Optional[Attempt] = None
        self._session_version = 0

    # ==================== Read-only views ====================

    @property
    def lesson(self) -> Optional[Lesson]:
        return self._lesson

    @property
    def state(self) -> Optional[SessionState]:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is not None

    @property
    def session_version(self) -> int:
        """Bumped on every teardown; identifies the current session."""
        return self._session_version

    @property
    def last_attempt(self) -> Optional[Attempt]:
        """Attempt produced by the current session, once it reached results."""
        return self._last_attempt

    @property
    def current_page(self) -> Optional[LessonPage]:
        if self._state is None or self._state.view is not SessionView.LESSON:
            return None
        return self._lesson.page_at(self._state.page_index)

    @property
    def current_question(self) -> Optional[QuizQuestion]:
        if self._state is None or self._state.view is not SessionView.QUIZ:
            return None
        return self._lesson.question_at(self._state.question_index)

    @property
    def recommendation(self) -> Optional[Recommendation]:
        return self.recommendations.recommendation

    # ==================== Session lifecycle ====================

    def load_lesson(self, lesson: Lesson, relearn: bool = False) -> bool:
        """
        Start a new session over lesson, discarding any current one.

        Args:
            lesson: Fully generated lesson
            relearn: The learner chose to take this lesson again

        Returns:
            False if the usage limit refused the start (controller stays inactive)
        """
        self._teardown()
        self._restart_target = lesson

        learner_id = self.learner.learner_id
        if not self.usage_guard.is_within_limit(
            learner_id,
            self.learner.daily_usage_limit_minutes,
            self.learner.weekly_usage_limit_minutes,
        ):
            logger.info("Usage limit reached for %s; session not started", learner_id)
            self._raise_notice(
                "warning",
                "Time's up for now",
                "The learning time limit for this period has been reached. Come back later!",
            )
            return False

        self._lesson = lesson
        self._state = SessionState()
        self._relearn = relearn
        self.usage_guard.start_session(learner_id)
        logger.info(
            "Started lesson %r for %s (%d pages, %d questions)",
            lesson.title,
            learner_id,
            lesson.page_count,
            lesson.question_count,
        )

        if lesson.page_at(0) is None:
            self._raise_notice("error", "Lesson problem", "Lesson page 1 is missing.")
        return True

    def restart(self, lesson: Optional[Lesson] = None, relearn: bool = False) -> bool:
        """
        Tear down the session and begin again at lesson[0].

        Args:
            lesson: New lesson to start; when omitted, the lesson last passed
                to load_lesson (even if the usage limit refused it)
            relearn: Mark the next attempt as a deliberate relearn

        Raises:
            ValueError: If no lesson was ever loaded
        """
        target = lesson or self._restart_target
        if target is None:
            raise ValueError("No lesson to restart. Call load_lesson() first.")
        return self.load_lesson(target, relearn=relearn)

    def close(self) -> None:
        """Leave the controller: stop speech, drop pending results, commit usage."""
        self._teardown()

    def _teardown(self) -> None:
        self.speech.stop()
        self.notices.clear()
        self.recommendations.invalidate()
        self.usage_guard.end_session(self.learner.learner_id)
        self._session_version += 1
        self._lesson = None
        self._state = None
        self._relearn = False
        self._last_attempt = None

    # ==================== Learner actions ====================

    def next_page(self) -> Transition:
        return self._dispatch(NextPage())

    def previous_page(self) -> Transition:
        return self._dispatch(PreviousPage())

    def select_answer(self, option_index: int) -> Transition:
        """
        Record the option chosen for the current question.

        Raises:
            ValueError: If option_index is outside 0-3
        """
        return self._dispatch(SelectAnswer(option_index))

    def submit_answer(self) -> Transition:
        return self._dispatch(SubmitAnswer())

    def previous_question(self) -> Transition:
        return self._dispatch(PreviousQuestion())

    def _dispatch(self, action: Action) -> Transition:
        if self._state is None or self._lesson is None:
            raise ValueError("No active lesson session. Call load_lesson() first.")

        before = self._state
        transition = reduce(before, self._lesson, action)

        if transition.outcome is TransitionOutcome.MALFORMED:
            logger.warning("Malformed lesson %r: %s", self._lesson.title, transition.message)
            self._raise_notice("error", "Lesson problem", transition.message or "Lesson data is incomplete.")

        after = transition.state
        if (after.view, after.page_index, after.question_index) != (
            before.view,
            before.page_index,
            before.question_index,
        ):
            # Audio must not keep describing a screen that is gone
            self.speech.stop()

        self._state = after
        logger.debug("%s -> %s (%s)", type(action).__name__, after.view.value, transition.outcome.value)

        if transition.outcome is TransitionOutcome.FINALIZED:
            self._finalize()
        return transition

    # ==================== Finalization ====================

    def _finalize(self) -> None:
        lesson = self._lesson
        state = self._state
        learner_id = self.learner.learner_id

        attempt = Attempt(
            lesson_title=lesson.title,
            lesson_topic=lesson.topic_label,
            subject=lesson.subject,
            score=state.score,
            total_questions=lesson.question_count,
            correct_count=state.correct_count,
            chose_to_relearn=self._relearn,
        )
        prior_attempts = len(self.attempt_history)
        self.attempt_history.append(attempt)
        self._last_attempt = attempt
        logger.info(
            "Lesson %r finished by %s: %d%% (%d/%d)",
            lesson.title,
            learner_id,
            attempt.score,
            attempt.correct_count,
            attempt.total_questions,
        )

        self.usage_guard.end_session(learner_id)

        if self.persistence is not None:
            spawn_background(self._persist(learner_id, attempt), name=f"persist-attempt-{learner_id}")

        if self.recommendations.should_fetch(attempt.score, prior_attempts):
            self.recommendations.request(self._recommendation_request())

    async def _persist(self, learner_id: str, attempt: Attempt) -> None:
        try:
            success, attempt_id, errors = await asyncio.to_thread(
                self.persistence.save_attempt, learner_id, attempt
            )
        except Exception as e:
            logger.error("Saving attempt for %s failed: %s", learner_id, e)
            self._raise_notice("error", "Progress not saved", str(e))
            return

        if not success:
            logger.error("Attempt for %s rejected: %s", learner_id, "; ".join(errors or []))
            self._raise_notice("error", "Progress not saved", "This result could not be saved.")
            return
        logger.debug("Attempt %s saved", attempt_id)

    def _recommendation_request(self) -> RecommendationRequest:
        return RecommendationRequest(
            child_age=self.learner.age,
            interests=self.learner.interests,
            learning_difficulties=self.learner.learning_difficulties,
            curriculum=self.learner.curriculum,
            lesson_history_summary=format_lesson_history_summary(
                self.attempt_history, limit=config.session.history_summary_limit
            ),
            learning_style=self.learner.learning_style,
        )

    # ==================== Read-aloud ====================

    def speak_current(self) -> SpeechAction:
        """
        Toggle read-aloud of what is on screen.

        Lesson view reads the page, quiz view reads the question and options
        (or the explanation after a wrong answer), results view reads the score.
        """
        if self._state is None:
            return SpeechAction.IGNORED

        text, identifier = self._speech_target()
        if text is None:
            return SpeechAction.IGNORED

        action = self.speech.speak(text, identifier, language=self.learner.language)
        if action is SpeechAction.FAILED:
            error = self.speech.last_error
            self._raise_notice(
                "warning", "Read-aloud unavailable", str(error) if error else "Speech failed."
            )
        return action

    def stop_speech(self) -> bool:
        return self.speech.stop()

    def _speech_target(self) -> tuple[Optional[str], str]:
        state = self._state
        if state.view is SessionView.LESSON:
            page = self.current_page
            return (page.text if page else None), f"page-{state.page_index}"

        if state.view is SessionView.QUIZ:
            question = self.current_question
            if question is None:
                return None, f"question-{state.question_index}"
            if state.explanation:
                return state.explanation, f"explanation-{state.question_index}"
            options = " ".join(
                f"Option {i + 1}: {option}." for i, option in enumerate(question.options)
            )
            return f"{question.question} {options}", f"question-{state.question_index}"

        return f"You scored {state.score} percent.", "results"

    # ==================== Notices ====================

    def _raise_notice(self, level: NoticeLevel, title: str, message: str) -> None:
        notice = Notice(level=level, title=title, message=message)
        self.notices.append(notice)
        if self.notify is not None:
            self.notify(notice)
