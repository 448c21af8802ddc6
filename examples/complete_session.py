"""
Complete session example: Profile → Lesson → Quiz → Results → Recommendation

Demonstrates end-to-end use of the session controller:
1. Load a learner profile and their earlier attempts
2. Check the usage limit and start the lesson
3. Page through the lesson
4. Answer the quiz (one wrong answer, then the right one)
5. Save the attempt and ask for the next topic

Set OPENAI_API_KEY to get a real recommendation; otherwise a canned one is used.
"""

import asyncio
import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shannon_learn import SessionController
from shannon_learn.config import config, configure_logging, token_tracker
from shannon_learn.models import LearnerProfile, Lesson, Recommendation
from shannon_learn.utils import (
    JsonUsageStore,
    RecommendationFetcher,
    SpeechCoordinator,
    UsageGuard,
    get_persistence_manager,
)
from shannon_learn.utils.background import pending_tasks

LESSON = {
    "lessonTitle": "Halves and Quarters",
    "lessonTopic": "Equal parts of a whole",
    "subject": "Math",
    "lessonFormat": "story",
    "lessonPages": [
        {"sentences": ["Mia has one pizza.", "She cuts it into two equal parts."]},
        {"sentences": ["Each part is called a half.", "Two halves make one whole pizza."]},
        {"sentences": ["Now she cuts each half again.", "Four equal parts are called quarters."]},
    ],
    "quiz": [
        {
            "question": "How many halves make a whole?",
            "options": ["One", "Two", "Three", "Four"],
            "correctAnswerIndex": 1,
            "explanation": "A whole is cut into two equal halves.",
        },
        {
            "question": "What do we call four equal parts?",
            "options": ["Quarters", "Halves", "Thirds", "Wholes"],
            "correctAnswerIndex": 0,
            "explanation": "Four equal parts are quarters.",
        },
    ],
}


class CannedRecommendations:
    """Stand-in recommendation service when no API key is configured."""

    async def recommend(self, request):
        return Recommendation(
            recommended_topic="Comparing Halves and Quarters",
            reasoning="Builds directly on the parts of a whole just learned.",
            confidence=0.7,
        )


def build_service():
    if not config.model.api_key:
        print("⚠ OPENAI_API_KEY not set. Using canned recommendations.")
        return CannedRecommendations()

    from shannon_learn.agents import RecommendationAgent

    return RecommendationAgent()


async def main():
    configure_logging()
    config.prepare_fs()

    # ==================== Step 1: Learner Profile ====================
    print("=" * 60)
    print("STEP 1: Loading Learner Profile")
    print("=" * 60)

    learner = LearnerProfile(
        learner_id="child-demo",
        name="Mia",
        age=7,
        curriculum="US Grade 1 Math",
        interests="Cooking, animals",
        learning_style="visual",
        language=config.session.speech_language,
        daily_usage_limit_minutes=45,
    )
    persistence = get_persistence_manager()
    history = persistence.load_attempts_by_learner(learner.learner_id)
    print(f"✓ Learner: {learner.name} (age {learner.age}), {len(history)} earlier attempt(s)")
    print()

    controller = SessionController(
        learner,
        usage_guard=UsageGuard(JsonUsageStore()),
        speech=SpeechCoordinator(None),
        recommendations=RecommendationFetcher(build_service()),
        persistence=persistence,
        attempt_history=history,
        notify=lambda n: print(f"  [{n.level}] {n.title}: {n.message}"),
    )

    # ==================== Step 2: Start Lesson ====================
    print("=" * 60)
    print("STEP 2: Starting Lesson")
    print("=" * 60)

    lesson = Lesson.from_dict(LESSON)
    if not controller.load_lesson(lesson):
        print("✗ Usage limit reached, no lesson today.")
        return
    usage = controller.usage_guard.usage(learner.learner_id)
    print(f"✓ {lesson.title}: {lesson.page_count} pages, {lesson.question_count} questions")
    print(f"  Used today: {usage.daily_minutes} min, this week: {usage.weekly_minutes} min")
    print()

    # ==================== Step 3: Lesson Pages ====================
    print("=" * 60)
    print("STEP 3: Reading the Lesson")
    print("=" * 60)

    while controller.current_page is not None:
        print(f"📖 Page {controller.state.page_index + 1}: {controller.current_page.text}")
        controller.next_page()
    print()

    # ==================== Step 4: Quiz ====================
    print("=" * 60)
    print("STEP 4: Quiz")
    print("=" * 60)

    first = True
    while controller.current_question is not None:
        question = controller.current_question
        print(f"❓ {question.question}")
        choice = question.correct_answer_index
        if first:
            choice = (choice + 1) % len(question.options)
            first = False
        controller.select_answer(choice)
        transition = controller.submit_answer()
        print(f"  → {question.options[choice]}: {transition.outcome.value}")
        if transition.message:
            print(f"    {transition.message}")
    print()

    # ==================== Step 5: Results ====================
    print("=" * 60)
    print("STEP 5: Results")
    print("=" * 60)

    attempt = controller.last_attempt
    print(f"✓ Score: {attempt.score}% ({attempt.correct_count}/{attempt.total_questions})")

    # Wait for the background save and recommendation
    await asyncio.gather(*pending_tasks())

    if controller.recommendation:
        rec = controller.recommendation
        print(f"💡 Next topic: {rec.recommended_topic}")
        print(f"  {rec.reasoning}")
    elif controller.recommendations.error:
        print(f"⚠ Recommendation failed: {controller.recommendations.error}")
    else:
        print("  No recommendation yet (first lesson or score below threshold)")

    controller.close()
    print()
    print(token_tracker.summary())


if __name__ == "__main__":
    asyncio.run(main())
