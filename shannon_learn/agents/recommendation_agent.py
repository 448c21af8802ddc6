"""
Recommendation Agent - LLM suggestion of the next lesson topic.

Looks at the learner's age, interests, difficulties, curriculum and recent
attempts, and proposes one specific topic for the next lesson.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.prompts import PromptTemplate
from langchain_openai import ChatOpenAI

from ..config import config, token_tracker
from ..exceptions import RecommendationError
from ..models.recommendation import Recommendation, RecommendationRequest

logger = logging.getLogger(__name__)


RECOMMENDATION_PROMPT = PromptTemplate(
    input_variables=[
        "child_age",
        "interests",
        "learning_difficulties",
        "curriculum",
        "learning_style",
        "lesson_history_summary",
    ],
    template="""You are an expert curriculum planner and learning path advisor for children, including those with learning difficulties.
Recommend the MOST SUITABLE NEXT lesson topic for this child.

**Child:**
- Age: {child_age}
- Interests: {interests}
- Learning Difficulties: {learning_difficulties}
- Curriculum Focus: {curriculum} (the recommendation MUST align with this curriculum)
- Preferred Learning Style: {learning_style}

**Recent Lesson History (newest first):**
{lesson_history_summary}

**Instructions:**
1. Keep the topic age-appropriate and aligned with {curriculum}
2. Build on recently mastered concepts, or revisit topics with low scores from a different angle
3. Connect to the child's interests where it helps engagement
4. Match complexity to any learning difficulties
5. Make the topic specific enough for a single lesson (e.g. "Comparing Fractions with Like Denominators")
6. Avoid topics just mastered with high scores unless they lead directly to the next concept

**Format your response as JSON:**
{{
  "recommendedTopic": "specific next topic",
  "reasoning": "why this is the best next step, linked to the history and curriculum",
  "confidence": <number between 0 and 1, optional>
}}

**Recommendation:**""",
)


class RecommendationAgent:
    """
    LLM-backed recommendation service.

    Implements the RecommendationService protocol used by RecommendationFetcher.
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        temperature: Optional[float] = None,
        llm: Optional[BaseChatModel] = None,
    ):
        """
        Initialize recommendation agent.

        Args:
            model_name: LLM model name (default from config)
            temperature: LLM temperature (default from config)
            llm: Pre-built chat model, mainly for tests
        """
        self.model_name = model_name or config.model.model_name
        self.llm = llm or ChatOpenAI(
            model=self.model_name,
            temperature=config.model.temperature if temperature is None else temperature,
            max_tokens=config.model.max_tokens,
            timeout=config.model.request_timeout,
            max_retries=config.model.max_retries,
            api_key=config.model.api_key or None,
            base_url=config.model.base_url,
        )
        self.prompt = RECOMMENDATION_PROMPT

    async def recommend(self, request: RecommendationRequest) -> Recommendation:
        """
        Ask the model for the next topic.

        Args:
            request: Learner context and history summary

        Returns:
            Recommendation

        Raises:
            RecommendationError: If the model call fails or its answer is unusable
        """
        prompt = self.prompt.format(
            child_age=request.child_age,
            interests=request.interests or "Not specified",
            learning_difficulties=request.learning_difficulties or "None noted",
            curriculum=request.curriculum,
            learning_style=request.learning_style or "Not specified",
            lesson_history_summary=request.lesson_history_summary,
        )

        try:
            response = await self.llm.ainvoke(prompt)
        except Exception as e:
            logger.error("Recommendation request failed: %s", e)
            raise RecommendationError(str(e) or "Next lesson recommendation failed.") from e

        self._track_usage(response)
        return self.parse_response(response.content)

    @staticmethod
    def _track_usage(response: Any) -> None:
        usage = getattr(response, "usage_metadata", None)
        if isinstance(usage, dict):
            token_tracker.add_tokens(
                int(usage.get("input_tokens", 0)), int(usage.get("output_tokens", 0))
            )

    @staticmethod
    def parse_response(content: Any) -> Recommendation:
        """
        Turn the model's text into a Recommendation.

        Raises:
            RecommendationError: If there is no JSON object or no topic
        """
        text = content if isinstance(content, str) else str(content)

        # Extract JSON from markdown if present
        if "```json" in text:
            text = text.split("```json")[1].split("```")[0]
        elif "```" in text:
            text = text.split("```")[1].split("```")[0]

        try:
            data = json.loads(text.strip())
        except json.JSONDecodeError as e:
            raise RecommendationError(f"Could not read the recommendation: {e}") from e

        if not isinstance(data, dict):
            raise RecommendationError("Recommendation response was not a JSON object.")

        topic = str(data.get("recommendedTopic") or "").strip()
        if not topic:
            raise RecommendationError("AI model did not return a recommendation.")

        confidence = data.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            confidence = None
        elif not (0.0 <= confidence <= 1.0):
            logger.debug("Dropping out-of-range confidence %s", confidence)
            confidence = None

        return Recommendation(
            recommended_topic=topic,
            reasoning=str(data.get("reasoning") or "").strip(),
            confidence=float(confidence) if confidence is not None else None,
        )
