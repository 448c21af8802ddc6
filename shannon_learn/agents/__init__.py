"""
AI agents for lesson sessions.

- RecommendationAgent: LangChain/OpenAI next-lesson recommendation

Note: session logic lives in shannon_learn.models (pure logic, not an agent)
"""

from .recommendation_agent import RecommendationAgent

__all__ = [
    "RecommendationAgent",
]
