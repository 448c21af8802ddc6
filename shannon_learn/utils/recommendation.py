"""
Best-effort "what's next" recommendation after a passing result.

The fetch is fire-and-forget and cannot be aborted once sent, so staleness is
handled with a generation counter: ``invalidate()`` bumps it whenever the
session that asked moves on, and a result that comes back for an older
generation is dropped.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..config import config
from ..models.recommendation import (
    Recommendation,
    RecommendationRequest,
    RecommendationService,
)
from .background import BackgroundJob, spawn_background

logger = logging.getLogger(__name__)


class RecommendationFetcher:
    """
    Holds at most one recommendation for the current results screen.

    Attributes:
        loading: A request for the current generation is in flight
        recommendation: Result for the current generation, if any
        error: Readable failure message for the current generation, if any
    """

    def __init__(
        self,
        service: RecommendationService,
        score_threshold: Optional[int] = None,
        min_prior_attempts: Optional[int] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ):
        """
        Args:
            service: Recommendation collaborator
            score_threshold: Minimum score that qualifies (default from config)
            min_prior_attempts: Earlier attempts required (default from config)
            on_error: Called with a readable message when a current fetch fails
        """
        self.service = service
        self.score_threshold = (
            config.session.recommendation_threshold if score_threshold is None else score_threshold
        )
        self.min_prior_attempts = (
            config.session.min_prior_attempts if min_prior_attempts is None else min_prior_attempts
        )
        self.on_error = on_error

        self.loading = False
        self.recommendation: Optional[Recommendation] = None
        self.error: Optional[str] = None

        self._generation = 0
        self._requested_generation: Optional[int] = None

    @property
    def generation(self) -> int:
        return self._generation

    def should_fetch(self, score: int, prior_attempts: int) -> bool:
        """A result qualifies when it passed and the learner is not brand new."""
        return score >= self.score_threshold and prior_attempts >= self.min_prior_attempts

    def request(self, request: RecommendationRequest) -> Optional[BackgroundJob]:
        """
        Fetch a recommendation for the current generation, once.

        Returns:
            The background task or thread, or None if already requested
        """
        generation = self._generation
        if self._requested_generation == generation:
            logger.debug("Recommendation already requested for generation %d", generation)
            return None

        self._requested_generation = generation
        self.loading = True
        self.recommendation = None
        self.error = None
        return spawn_background(self._fetch(generation, request), name=f"recommendation-{generation}")

    def invalidate(self) -> None:
        """Forget the current result; anything still in flight becomes stale."""
        self._generation += 1
        self.loading = False
        self.recommendation = None
        self.error = None

    async def _fetch(self, generation: int, request: RecommendationRequest) -> None:
        try:
            result = await self.service.recommend(request)
        except Exception as e:
            if generation != self._generation:
                logger.debug("Ignoring failure of stale recommendation %d: %s", generation, e)
                return
            message = str(e) or "Next lesson recommendation failed."
            logger.warning("Recommendation failed: %s", message)
            self.loading = False
            self.error = message
            if self.on_error is not None:
                self.on_error(message)
            return

        if generation != self._generation:
            logger.debug(
                "Discarding stale recommendation %r (generation %d, now %d)",
                result.recommended_topic,
                generation,
                self._generation,
            )
            return

        logger.info("Recommended next topic: %s", result.recommended_topic)
        self.recommendation = result
        self.loading = False
