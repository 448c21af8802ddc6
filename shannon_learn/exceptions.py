"""Exceptions raised by the lesson session core."""


class ShannonLearnError(Exception):
    """Base exception for ShannonLearn errors."""
    pass


class SpeechError(ShannonLearnError):
    """The speech capability is unavailable or failed mid-utterance."""
    pass


class RecommendationError(ShannonLearnError):
    """The next-lesson recommendation could not be produced."""
    pass
