"""
Read-aloud coordination.

There is one speaker. ``SpeechCoordinator`` owns it and is the only place that
knows whether something is being spoken; callers never keep their own flag.

Every utterance gets a token. Engine callbacks carry the token they were
issued with, so a late ``on_end`` from a cancelled utterance cannot clear
the state of the one that replaced it.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Optional, Protocol

from ..config import config
from ..exceptions import SpeechError

logger = logging.getLogger(__name__)


class SpeechEngine(Protocol):
    """
    Text-to-speech capability (browser speechSynthesis, a TTS service, ...).

    ``speak`` starts an utterance and returns; lifecycle is reported through
    the callbacks, possibly from another thread. ``cancel`` stops whatever
    is playing.
    """

    def speak(
        self,
        text: str,
        language: str,
        *,
        on_start: Callable[[], None],
        on_end: Callable[[], None],
        on_error: Callable[[Exception], None],
    ) -> None: ...

    def cancel(self) -> None: ...


class SpeechAction(str, Enum):
    STARTED = "started"
    STOPPED = "stopped"
    FAILED = "failed"
    IGNORED = "ignored"


class SpeechCoordinator:
    """
    Single-owner read-aloud resource.

    Features:
    - At most one active utterance, identified by a caller-chosen identifier
    - ``speak`` on the active identifier stops it (play/pause toggle)
    - ``speak`` on another identifier cancels the active one first
    - Engine failure returns to idle and is reported, never retried
    """

    def __init__(
        self,
        engine: Optional[SpeechEngine],
        language: Optional[str] = None,
        on_error: Optional[Callable[[SpeechError], None]] = None,
    ):
        """
        Args:
            engine: Speech capability; None when the platform has none
            language: Default language tag (default: config.session.speech_language)
            on_error: Called with a SpeechError whenever an utterance fails
        """
        self.engine = engine
        self.language = language or config.session.speech_language
        self.on_error = on_error
        self.last_error: Optional[SpeechError] = None

        self._lock = threading.Lock()
        self._token = 0
        self._active: Optional[str] = None
        self._failed_token: Optional[int] = None

    @property
    def active_identifier(self) -> Optional[str]:
        with self._lock:
            return self._active

    @property
    def is_speaking(self) -> bool:
        return self.active_identifier is not None

    def speak(self, text: str, identifier: str, language: Optional[str] = None) -> SpeechAction:
        """
        Toggle read-aloud for identifier.

        Returns:
            STOPPED if identifier was already speaking, otherwise the result of
            starting it (STARTED, FAILED, or IGNORED for blank text)
        """
        if self.active_identifier == identifier:
            self.stop()
            return SpeechAction.STOPPED
        return self.start(text, identifier, language)

    toggle = speak

    def start(self, text: str, identifier: str, language: Optional[str] = None) -> SpeechAction:
        """Start speaking text, replacing any active utterance (same identifier restarts)."""
        if not text or not text.strip():
            return SpeechAction.IGNORED

        with self._lock:
            replacing = self._active
            self._token += 1
            token = self._token
            self._active = identifier
            self.last_error = None

        if replacing is not None:
            logger.debug("Cancelling speech %r for %r", replacing, identifier)
            self._cancel_engine()

        if self.engine is None:
            self._fail(token, SpeechError("Speech is not available on this device."))
            return SpeechAction.FAILED

        try:
            self.engine.speak(
                text,
                language or self.language,
                on_start=lambda: logger.debug("Speech %r started", identifier),
                on_end=lambda: self._finish(token),
                on_error=lambda exc: self._fail(token, exc),
            )
        except Exception as exc:
            self._fail(token, exc)
            return SpeechAction.FAILED

        with self._lock:
            failed = self._failed_token == token
        return SpeechAction.FAILED if failed else SpeechAction.STARTED

    def stop(self) -> bool:
        """
        Cancel any active utterance. Safe to call when idle.

        Returns:
            True if something was speaking
        """
        with self._lock:
            was_speaking = self._active is not None
            self._token += 1
            self._active = None

        self._cancel_engine()
        return was_speaking

    def _cancel_engine(self) -> None:
        if self.engine is None:
            return
        try:
            self.engine.cancel()
        except Exception as exc:
            logger.warning("Speech engine cancel failed: %s", exc)

    def _finish(self, token: int) -> None:
        with self._lock:
            if token != self._token:
                return
            self._active = None

    def _fail(self, token: int, exc: Exception) -> None:
        error = exc if isinstance(exc, SpeechError) else SpeechError(f"Speech failed: {exc}")
        with self._lock:
            if token != self._token:
                return
            self._active = None
            self._failed_token = token
            self.last_error = error

        logger.warning("%s", error)
        if self.on_error is not None:
            self.on_error(error)
