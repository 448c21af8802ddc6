"""
Screen-time accounting and the daily/weekly usage gate.

Minutes are accumulated per learner in two buckets: ``daily`` keyed by
calendar day (``2026-10-19``) and ``weekly`` keyed by ISO week
(``2026-W43``). Time is only credited when a session that was started is
explicitly ended; an abandoned session contributes nothing.
"""

from __future__ import annotations

import json
import logging
import math
import os
import tempfile
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Literal, Optional, Protocol

from ..config import config

logger = logging.getLogger(__name__)

Bucket = Literal["daily", "weekly"]


def day_key(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d")


def week_key(moment: datetime) -> str:
    iso = moment.isocalendar()
    return f"{iso[0]}-W{iso[1]:02d}"


class UsageStore(Protocol):
    """Per-learner minutes, keyed by (learner, bucket, period key)."""

    def get_minutes(self, learner_id: str, bucket: Bucket, key: str) -> int: ...

    def add_usage(self, learner_id: str, day: str, week: str, minutes: int) -> None:
        """Credit minutes to the day and the ISO week together: both or neither."""
        ...


class InMemoryUsageStore:
    """Usage store kept in process memory."""

    def __init__(self):
        self._data: Dict[str, Dict[str, Dict[str, int]]] = {}
        self._lock = threading.Lock()

    def get_minutes(self, learner_id: str, bucket: Bucket, key: str) -> int:
        with self._lock:
            return self._data.get(learner_id, {}).get(bucket, {}).get(key, 0)

    def add_usage(self, learner_id: str, day: str, week: str, minutes: int) -> None:
        with self._lock:
            entry = self._data.setdefault(learner_id, {"daily": {}, "weekly": {}})
            entry["daily"][day] = entry["daily"].get(day, 0) + minutes
            entry["weekly"][week] = entry["weekly"].get(week, 0) + minutes


class JsonUsageStore:
    """
    Usage store backed by one JSON document.

    Layout: ``{"<learner_id>": {"daily": {"2026-10-19": 25}, "weekly": {"2026-W43": 90}}}``.
    Unreadable files are treated as empty; writes go through a temp file and
    an atomic replace.
    """

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path else config.paths.usage_file
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Dict[str, Dict[str, int]]]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Usage file %s unreadable, starting empty: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Dict[str, Dict[str, int]]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get_minutes(self, learner_id: str, bucket: Bucket, key: str) -> int:
        with self._lock:
            return int(self._load().get(learner_id, {}).get(bucket, {}).get(key, 0))

    def add_usage(self, learner_id: str, day: str, week: str, minutes: int) -> None:
        with self._lock:
            data = self._load()
            entry = data.setdefault(learner_id, {"daily": {}, "weekly": {}})
            for bucket, key in (("daily", day), ("weekly", week)):
                periods = entry.setdefault(bucket, {})
                periods[key] = int(periods.get(key, 0)) + minutes
            self._save(data)


@dataclass(frozen=True)
class UsageSnapshot:
    """Minutes used in the current day and ISO week."""
    daily_minutes: int
    weekly_minutes: int


class UsageGuard:
    """
    Gate new sessions on daily/weekly limits and record session time.

    One start marker per learner: starting again before ending replaces the
    earlier marker and that earlier time is not counted.
    """

    def __init__(
        self,
        store: Optional[UsageStore] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            store: Where minutes are kept (in-memory by default)
            clock: Returns "now"; local time decides day and week boundaries
        """
        self.store = store if store is not None else InMemoryUsageStore()
        self.clock = clock
        self._session_starts: Dict[str, datetime] = {}

    def usage(self, learner_id: str) -> UsageSnapshot:
        now = self.clock()
        return UsageSnapshot(
            daily_minutes=self.store.get_minutes(learner_id, "daily", day_key(now)),
            weekly_minutes=self.store.get_minutes(learner_id, "weekly", week_key(now)),
        )

    def is_within_limit(
        self,
        learner_id: str,
        daily_limit_minutes: Optional[int] = None,
        weekly_limit_minutes: Optional[int] = None,
    ) -> bool:
        """
        False once any set limit has been reached for its period.

        Args:
            learner_id: Learner to check
            daily_limit_minutes: Minutes allowed today; None is unlimited
            weekly_limit_minutes: Minutes allowed this ISO week; None is unlimited
        """
        if daily_limit_minutes is None and weekly_limit_minutes is None:
            return True

        current = self.usage(learner_id)
        if daily_limit_minutes is not None and current.daily_minutes >= daily_limit_minutes:
            return False
        if weekly_limit_minutes is not None and current.weekly_minutes >= weekly_limit_minutes:
            return False
        return True

    def start_session(self, learner_id: str) -> None:
        if learner_id in self._session_starts:
            logger.debug("Usage session for %s restarted before it ended", learner_id)
        self._session_starts[learner_id] = self.clock()

    def has_open_session(self, learner_id: str) -> bool:
        return learner_id in self._session_starts

    def end_session(self, learner_id: str) -> int:
        """
        Commit elapsed minutes of the open session to today and this week.

        Returns:
            Minutes credited (0 when no session was open)
        """
        started = self._session_starts.pop(learner_id, None)
        if started is None:
            return 0

        now = self.clock()
        elapsed_seconds = max(0.0, (now - started).total_seconds())
        minutes = int(math.floor(elapsed_seconds / 60 + 0.5))
        if minutes == 0:
            return 0

        try:
            self.store.add_usage(learner_id, day_key(now), week_key(now), minutes)
        except OSError as e:
            logger.error("Could not record %d usage minutes for %s: %s", minutes, learner_id, e)
            return 0

        logger.info("Recorded %d minute(s) of usage for %s", minutes, learner_id)
        return minutes
