"""
Attempt persistence with validation.

One JSON file per finished attempt, validated against attempt.schema.json
before it is written.
"""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from ..config import config
from ..models.attempt import Attempt
from .validation import AttemptValidator

logger = logging.getLogger(__name__)


class AttemptSink(Protocol):
    """Accepts finished attempts keyed by learner id."""

    def save_attempt(
        self, learner_id: str, attempt: Attempt
    ) -> tuple[bool, Optional[str], Optional[List[str]]]: ...


class AttemptPersistence:
    """
    Stores attempts under ``<attempts_dir>/at-<uuid>.json``.

    Features:
    - Validate attempts against attempt.schema.json
    - Load one learner's attempts in completion order
    """

    def __init__(self, attempts_dir: Path | str | None = None):
        """
        Args:
            attempts_dir: Directory to store attempts (default: config.paths.attempts_dir)
        """
        self.attempts_dir = Path(attempts_dir) if attempts_dir else config.paths.attempts_dir
        self.attempts_dir.mkdir(parents=True, exist_ok=True)
        self.validator = AttemptValidator()

    def save_attempt(
        self, learner_id: str, attempt: Attempt
    ) -> tuple[bool, Optional[str], Optional[List[str]]]:
        """
        Save a finished attempt.

        Args:
            learner_id: Learner the attempt belongs to
            attempt: Finished attempt

        Returns:
            Tuple of (success, attempt_id, errors)
        """
        if not learner_id:
            return False, None, ["learner_id is required"]

        attempt_id = attempt.attempt_id or f"at-{uuid.uuid4()}"
        record: Dict[str, Any] = attempt.to_dict()
        record["attemptId"] = attempt_id
        record["learnerId"] = learner_id

        result = self.validator.validate(record)
        if not result.valid:
            return False, None, result.errors

        filepath = self.attempts_dir / f"{attempt_id}.json"
        try:
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(record, f, indent=2, ensure_ascii=False)
        except OSError as e:
            return False, None, [f"Failed to save attempt: {e}"]

        logger.debug("Saved attempt %s for %s", attempt_id, learner_id)
        return True, attempt_id, None

    def load_attempt(self, attempt_id: str) -> Optional[Attempt]:
        """Load one attempt by id, or None if missing or unreadable."""
        if not attempt_id.startswith("at-"):
            attempt_id = f"at-{attempt_id}"
        filepath = self.attempts_dir / f"{attempt_id}.json"
        if not filepath.exists():
            return None
        record = self._read(filepath)
        return Attempt.from_dict(record) if record else None

    def load_attempts_by_learner(self, learner_id: str) -> List[Attempt]:
        """
        Load all attempts of one learner.

        Returns:
            Attempts sorted by completion time (oldest first)
        """
        records = [
            record
            for record in (self._read(p) for p in self.attempts_dir.glob("at-*.json"))
            if record and record.get("learnerId") == learner_id
        ]
        records.sort(key=lambda r: r.get("timestamp", ""))
        return [Attempt.from_dict(r) for r in records]

    def _read(self, filepath: Path) -> Optional[Dict[str, Any]]:
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to load %s: %s", filepath, e)
            return None


# Global persistence manager instance
_persistence_manager: Optional[AttemptPersistence] = None


def get_persistence_manager() -> AttemptPersistence:
    """Get or create the global attempt store."""
    global _persistence_manager
    if _persistence_manager is None:
        _persistence_manager = AttemptPersistence()
    return _persistence_manager
