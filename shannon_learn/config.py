"""
Configuration management for ShannonLearn.

Settings are grouped into small dataclasses behind a single ``Config``:
- Secrets and locations come from environment variables (``.env`` supported)
- Defaults are suitable for local development
- ``Config.validate()`` reports problems instead of raising
- Token usage of the recommendation model is tracked thread-safely
"""

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass
class ModelConfig:
    """LLM settings for the next-lesson recommendation agent."""

    api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    model_name: str = field(
        default_factory=lambda: os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    )
    base_url: Optional[str] = field(
        default_factory=lambda: os.getenv("OPENAI_BASE_URL")
    )

    temperature: float = 0.4
    max_tokens: int = 800

    max_retries: int = 2
    request_timeout: float = field(
        default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT", "30.0"))
    )


@dataclass
class SessionConfig:
    """Lesson session policy."""

    # A finished lesson must score at least this much to ask for a next topic
    recommendation_threshold: int = 60
    # Cold start: no recommendation until the learner has this many earlier attempts
    min_prior_attempts: int = 1
    history_summary_limit: int = 5

    speech_language: str = field(
        default_factory=lambda: os.getenv("SPEECH_LANGUAGE", "en-US")
    )


@dataclass
class PathConfig:
    """File system paths - single source of truth for all directories."""

    package_root: Path = field(default_factory=lambda: Path(__file__).parent)
    data_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("SHANNON_DATA_DIR", Path(__file__).parent.parent / "data")
        ).resolve()
    )

    attempts_dir: Path = field(init=False)
    usage_file: Path = field(init=False)
    schemas_dir: Path = field(init=False)
    attempt_schema: Path = field(init=False)
    lesson_schema: Path = field(init=False)

    def __post_init__(self):
        self.attempts_dir = self.data_dir / "attempts"
        self.usage_file = self.data_dir / "usage.json"
        self.schemas_dir = self.package_root / "schemas"
        self.attempt_schema = self.schemas_dir / "attempt.schema.json"
        self.lesson_schema = self.schemas_dir / "lesson.schema.json"

    def prepare_filesystem(self):
        """
        Create data directories if they don't exist.

        Kept out of __post_init__ so importing the config has no side effects.
        """
        for directory in [self.data_dir, self.attempts_dir]:
            directory.mkdir(parents=True, exist_ok=True)


@dataclass
class LoggingConfig:
    """Logging and token cost settings."""

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
    date_format: str = "%H:%M:%S"

    cost_per_1k_input: float = field(
        default_factory=lambda: float(os.getenv("COST_PER_1K_INPUT", "0.00015"))
    )
    cost_per_1k_output: float = field(
        default_factory=lambda: float(os.getenv("COST_PER_1K_OUTPUT", "0.0006"))
    )


class Config:
    """
    Main configuration class. Singleton pattern.

    Usage:
        from shannon_learn.config import config

        threshold = config.session.recommendation_threshold
        config.prepare_fs()
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.paths = PathConfig()
            cls._instance.model = ModelConfig()
            cls._instance.session = SessionConfig()
            cls._instance.logging = LoggingConfig()
        return cls._instance

    def prepare_fs(self):
        """Create data directories. Call once at startup."""
        self.paths.prepare_filesystem()

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if not self.model.api_key:
            errors.append("OPENAI_API_KEY not set in environment")

        if not (0 <= self.model.temperature <= 2):
            errors.append(f"temperature must be in [0, 2], got {self.model.temperature}")

        if self.model.max_tokens <= 0:
            errors.append(f"max_tokens must be > 0, got {self.model.max_tokens}")

        if self.model.request_timeout <= 0:
            errors.append(f"request_timeout must be > 0, got {self.model.request_timeout}")

        if not (0 <= self.session.recommendation_threshold <= 100):
            errors.append(
                "recommendation_threshold must be in [0, 100], "
                f"got {self.session.recommendation_threshold}"
            )

        if self.session.min_prior_attempts < 0:
            errors.append(
                f"min_prior_attempts must be >= 0, got {self.session.min_prior_attempts}"
            )

        if self.session.history_summary_limit < 1:
            errors.append(
                f"history_summary_limit must be >= 1, got {self.session.history_summary_limit}"
            )

        for schema in (self.paths.attempt_schema, self.paths.lesson_schema):
            if not schema.exists():
                errors.append(f"Schema not found: {schema}")

        if logging.getLevelName(self.logging.log_level.upper()) not in (
            logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL,
        ):
            errors.append(f"Unknown LOG_LEVEL: {self.logging.log_level}")

        return errors


# Global config instance
config = Config()


LOG_HANDLER_NAME = "shannon_learn.console"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Install a console handler on the root logger. Call once at app start.

    Calling it again only adjusts the level. Handlers installed by others
    (test runners, host applications) are left alone.
    """
    resolved = getattr(logging, (level or config.logging.log_level).upper(), logging.INFO)
    if not isinstance(resolved, int):
        resolved = logging.INFO
    root = logging.getLogger()
    root.setLevel(resolved)
    if any(h.get_name() == LOG_HANDLER_NAME for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.set_name(LOG_HANDLER_NAME)
    handler.setFormatter(
        logging.Formatter(config.logging.log_format, datefmt=config.logging.date_format)
    )
    root.addHandler(handler)


class TokenTracker:
    """
    Thread-safe tally of model tokens and their estimated cost.

    Usage:
        from shannon_learn.config import token_tracker

        token_tracker.add_tokens(input_tokens=120, output_tokens=80)
        print(token_tracker.summary())
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.input_tokens = 0
        self.output_tokens = 0
        self.total_calls = 0

    def add_tokens(self, input_tokens: int, output_tokens: int):
        """Record one model call (thread-safe)."""
        with self._lock:
            self.input_tokens += input_tokens
            self.output_tokens += output_tokens
            self.total_calls += 1

    def _cost(self, input_tokens: int, output_tokens: int) -> float:
        return (input_tokens / 1000) * config.logging.cost_per_1k_input + (
            output_tokens / 1000
        ) * config.logging.cost_per_1k_output

    def get_stats(self) -> dict:
        """Snapshot of the counters (thread-safe)."""
        with self._lock:
            input_tokens = self.input_tokens
            output_tokens = self.output_tokens
            total_calls = self.total_calls

        return {
            "calls": total_calls,
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
            "estimated_cost": self._cost(input_tokens, output_tokens),
        }

    def summary(self) -> str:
        """Human-readable usage summary."""
        stats = self.get_stats()
        return (
            "Token Usage Summary:\n"
            f"  API Calls: {stats['calls']}\n"
            f"  Input Tokens: {stats['input_tokens']:,}\n"
            f"  Output Tokens: {stats['output_tokens']:,}\n"
            f"  Total Tokens: {stats['total_tokens']:,}\n"
            f"  Estimated Cost: ${stats['estimated_cost']:.4f}"
        )

    def reset(self):
        """Reset counters (thread-safe)."""
        with self._lock:
            self.input_tokens = 0
            self.output_tokens = 0
            self.total_calls = 0


# Global token tracker instance
token_tracker = TokenTracker()
