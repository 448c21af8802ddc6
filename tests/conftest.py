"""
Shared pytest fixtures and configuration for ShannonLearn tests.

This file is automatically discovered by pytest and provides
fixtures available to all tests.
"""

import sys
from pathlib import Path

import pytest

# Make the package importable without installing it
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def valid_lesson_payload():
    """
    Fixture providing a lesson in the lesson-source wire format.

    Returns:
        dict: A lesson that passes lesson.schema.json
    """
    return {
        "lessonTitle": "The Water Cycle",
        "lessonTopic": "Evaporation and condensation",
        "subject": "Science",
        "lessonFormat": "story",
        "lessonPages": [
            {"sentences": ["The sun warms the sea.", "Water rises as vapour."], "imageDataUri": None},
            {"sentences": ["Vapour cools into clouds."], "imageDataUri": "data:image/png;base64,AAAA"},
        ],
        "quiz": [
            {
                "question": "What makes water rise into the air?",
                "options": ["Wind", "The sun's heat", "Fish", "Rocks"],
                "correctAnswerIndex": 1,
                "explanation": "Heat from the sun turns water into vapour.",
            }
        ],
        "curriculumInfo": {
            "summary": "Grade 2 science: states of water",
            "sourceHints": ["NGSS 2-PS1"],
            "isPlaceholder": False,
        },
    }


@pytest.fixture
def attempts_dir(tmp_path):
    """Empty directory for attempt files."""
    directory = tmp_path / "attempts"
    directory.mkdir()
    return directory


@pytest.fixture(autouse=True)
def reset_token_tracker():
    """
    Auto-fixture to reset token tracker before each test.

    This ensures tests don't interfere with each other.
    """
    from shannon_learn.config import token_tracker

    token_tracker.reset()
    yield
    token_tracker.reset()


# Pytest hooks for better test output


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
