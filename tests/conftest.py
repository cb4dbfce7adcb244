"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (pure functions, no database)")
    config.addinivalue_line("markers", "engine: Store-backed service tests (temporary SQLite)")
    config.addinivalue_line("markers", "smoke: CLI smoke tests (subprocess, temporary SQLite)")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "engine" in path:
            item.add_marker(pytest.mark.engine)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def sample_translation():
    """Provide a sample translation exercise."""
    return {
        "exercise_type": "translation",
        "item_id": "b1",
        "target": "I am happy",
        "prompt": "Eu estou feliz",
    }


@pytest.fixture
def sample_multiple_choice():
    """Provide a sample multiple choice exercise with options already built."""
    return {
        "exercise_type": "multiple_choice",
        "item_id": "b2",
        "target": "Good morning",
        "prompt": "Bom dia",
        "options": ["Good night", "Good morning", "Thank you", "See you later"],
    }
