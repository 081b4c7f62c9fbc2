"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from zap.delivery.state_store import StateStore  # noqa: E402
from zap.study.models import CardState  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite in tmp_path)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)
        elif "smoke" in path:
            item.add_marker(pytest.mark.smoke)


@pytest.fixture
def now():
    """A fixed reference time."""
    return datetime(2024, 3, 15, 9, 0, 0)


@pytest.fixture
def make_card(now):
    """Factory for cards scheduled relative to `now`."""

    def _make(card_id, difficulty=1.0, due_in_days=0.0, interval_days=1, deck_id=None):
        return CardState(
            card_id=card_id,
            difficulty=difficulty,
            next_review=now + timedelta(days=due_in_days),
            interval_days=interval_days,
            deck_id=deck_id,
            question=f"Question {card_id}",
            answer=f"Answer {card_id}",
        )

    return _make


@pytest.fixture
def store(tmp_path):
    """StateStore backed by a temporary SQLite file."""
    state_store = StateStore(tmp_path / "state.db")
    yield state_store
    state_store.close()
