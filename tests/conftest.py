"""Shared fixtures for the suggestion engine tests."""

import pytest

from suggestion_engine.core.config import Settings
from suggestion_engine.features.suggestion_models import Candidate


@pytest.fixture
def engine_settings():
    """Settings with defaults only; never reads a real .env file."""
    return Settings(_env_file=None, reference_date="2026-03-10", dev_log=False)


@pytest.fixture
def make_item():
    """Factory for raw extracted items with sensible defaults."""
    def _make_item(**overrides):
        item = {
            "title": "Event",
            "dateISO": "2026-03-10",
            "startTime": "09:00",
            "durationMin": 60,
            "location": "",
            "confidence": 0.7,
            "sourceSnippet": "source",
        }
        item.update(overrides)
        return item
    return _make_item


@pytest.fixture
def make_candidate():
    """Factory for normalized candidates."""
    def _make_candidate(**overrides):
        fields = {
            "id": "s1",
            "title": "Client Review",
            "start": "2026-03-10T09:00",
            "end": "2026-03-10T10:00",
            "location": None,
            "field_confidence": 0.7,
            "missing_date": False,
            "missing_time": False,
            "source_text": "",
            "source_document_id": "doc-1",
        }
        fields.update(overrides)
        return Candidate(**fields)
    return _make_candidate
