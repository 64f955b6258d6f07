"""Tests for the configuration loading.
"""

import json
import os
from unittest.mock import patch

from suggestion_engine.core.config import Settings
from suggestion_engine.core.logging_config import build_logging_config
from suggestion_engine.features.cue_matcher import cue_matcher_from_settings

def test_settings_loading_directly():
    """Test that Settings can be initialized directly with values."""
    settings = Settings(
        environment="testing",
        debug=True,
        reference_date="2026-03-10",
        ai_fallback_threshold=0.6,
        cue_locales=["en"],
        _env_file=None,
    )

    assert settings.environment == "testing"
    assert settings.debug is True
    assert settings.reference_date == "2026-03-10"
    assert settings.ai_fallback_threshold == 0.6
    assert settings.cue_locales == ["en"]

def test_settings_defaults():
    """Test that Settings use default values when environment variables are not set."""
    with patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=None)

    assert settings.environment == "development"
    assert settings.reference_date is None
    assert settings.default_duration_min == 60
    assert settings.ai_fallback_threshold == 0.55
    assert settings.dev_log is True
    assert settings.cue_locales == ["en", "de"]
    assert settings.cue_file is None
    assert settings.llm_fallback_enabled is False

def test_settings_from_environment():
    with patch.dict(os.environ, {"reference_date": "2026-01-05", "dev_log": "false"}, clear=True):
        settings = Settings(_env_file=None)

    assert settings.reference_date == "2026-01-05"
    assert settings.dev_log is False

def test_cue_file_extends_builtin_cues(tmp_path):
    cue_file = tmp_path / "cues.json"
    cue_file.write_text(json.dumps({"de": {"trip": ["fahrt"], "return": ["zurueck"]}}), encoding="utf-8")

    matcher = cue_matcher_from_settings(["en"], str(cue_file))

    assert matcher.has_trip_cue("Fahrt nach Bern")
    assert matcher.has_return_cue("zurueck nach Zuerich")
    assert matcher.has_trip_cue("Outbound flight")
    assert not matcher.has_trip_cue("Abfahrt 08:00") # German built-ins not requested

def test_logging_config_uses_requested_level_and_stream():
    config = build_logging_config("DEBUG", stream="ext://sys.stderr")

    assert config["loggers"][""]["level"] == "DEBUG"
    assert config["handlers"]["console"]["stream"] == "ext://sys.stderr"
