import json
import os
from unittest.mock import patch

import pytest

from conjuga.services.interaction_logger import log_interaction


@pytest.fixture(autouse=True)
def _allow_logging():
    """Temporarily clear TESTING so these tests can exercise the logger."""
    old = os.environ.pop("TESTING", None)
    yield
    if old is not None:
        os.environ["TESTING"] = old


def _entries(tmp_path):
    log_files = list(tmp_path.glob("interactions_*.jsonl"))
    assert len(log_files) == 1
    with open(log_files[0]) as f:
        return [json.loads(line) for line in f]


def test_log_attempt(tmp_path):
    with patch("conjuga.services.interaction_logger.settings") as mock_settings:
        mock_settings.log_dir = tmp_path
        log_interaction(
            event="attempt_recorded",
            form_id=42,
            correct=True,
            latency_ms=2100,
            context="cell:indicative|pres|1s|hablar",
            session_id="abc123",
        )

    [entry] = _entries(tmp_path)
    assert entry["event"] == "attempt_recorded"
    assert entry["form_id"] == 42
    assert entry["correct"] is True
    assert entry["latency_ms"] == 2100
    assert entry["session_id"] == "abc123"
    assert "ts" in entry


def test_log_multiple_interactions(tmp_path):
    with patch("conjuga.services.interaction_logger.settings") as mock_settings:
        mock_settings.log_dir = tmp_path
        log_interaction(event="drill_item_served", form_id=1, eligible=12)
        log_interaction(event="drill_item_served", form_id=2, eligible=11)
        log_interaction(event="drill_fallback_used", context="subjunctive|subjPres")

    entries = _entries(tmp_path)
    assert [e["event"] for e in entries] == ["drill_item_served", "drill_item_served", "drill_fallback_used"]
    assert entries[0]["eligible"] == 12


def test_log_omits_none_fields(tmp_path):
    with patch("conjuga.services.interaction_logger.settings") as mock_settings:
        mock_settings.log_dir = tmp_path
        log_interaction(event="session_start")

    [entry] = _entries(tmp_path)
    assert entry["event"] == "session_start"
    assert "form_id" not in entry
    assert "correct" not in entry


def test_silent_when_testing(tmp_path):
    os.environ["TESTING"] = "1"
    with patch("conjuga.services.interaction_logger.settings") as mock_settings:
        mock_settings.log_dir = tmp_path
        log_interaction(event="attempt_recorded", form_id=1)
    assert list(tmp_path.glob("*.jsonl")) == []
