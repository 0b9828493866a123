from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from conjuga.services.grammar import VerbInfo
from conjuga.services.mastery import (
    NEUTRAL_SCORE,
    calculate_mastery_for_cell,
    calculate_mastery_for_item,
    calculate_mastery_for_time_or_mood,
    calculate_recency_weight,
    classify_mastery_level,
    get_confidence_level,
    get_verb_difficulty,
    get_verb_tense_difficulty,
    hint_penalty,
)

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
REGULAR = VerbInfo(lemma="hablar")
IRREGULAR = VerbInfo(lemma="tener", type="irregular")


def _attempt(correct=True, hints=0, days_ago=0, latency_ms=None):
    return SimpleNamespace(
        correct=correct,
        hints_used=hints,
        created_at=NOW - timedelta(days=days_ago),
        latency_ms=latency_ms,
    )


class TestRecencyWeight:
    def test_fresh_attempt(self):
        assert calculate_recency_weight(NOW, NOW) == 1.0

    def test_ten_days(self):
        assert calculate_recency_weight(NOW - timedelta(days=10), NOW) == pytest.approx(0.37)

    def test_naive_datetime_is_utc(self):
        naive = (NOW - timedelta(days=10)).replace(tzinfo=None)
        assert calculate_recency_weight(naive, NOW) == pytest.approx(0.37)

    def test_old_attempts_fade(self):
        assert calculate_recency_weight(NOW - timedelta(days=60), NOW) == 0.0


class TestDifficulty:
    def test_regular_and_irregular(self):
        assert get_verb_difficulty(REGULAR) == 1.0
        assert get_verb_difficulty(IRREGULAR) == 1.2

    def test_frequency_adjustment(self):
        assert get_verb_difficulty(VerbInfo(lemma="ser", type="irregular", frequency="high")) == pytest.approx(1.15)
        assert get_verb_difficulty(VerbInfo(lemma="asir", type="irregular", frequency="low")) == pytest.approx(1.25)

    def test_clamped(self):
        for verb in (REGULAR, IRREGULAR, VerbInfo(lemma="x", type="irregular", frequency="low")):
            assert 0.8 <= get_verb_tense_difficulty(verb, "pres") <= 1.3

    def test_tense_irregularity(self):
        verb = VerbInfo(lemma="tener", type="irregular", irregularity={"pres": True, "impf": False})
        assert get_verb_tense_difficulty(verb, "pres") == 1.3
        assert get_verb_tense_difficulty(verb, "impf") == pytest.approx(1.0)

    @pytest.mark.parametrize("irregularity,expected", [
        ({"pres": True, "pretIndef": True, "fut": False}, 1.2),
        ({"pres": True, "pretIndef": False, "fut": False}, 1.1),
        ({"pres": True, "pretIndef": False, "fut": False, "impf": False, "cond": False}, 1.05),
        ({"pres": False, "impf": False}, 1.0),
    ])
    def test_irregularity_share_sets_base(self, irregularity, expected):
        verb = VerbInfo(lemma="x", type="irregular", irregularity=irregularity)
        assert get_verb_difficulty(verb) == pytest.approx(expected)

    def test_global_type_without_matrix(self):
        assert get_verb_difficulty(VerbInfo(lemma="x", type="irregular")) == 1.2

    def test_unknown_verb(self):
        assert get_verb_difficulty(None) == 1.0


class TestHintPenalty:
    @pytest.mark.parametrize("hints,expected", [(0, 0), (1, 5), (3, 15), (5, 15)])
    def test_capped(self, hints, expected):
        assert hint_penalty(hints) == expected


class TestItemMastery:
    def test_no_attempts_is_neutral(self):
        result = calculate_mastery_for_item([], REGULAR, NOW)
        assert result == {"score": NEUTRAL_SCORE, "n": 0, "weighted_attempts": 0}

    def test_correct_incorrect_hinted(self):
        attempts = [_attempt(True), _attempt(False), _attempt(True, hints=1)]
        result = calculate_mastery_for_item(attempts, REGULAR, NOW)
        assert result["score"] == pytest.approx(61.67, abs=0.01)
        assert result["n"] == 3
        assert result["weighted_attempts"] == 3.0

    def test_difficulty_cancels_in_single_verb_ratio(self):
        attempts = [_attempt(True), _attempt(False)]
        assert calculate_mastery_for_item(attempts, IRREGULAR, NOW)["score"] == 50.0

    def test_recent_attempts_dominate(self):
        attempts = [_attempt(False, days_ago=30), _attempt(True)]
        assert calculate_mastery_for_item(attempts, REGULAR, NOW)["score"] > 90

    def test_score_clamped_at_zero(self):
        attempts = [_attempt(True, hints=3)] + [_attempt(False)] * 9
        assert calculate_mastery_for_item(attempts, REGULAR, NOW)["score"] == 0.0

    def test_hints_on_wrong_answers_ignored(self):
        attempts = [_attempt(True), _attempt(False, hints=3)]
        assert calculate_mastery_for_item(attempts, REGULAR, NOW)["score"] == 50.0


class TestCellMastery:
    def test_weighted_by_attempt_mass(self):
        items = [
            ("hablar", [_attempt(True)] * 9),
            ("tener", [_attempt(False)]),
        ]
        result = calculate_mastery_for_cell(items, {"hablar": REGULAR, "tener": IRREGULAR}, NOW)
        assert result["score"] == 90.0
        assert result["n"] == 10
        assert result["weighted_n"] == 10.0

    def test_unknown_verbs_skipped(self):
        result = calculate_mastery_for_cell([("nope", [_attempt(True)])], {}, NOW)
        assert result == {"score": NEUTRAL_SCORE, "n": 0, "weighted_n": 0}

    def test_time_or_mood_aggregate(self):
        cells = [{"score": 100.0}, {"score": 50.0}]
        assert calculate_mastery_for_time_or_mood(cells) == 75.0
        assert calculate_mastery_for_time_or_mood(cells, [3, 1]) == 87.5
        assert calculate_mastery_for_time_or_mood([]) == NEUTRAL_SCORE


class TestConfidence:
    @pytest.mark.parametrize("weighted_n,level,sufficient", [
        (7, "low", False),
        (8, "medium", True),
        (19.9, "medium", True),
        (20, "high", True),
    ])
    def test_boundaries(self, weighted_n, level, sufficient):
        confidence = get_confidence_level(weighted_n)
        assert confidence["level"] == level
        assert confidence["sufficient"] is sufficient


class TestClassification:
    def test_insufficient_data(self):
        assert classify_mastery_level(95, 3)["level"] == "insufficient"

    def test_bands(self):
        assert classify_mastery_level(80, 10)["level"] == "achieved"
        assert classify_mastery_level(79.9, 10)["level"] == "attention"
        assert classify_mastery_level(60, 10)["level"] == "attention"
        assert classify_mastery_level(59, 10)["level"] == "critical"

    def test_slow_answers(self):
        slow = classify_mastery_level(85, 10, avg_latency_ms=7000)
        assert slow["recommendation"].endswith("Work on response speed.")
        fast = classify_mastery_level(85, 10, avg_latency_ms=3000)
        assert "speed" not in fast["recommendation"]
