"""Mastery scoring for drill items and cells.

Each attempt is weighted by recency (exp(-days/10)) and by how hard the
verb is. An item's score is the weighted share of correct attempts, minus
a penalty for hints used on correct answers. A cell aggregates its items by
their weighted-attempt mass. Confidence depends on that effective attempt
count: below 8 the score is not trusted.
"""

import math
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from conjuga.models import Attempt
from conjuga.services.grammar import VerbInfo

DECAY_TAU_DAYS = 10
NEUTRAL_SCORE = 50.0

HINT_PENALTY = 5
MAX_HINT_PENALTY = 15

VERB_DIFFICULTY = {
    "regular": 1.0,
    "orthographic_change": 1.05,
    "diphthong": 1.1,
    "irregular": 1.2,
}
FREQUENCY_DIFFICULTY_BONUS = {"high": -0.05, "medium": 0.0, "low": 0.05}
MIN_DIFFICULTY = 0.8
MAX_DIFFICULTY = 1.3

MIN_CONFIDENCE_N = 8
CONFIDENCE_HIGH_N = 20

MASTERY_ACHIEVED = 80
MASTERY_ATTENTION = 60
SLOW_LATENCY_MS = 6000


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def calculate_recency_weight(created_at: datetime, now: Optional[datetime] = None) -> float:
    now = _as_utc(now or datetime.now(timezone.utc))
    days = max(0.0, (now - _as_utc(created_at)).total_seconds() / 86400)
    return round(math.exp(-days / DECAY_TAU_DAYS), 2)


def _clamp_difficulty(value: float) -> float:
    return max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, value))


def _irregularity_class(verb: VerbInfo) -> str:
    """Difficulty class from the share of irregular tenses, else the global type."""
    if not verb.irregularity:
        return verb.type
    share = sum(1 for flag in verb.irregularity.values() if flag) / len(verb.irregularity)
    if share > 0.5:
        return "irregular"
    if share > 0.25:
        return "diphthong"
    if share > 0:
        return "orthographic_change"
    return "regular"


def get_verb_difficulty(verb: Optional[VerbInfo]) -> float:
    if verb is None:
        return VERB_DIFFICULTY["regular"]
    difficulty = VERB_DIFFICULTY.get(_irregularity_class(verb), VERB_DIFFICULTY["regular"])
    difficulty += FREQUENCY_DIFFICULTY_BONUS.get(verb.frequency or "", 0.0)
    return _clamp_difficulty(difficulty)


def get_verb_tense_difficulty(verb: Optional[VerbInfo], tense: str) -> float:
    """Base difficulty nudged by whether the verb is irregular in this tense."""
    base = get_verb_difficulty(verb)
    if verb is None or not verb.irregularity:
        return base
    flag = verb.irregularity.get(tense)
    if flag is True:
        return _clamp_difficulty(base + 0.2)
    if flag is False:
        return _clamp_difficulty(base - 0.1)
    return base


def hint_penalty(hints_used: int) -> int:
    return min(MAX_HINT_PENALTY, max(0, hints_used or 0) * HINT_PENALTY)


def calculate_mastery_for_item(attempts: Iterable, verb: Optional[VerbInfo], now: Optional[datetime] = None) -> dict:
    """Score one item from its attempt history.

    Attempts need ``correct``, ``hints_used`` and ``created_at``.
    """
    attempts = list(attempts)
    if not attempts:
        return {"score": NEUTRAL_SCORE, "n": 0, "weighted_attempts": 0}

    difficulty = get_verb_difficulty(verb)
    weighted_total = 0.0
    weighted_correct = 0.0
    weighted_attempts = 0.0
    total_penalty = 0

    for attempt in attempts:
        weight = calculate_recency_weight(attempt.created_at, now)
        value = weight * difficulty
        weighted_total += value
        weighted_attempts += weight
        if attempt.correct:
            weighted_correct += value
            total_penalty += hint_penalty(attempt.hints_used)

    base = 100 * weighted_correct / weighted_total if weighted_total > 0 else 100.0
    score = min(100.0, max(0.0, base - total_penalty))
    return {
        "score": round(score, 2),
        "n": len(attempts),
        "weighted_attempts": round(weighted_attempts, 2),
    }


def calculate_mastery_for_cell(items: Iterable[tuple[str, list]], verbs: dict[str, VerbInfo], now: Optional[datetime] = None) -> dict:
    """Aggregate item scores weighted by each item's weighted-attempt mass.

    ``items`` is a sequence of (lemma, attempts) pairs; items whose verb is
    unknown are skipped.
    """
    total_score = 0.0
    total_n = 0
    total_weight = 0.0
    for lemma, attempts in items:
        verb = verbs.get(lemma)
        if verb is None:
            continue
        mastery = calculate_mastery_for_item(attempts, verb, now)
        total_score += mastery["score"] * mastery["weighted_attempts"]
        total_n += mastery["n"]
        total_weight += mastery["weighted_attempts"]

    score = total_score / total_weight if total_weight > 0 else NEUTRAL_SCORE
    return {"score": round(score, 2), "n": total_n, "weighted_n": round(total_weight, 2)}


def calculate_mastery_for_time_or_mood(cells: list[dict], weights: Optional[list[float]] = None) -> float:
    if not cells:
        return NEUTRAL_SCORE
    weights = weights or []
    weighted_sum = 0.0
    total_weight = 0.0
    for i, cell in enumerate(cells):
        weight = weights[i] if i < len(weights) and weights[i] else 1
        weighted_sum += cell["score"] * weight
        total_weight += weight
    return round(weighted_sum / total_weight, 2) if total_weight > 0 else NEUTRAL_SCORE


def get_confidence_level(weighted_n: float) -> dict:
    sufficient = weighted_n >= MIN_CONFIDENCE_N
    if weighted_n >= CONFIDENCE_HIGH_N:
        level = "high"
    elif weighted_n >= MIN_CONFIDENCE_N:
        level = "medium"
    else:
        level = "low"
    message = (
        "Enough data for a reliable estimate"
        if sufficient
        else "Not enough data yet; more attempts are needed for a reliable estimate"
    )
    return {"level": level, "sufficient": sufficient, "message": message}


def classify_mastery_level(score: float, weighted_n: float, avg_latency_ms: Optional[float] = None) -> dict:
    confidence = get_confidence_level(weighted_n)
    if not confidence["sufficient"]:
        return {
            "level": "insufficient",
            "confidence": confidence,
            "recommendation": "Practice more to get an accurate assessment.",
        }

    if score >= MASTERY_ACHIEVED:
        level = "achieved"
        recommendation = "Solid command. Review occasionally to keep it."
    elif score >= MASTERY_ATTENTION:
        level = "attention"
        recommendation = "Practice regularly to consolidate."
    else:
        level = "critical"
        recommendation = "Needs focused practice."

    if avg_latency_ms and avg_latency_ms > SLOW_LATENCY_MS:
        recommendation += " Work on response speed."

    return {"level": level, "confidence": confidence, "recommendation": recommendation}


def get_item_attempts(db: Session, form_id: int, user_id: str = "local") -> list[Attempt]:
    return (
        db.query(Attempt)
        .filter(Attempt.form_id == form_id, Attempt.user_id == user_id)
        .order_by(Attempt.created_at)
        .all()
    )


def item_mastery(db: Session, form_id: int, verb: Optional[VerbInfo], user_id: str = "local", now: Optional[datetime] = None) -> dict:
    return calculate_mastery_for_item(get_item_attempts(db, form_id, user_id), verb, now)
