"""Attempt tracking.

The write path appends an attempt, recomputes the item's mastery snapshot
from its full history, reschedules the cell with FSRS and logs the
interaction. The read side aggregates attempts into cell and tense mastery.
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from conjuga.models import Attempt, MasteryRecord, Verb, VerbForm
from conjuga.services.grammar import VerbInfo, make_cell_key
from conjuga.services.interaction_logger import log_interaction
from conjuga.services.mastery import (
    calculate_mastery_for_cell,
    calculate_mastery_for_time_or_mood,
    classify_mastery_level,
    get_confidence_level,
    item_mastery,
)
from conjuga.services.srs_service import update_schedule
from conjuga.services.verb_catalog import verb_info_from_row

logger = logging.getLogger(__name__)


def _upsert_mastery(db: Session, user_id: str, form_id: int, cell_key: str, mastery: dict, now: datetime) -> MasteryRecord:
    record = (
        db.query(MasteryRecord)
        .filter(MasteryRecord.user_id == user_id, MasteryRecord.form_id == form_id)
        .first()
    )
    if not record:
        record = MasteryRecord(user_id=user_id, form_id=form_id, cell_key=cell_key)
        db.add(record)
    record.score = mastery["score"]
    record.n = mastery["n"]
    record.weighted_attempts = mastery["weighted_attempts"]
    record.updated_at = now
    return record


def record_attempt(
    db: Session,
    form_id: int,
    correct: bool,
    latency_ms: Optional[int] = None,
    hints_used: int = 0,
    error_tags: Optional[list[str]] = None,
    user_answer: Optional[str] = None,
    user_id: str = "local",
    now: Optional[datetime] = None,
) -> dict:
    """Store one answer and refresh the derived mastery and schedule.

    Raises ValueError when the form does not exist.
    """
    row = db.query(VerbForm).filter(VerbForm.id == form_id).first()
    if row is None:
        raise ValueError(f"Unknown form {form_id}")
    verb: Verb = row.verb
    cell_key = make_cell_key(row.mood, row.tense, row.person, verb.lemma)
    now = now or datetime.now(timezone.utc)

    attempt = Attempt(
        user_id=user_id,
        form_id=form_id,
        cell_key=cell_key,
        correct=correct,
        latency_ms=latency_ms,
        hints_used=hints_used or 0,
        user_answer=user_answer,
        error_tags_json=list(error_tags) if error_tags else None,
        created_at=now,
    )
    db.add(attempt)
    db.flush()

    mastery = item_mastery(db, form_id, verb_info_from_row(verb), user_id=user_id, now=now)
    _upsert_mastery(db, user_id, form_id, cell_key, mastery, now)
    schedule = update_schedule(
        db, user_id, cell_key, correct,
        hints_used=hints_used, latency_ms=latency_ms, now=now, commit=False,
    )
    db.commit()

    log_interaction(
        event="attempt_recorded",
        form_id=form_id,
        correct=correct,
        latency_ms=latency_ms,
        context=f"cell:{cell_key}",
        hints_used=hints_used or None,
        score=mastery["score"],
        error_tags=list(error_tags) if error_tags else None,
    )
    logger.info(f"Attempt on {cell_key}: correct={correct}, score now {mastery['score']}")

    return {
        "attempt_id": attempt.id,
        "form_id": form_id,
        "cell_key": cell_key,
        "mastery": mastery,
        "next_due": schedule["next_due"],
    }


def _attempts_by_cell(db: Session, user_id: str, mood: Optional[str] = None, tense: Optional[str] = None) -> dict:
    """(mood, tense, person) -> lemma -> attempts, for one learner."""
    query = (
        db.query(Attempt, VerbForm, Verb.lemma)
        .join(VerbForm, Attempt.form_id == VerbForm.id)
        .join(Verb, VerbForm.verb_id == Verb.id)
        .filter(Attempt.user_id == user_id)
    )
    if mood:
        query = query.filter(VerbForm.mood == mood)
    if tense:
        query = query.filter(VerbForm.tense == tense)

    cells: dict = defaultdict(lambda: defaultdict(list))
    for attempt, form, lemma in query.order_by(Attempt.created_at).all():
        cells[(form.mood, form.tense, form.person)][lemma].append(attempt)
    return cells


def _average_latency(items: dict) -> Optional[float]:
    latencies = [a.latency_ms for attempts in items.values() for a in attempts if a.latency_ms is not None]
    return sum(latencies) / len(latencies) if latencies else None


def cell_mastery(
    db: Session,
    mood: str,
    tense: str,
    person: Optional[str],
    verbs: dict[str, VerbInfo],
    user_id: str = "local",
    now: Optional[datetime] = None,
) -> dict:
    """Mastery of one mood|tense|person cell across every verb practiced in it."""
    items = _attempts_by_cell(db, user_id, mood, tense).get((mood, tense, person), {})
    mastery = calculate_mastery_for_cell(items.items(), verbs, now)
    classification = classify_mastery_level(mastery["score"], mastery["weighted_n"], _average_latency(items))
    return {
        "mood": mood,
        "tense": tense,
        "person": person,
        **mastery,
        "confidence": classification["confidence"],
        "classification": classification["level"],
        "recommendation": classification["recommendation"],
    }


def mastery_summary(db: Session, verbs: dict[str, VerbInfo], user_id: str = "local", now: Optional[datetime] = None) -> list[dict]:
    """Per mood|tense aggregate of the practiced cells, weighted by their evidence."""
    by_tense: dict = defaultdict(list)
    for (mood, tense, _person), items in _attempts_by_cell(db, user_id).items():
        by_tense[(mood, tense)].append(calculate_mastery_for_cell(items.items(), verbs, now))

    summary = []
    for (mood, tense), cells in sorted(by_tense.items()):
        weighted_n = sum(c["weighted_n"] for c in cells)
        summary.append({
            "mood": mood,
            "tense": tense,
            "score": calculate_mastery_for_time_or_mood(cells, [c["weighted_n"] for c in cells]),
            "cells": len(cells),
            "n": sum(c["n"] for c in cells),
            "weighted_n": round(weighted_n, 2),
            "confidence": get_confidence_level(weighted_n)["level"],
        })
    return summary
