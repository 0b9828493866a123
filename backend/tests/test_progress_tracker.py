from datetime import datetime, timedelta, timezone

import pytest

from conjuga.models import Attempt, CellSchedule, MasteryRecord, Verb, VerbForm
from conjuga.services.grammar import VerbInfo
from conjuga.services.progress_tracker import cell_mastery, mastery_summary, record_attempt

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def _seed_form(db, lemma="hablar", mood="indicative", tense="pres", person="1s", value="hablo", verb_type="regular"):
    verb = db.query(Verb).filter(Verb.lemma == lemma).first()
    if not verb:
        verb = Verb(lemma=lemma, type=verb_type)
        db.add(verb)
        db.flush()
    form = VerbForm(verb_id=verb.id, mood=mood, tense=tense, person=person, value=value, type=verb_type)
    db.add(form)
    db.commit()
    return form


VERBS = {"hablar": VerbInfo(lemma="hablar"), "comer": VerbInfo(lemma="comer")}


class TestRecordAttempt:
    def test_stores_attempt_mastery_and_schedule(self, db_session):
        form = _seed_form(db_session)
        result = record_attempt(db_session, form.id, True, latency_ms=3000, now=NOW)

        assert result["cell_key"] == "indicative|pres|1s|hablar"
        assert result["mastery"] == {"score": 100.0, "n": 1, "weighted_attempts": 1.0}
        assert result["next_due"] is not None
        assert db_session.query(Attempt).count() == 1
        assert db_session.query(MasteryRecord).one().score == 100.0
        assert db_session.query(CellSchedule).one().cell_key == result["cell_key"]

    def test_mastery_recomputed_from_history(self, db_session):
        form = _seed_form(db_session)
        record_attempt(db_session, form.id, True, now=NOW)
        record_attempt(db_session, form.id, False, now=NOW)
        result = record_attempt(db_session, form.id, True, hints_used=1, now=NOW)

        assert result["mastery"]["score"] == pytest.approx(61.67, abs=0.01)
        assert result["mastery"]["n"] == 3
        assert db_session.query(MasteryRecord).count() == 1

    def test_error_tags_and_answer_kept(self, db_session):
        form = _seed_form(db_session)
        record_attempt(db_session, form.id, False, user_answer="habló", error_tags=["wrong_tense"], now=NOW)
        attempt = db_session.query(Attempt).one()
        assert attempt.user_answer == "habló"
        assert attempt.error_tags_json == ["wrong_tense"]

    def test_unknown_form(self, db_session):
        with pytest.raises(ValueError):
            record_attempt(db_session, 9999, True)


class TestAggregates:
    def test_cell_mastery_across_verbs(self, db_session):
        hablo = _seed_form(db_session)
        como = _seed_form(db_session, lemma="comer", value="como")
        for _ in range(3):
            record_attempt(db_session, hablo.id, True, now=NOW)
        record_attempt(db_session, como.id, False, now=NOW)

        cell = cell_mastery(db_session, "indicative", "pres", "1s", VERBS, now=NOW)
        assert cell["score"] == 75.0
        assert cell["n"] == 4
        assert cell["classification"] == "insufficient"
        assert cell["confidence"]["level"] == "low"

    def test_cell_without_attempts(self, db_session):
        cell = cell_mastery(db_session, "subjunctive", "subjPres", "3s", VERBS, now=NOW)
        assert cell["score"] == 50.0
        assert cell["n"] == 0

    def test_slow_cell_gets_speed_advice(self, db_session):
        form = _seed_form(db_session)
        for _ in range(8):
            record_attempt(db_session, form.id, True, latency_ms=9000, now=NOW)
        cell = cell_mastery(db_session, "indicative", "pres", "1s", VERBS, now=NOW)
        assert cell["classification"] == "achieved"
        assert "speed" in cell["recommendation"]

    def test_summary_per_tense(self, db_session):
        hablo = _seed_form(db_session)
        habla = _seed_form(db_session, person="3s", value="habla")
        hable = _seed_form(db_session, tense="pretIndef", value="hablé")
        record_attempt(db_session, hablo.id, True, now=NOW)
        record_attempt(db_session, habla.id, False, now=NOW)
        record_attempt(db_session, hable.id, True, now=NOW)

        summary = {(row["mood"], row["tense"]): row for row in mastery_summary(db_session, VERBS, now=NOW)}
        assert summary[("indicative", "pres")]["cells"] == 2
        assert summary[("indicative", "pres")]["score"] == 50.0
        assert summary[("indicative", "pretIndef")]["score"] == 100.0

    def test_summary_is_per_user(self, db_session):
        form = _seed_form(db_session)
        record_attempt(db_session, form.id, True, user_id="ana", now=NOW)
        assert mastery_summary(db_session, VERBS, user_id="ben", now=NOW) == []
