from conjuga.models import LearnerSettings, Verb, VerbForm
from conjuga.routers.drill import fallback_stats
from conjuga.services.conjugation_rules import conjugate_regular_paradigm


def _seed_regular(db, lemma, gloss=None):
    verb = Verb(lemma=lemma, type="regular", frequency="high", gloss_en=gloss, families_json=[])
    db.add(verb)
    db.flush()
    for row in conjugate_regular_paradigm(lemma):
        db.add(VerbForm(
            verb_id=verb.id, mood=row["mood"], tense=row["tense"], person=row["person"],
            value=row["value"], type="regular",
            region_tag="rioplatense" if row["person"] == "2s_vos" else None,
        ))
    db.commit()
    return verb


def _seed_irregular(db):
    verb = Verb(lemma="tener", type="irregular", frequency="high", families_json=["G_VERBS"],
                irregularity_json={"pres": True})
    db.add(verb)
    db.flush()
    db.add(VerbForm(verb_id=verb.id, mood="indicative", tense="pres", person="1s", value="tengo", type="irregular"))
    db.commit()
    return verb


def _first_form_id(db, lemma="hablar", tense="pres", person="1s"):
    return (
        db.query(VerbForm.id)
        .join(Verb)
        .filter(Verb.lemma == lemma, VerbForm.tense == tense, VerbForm.person == person)
        .scalar()
    )


class TestRoot:
    def test_root(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["app"] == "conjuga"


class TestDrillApi:
    def test_next_with_settings(self, client, db_session):
        _seed_regular(db_session, "hablar")
        resp = client.post("/api/drill/next", json={"settings": {"level": "A1", "region": "rioplatense"}, "seed": 1})
        assert resp.status_code == 200
        data = resp.json()
        assert data["form"]["lemma"] == "hablar"
        assert data["form"]["person"] not in ("2s_tu", "2p_vosotros")
        assert data["fallback"] is False

    def test_next_uses_stored_settings(self, client, db_session):
        _seed_regular(db_session, "hablar")
        db_session.add(LearnerSettings(user_id="local", level="A1", region="peninsular"))
        db_session.commit()
        resp = client.post("/api/drill/next", json={"seed": 3})
        assert resp.status_code == 200
        assert resp.json()["form"]["tense"] in ("pres", "part")

    def test_next_rejects_unknown_settings(self, client):
        resp = client.post("/api/drill/next", json={"settings": {"level": "Z9"}})
        assert resp.status_code == 422

    def test_next_on_empty_catalog(self, client):
        before = fallback_stats.emergency_minimal_used
        resp = client.post("/api/drill/next", json={"settings": {"level": "A1"}})
        assert resp.status_code == 200
        assert resp.json()["form"]["lemma"] == "ERROR"
        assert resp.json()["fallback"] is True
        assert fallback_stats.emergency_minimal_used == before + 1

    def test_answer(self, client, db_session):
        _seed_regular(db_session, "hablar")
        form_id = _first_form_id(db_session)
        resp = client.post("/api/drill/answer", json={"form_id": form_id, "correct": True, "latency_ms": 2000})
        assert resp.status_code == 200
        data = resp.json()
        assert data["cell_key"] == "indicative|pres|1s|hablar"
        assert data["mastery"]["score"] == 100.0
        assert data["next_due"]

    def test_answer_unknown_form(self, client):
        resp = client.post("/api/drill/answer", json={"form_id": 9999, "correct": True})
        assert resp.status_code == 404

    def test_fallback_stats(self, client):
        resp = client.get("/api/drill/fallback-stats")
        assert resp.status_code == 200
        assert set(resp.json()) == {"fallbacks_used", "database_searches", "emergency_minimal_used"}


class TestProgressApi:
    def test_item_progress(self, client, db_session):
        _seed_regular(db_session, "hablar")
        form_id = _first_form_id(db_session)
        client.post("/api/drill/answer", json={"form_id": form_id, "correct": False})
        resp = client.get(f"/api/progress/items/{form_id}")
        assert resp.status_code == 200
        assert resp.json()["score"] == 0.0
        assert resp.json()["classification"] == "insufficient"

    def test_item_progress_unknown(self, client):
        assert client.get("/api/progress/items/9999").status_code == 404

    def test_cell_progress(self, client, db_session):
        _seed_regular(db_session, "hablar")
        form_id = _first_form_id(db_session)
        client.post("/api/drill/answer", json={"form_id": form_id, "correct": True})
        resp = client.get("/api/progress/cell", params={"mood": "indicative", "tense": "pres", "person": "1s"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["score"] == 100.0
        assert data["confidence"]["level"] == "low"

    def test_summary(self, client, db_session):
        _seed_regular(db_session, "hablar")
        client.post("/api/drill/answer", json={"form_id": _first_form_id(db_session), "correct": True})
        resp = client.get("/api/progress/summary")
        assert resp.status_code == 200
        assert resp.json()[0]["tense"] == "pres"

    def test_confidence(self, client):
        resp = client.get("/api/progress/confidence", params={"weighted_n": 8})
        assert resp.json()["level"] == "medium"
        assert client.get("/api/progress/confidence", params={"weighted_n": -1}).status_code == 422


class TestVerbsApi:
    def test_list(self, client, db_session):
        _seed_regular(db_session, "hablar", gloss="to speak")
        _seed_irregular(db_session)
        resp = client.get("/api/verbs")
        assert resp.status_code == 200
        data = {v["lemma"]: v for v in resp.json()}
        assert data["tener"]["families"] == ["G_VERBS"]
        assert data["hablar"]["form_count"] > 50

    def test_filter_by_type(self, client, db_session):
        _seed_regular(db_session, "hablar")
        _seed_irregular(db_session)
        resp = client.get("/api/verbs", params={"type": "irregular"})
        assert [v["lemma"] for v in resp.json()] == ["tener"]

    def test_detail(self, client, db_session):
        _seed_irregular(db_session)
        resp = client.get("/api/verbs/tener")
        assert resp.status_code == 200
        data = resp.json()
        assert data["irregularity"] == {"pres": True}
        assert data["forms"][0]["value"] == "tengo"

    def test_missing_verb(self, client):
        assert client.get("/api/verbs/nope").status_code == 404


class TestSettingsApi:
    def test_defaults_created(self, client):
        resp = client.get("/api/settings")
        assert resp.status_code == 200
        assert resp.json()["level"] == "A1"
        assert resp.json()["conmutacion_idx"] == 0

    def test_update(self, client):
        resp = client.put("/api/settings", json={"level": "B2", "region": "rioplatense"})
        assert resp.status_code == 200
        assert resp.json()["level"] == "B2"
        assert client.get("/api/settings").json()["region"] == "rioplatense"

    def test_invalid_level(self, client):
        assert client.put("/api/settings", json={"level": "Z9"}).status_code == 422

    def test_unknown_family(self, client):
        assert client.put("/api/settings", json={"selected_family": "NOPE"}).status_code == 400

    def test_known_family(self, client):
        resp = client.put("/api/settings", json={"selected_family": "STEM_CHANGES"})
        assert resp.json()["selected_family"] == "STEM_CHANGES"

    def test_null_required_field_rejected(self, client, db_session):
        _seed_regular(db_session, "hablar")
        client.put("/api/settings", json={"level": "A2"})
        resp = client.put("/api/settings", json={"level": None})
        assert resp.status_code == 400
        assert client.get("/api/settings").json()["level"] == "A2"
        assert client.post("/api/drill/next", json={"seed": 1}).status_code == 200

    def test_null_family_clears_selection(self, client):
        client.put("/api/settings", json={"selected_family": "STEM_CHANGES"})
        resp = client.put("/api/settings", json={"selected_family": None})
        assert resp.status_code == 200
        assert resp.json()["selected_family"] is None
