#!/usr/bin/env python3
"""Seed the verb catalog.

Regular verbs get their full paradigm generated from the conjugation rules.
A handful of core irregular verbs get hand-written present and preterite
forms plus their non-finite forms; other tenses of those verbs are not
seeded.

Usage:
    python scripts/seed_verbs.py --dry-run     # preview counts
    python scripts/seed_verbs.py               # add missing verbs
    python scripts/seed_verbs.py --reset       # wipe verbs and forms first
"""

import argparse
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dotenv import load_dotenv
from pathlib import Path

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from conjuga.database import Base, SessionLocal, engine
from conjuga.models import Verb, VerbForm
from conjuga.services.conjugation_rules import conjugate_regular_paradigm
from conjuga.services.grammar import PERSONS
from conjuga.services.verb_families import categorize_verb
from conjuga.services.verb_levels import get_verb_frequency

REGULAR_VERBS = {
    "hablar": "to speak",
    "trabajar": "to work",
    "estudiar": "to study",
    "caminar": "to walk",
    "mirar": "to look at",
    "escuchar": "to listen",
    "llamar": "to call",
    "preguntar": "to ask",
    "comprar": "to buy",
    "cocinar": "to cook",
    "bailar": "to dance",
    "cantar": "to sing",
    "nadar": "to swim",
    "comer": "to eat",
    "beber": "to drink",
    "aprender": "to learn",
    "vender": "to sell",
    "correr": "to run",
    "vivir": "to live",
    "escribir": "to write",
    "recibir": "to receive",
    "decidir": "to decide",
    "abrir": "to open",
}

# Person order follows PERSONS: 1s, 2s_tu, 2s_vos, 3s, 1p, 2p_vosotros, 3p
IRREGULAR_VERBS = {
    "ser": {
        "gloss": "to be",
        "pres": ("soy", "eres", "sos", "es", "somos", "sois", "son"),
        "pretIndef": ("fui", "fuiste", "fuiste", "fue", "fuimos", "fuisteis", "fueron"),
        "nonfinite": {"inf": "ser", "ger": "siendo", "part": "sido"},
    },
    "ir": {
        "gloss": "to go",
        "pres": ("voy", "vas", "vas", "va", "vamos", "vais", "van"),
        "pretIndef": ("fui", "fuiste", "fuiste", "fue", "fuimos", "fuisteis", "fueron"),
        "nonfinite": {"inf": "ir", "ger": "yendo", "part": "ido"},
    },
    "tener": {
        "gloss": "to have",
        "pres": ("tengo", "tienes", "tenés", "tiene", "tenemos", "tenéis", "tienen"),
        "pretIndef": ("tuve", "tuviste", "tuviste", "tuvo", "tuvimos", "tuvisteis", "tuvieron"),
        "nonfinite": {"inf": "tener", "ger": "teniendo", "part": "tenido"},
    },
    "hacer": {
        "gloss": "to do, to make",
        "pres": ("hago", "haces", "hacés", "hace", "hacemos", "hacéis", "hacen"),
        "pretIndef": ("hice", "hiciste", "hiciste", "hizo", "hicimos", "hicisteis", "hicieron"),
        "nonfinite": {"inf": "hacer", "ger": "haciendo", "part": "hecho"},
    },
    "decir": {
        "gloss": "to say",
        "pres": ("digo", "dices", "decís", "dice", "decimos", "decís", "dicen"),
        "pretIndef": ("dije", "dijiste", "dijiste", "dijo", "dijimos", "dijisteis", "dijeron"),
        "nonfinite": {"inf": "decir", "ger": "diciendo", "part": "dicho"},
    },
    "pedir": {
        "gloss": "to ask for",
        "pres": ("pido", "pides", "pedís", "pide", "pedimos", "pedís", "piden"),
        "pretIndef": ("pedí", "pediste", "pediste", "pidió", "pedimos", "pedisteis", "pidieron"),
        "nonfinite": {"inf": "pedir", "ger": "pidiendo", "part": "pedido"},
    },
    "dormir": {
        "gloss": "to sleep",
        "pres": ("duermo", "duermes", "dormís", "duerme", "dormimos", "dormís", "duermen"),
        "pretIndef": ("dormí", "dormiste", "dormiste", "durmió", "dormimos", "dormisteis", "durmieron"),
        "nonfinite": {"inf": "dormir", "ger": "durmiendo", "part": "dormido"},
    },
    "leer": {
        "gloss": "to read",
        "pres": ("leo", "lees", "leés", "lee", "leemos", "leéis", "leen"),
        "pretIndef": ("leí", "leíste", "leíste", "leyó", "leímos", "leísteis", "leyeron"),
        "nonfinite": {"inf": "leer", "ger": "leyendo", "part": "leído"},
    },
}

# Tenses whose forms above differ from the regular pattern
IRREGULAR_TENSES = {
    "ser": {"pres": True, "pretIndef": True},
    "ir": {"pres": True, "pretIndef": True},
    "tener": {"pres": True, "pretIndef": True},
    "hacer": {"pres": True, "pretIndef": True, "part": True},
    "decir": {"pres": True, "pretIndef": True, "part": True},
    "pedir": {"pres": True, "pretIndef": True},
    "dormir": {"pres": True, "pretIndef": True},
    "leer": {"pres": False, "pretIndef": True},
}


def _frequency_label(lemma: str) -> str:
    band = get_verb_frequency(lemma)
    if band in ("very_high", "high"):
        return "high"
    if band == "medium":
        return "medium"
    return "low"


def _region_tag(person) -> str | None:
    if person == "2s_vos":
        return "rioplatense"
    if person == "2p_vosotros":
        return "peninsular"
    return None


def irregular_rows(lemma: str, table: dict) -> list[dict]:
    rows = []
    flags = IRREGULAR_TENSES.get(lemma, {})
    for tense in ("pres", "pretIndef"):
        for person, value in zip(PERSONS, table[tense]):
            rows.append({
                "mood": "indicative",
                "tense": tense,
                "person": person,
                "value": value,
                "type": "irregular" if flags.get(tense) else "regular",
            })
    for tense, value in table["nonfinite"].items():
        rows.append({
            "mood": "nonfinite",
            "tense": tense,
            "person": None,
            "value": value,
            "type": "irregular" if flags.get(tense) else "regular",
        })
    return rows


def _add_verb(db, lemma: str, verb_type: str, gloss: str, irregularity: dict, rows: list[dict]) -> int:
    verb = Verb(
        lemma=lemma,
        type=verb_type,
        irregularity_json=irregularity or None,
        frequency=_frequency_label(lemma),
        families_json=categorize_verb(lemma) if verb_type == "irregular" else [],
        gloss_en=gloss,
    )
    db.add(verb)
    db.flush()
    for row in rows:
        db.add(VerbForm(
            verb_id=verb.id,
            mood=row["mood"],
            tense=row["tense"],
            person=row["person"],
            value=row["value"],
            region_tag=_region_tag(row["person"]),
            type=row.get("type", verb_type),
        ))
    return len(rows)


def main():
    parser = argparse.ArgumentParser(description="Seed the verb catalog")
    parser.add_argument("--dry-run", action="store_true", help="Preview only, don't modify the database")
    parser.add_argument("--reset", action="store_true", help="Delete all verbs and forms before seeding")
    args = parser.parse_args()

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        if args.reset and not args.dry_run:
            deleted_forms = db.query(VerbForm).delete()
            deleted_verbs = db.query(Verb).delete()
            db.commit()
            print(f"Reset: removed {deleted_verbs} verbs and {deleted_forms} forms")

        existing = {lemma for (lemma,) in db.query(Verb.lemma).all()}
        added_verbs = 0
        added_forms = 0

        for lemma, gloss in REGULAR_VERBS.items():
            if lemma in existing and not args.reset:
                continue
            rows = conjugate_regular_paradigm(lemma)
            added_verbs += 1
            if args.dry_run:
                added_forms += len(rows)
                continue
            added_forms += _add_verb(db, lemma, "regular", gloss, {}, rows)

        for lemma, table in IRREGULAR_VERBS.items():
            if lemma in existing and not args.reset:
                continue
            rows = irregular_rows(lemma, table)
            added_verbs += 1
            if args.dry_run:
                added_forms += len(rows)
                continue
            added_forms += _add_verb(db, lemma, "irregular", table["gloss"], IRREGULAR_TENSES.get(lemma, {}), rows)

        if args.dry_run:
            print(f"[dry run] Would add {added_verbs} verbs with {added_forms} forms")
            return

        db.commit()
        print(f"Added {added_verbs} verbs with {added_forms} forms")
    finally:
        db.close()


if __name__ == "__main__":
    main()
