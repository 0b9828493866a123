"""Regular Spanish conjugation, used to verify that a form is morphologically regular.

The verb index marks each form regular or irregular, but those flags are
incomplete for some datasets. Regular-only drills therefore check the
surface string against the paradigm generated here.

Persons follow PERSONS order: 1s, 2s_tu, 2s_vos, 3s, 1p, 2p_vosotros, 3p.
"""

import unicodedata
from typing import Optional

from conjuga.services.grammar import COMPOUND_TENSES, PERSONS, TENSES_BY_MOOD, Form, lemma_ending

# Endings appended to the stem (lemma minus -ar/-er/-ir)
_STEM_ENDINGS = {
    ("indicative", "pres"): {
        "ar": ("o", "as", "ás", "a", "amos", "áis", "an"),
        "er": ("o", "es", "és", "e", "emos", "éis", "en"),
        "ir": ("o", "es", "ís", "e", "imos", "ís", "en"),
    },
    ("indicative", "pretIndef"): {
        "ar": ("é", "aste", "aste", "ó", "amos", "asteis", "aron"),
        "er": ("í", "iste", "iste", "ió", "imos", "isteis", "ieron"),
        "ir": ("í", "iste", "iste", "ió", "imos", "isteis", "ieron"),
    },
    ("indicative", "impf"): {
        "ar": ("aba", "abas", "abas", "aba", "ábamos", "abais", "aban"),
        "er": ("ía", "ías", "ías", "ía", "íamos", "íais", "ían"),
        "ir": ("ía", "ías", "ías", "ía", "íamos", "íais", "ían"),
    },
    ("subjunctive", "subjPres"): {
        "ar": ("e", "es", "és", "e", "emos", "éis", "en"),
        "er": ("a", "as", "ás", "a", "amos", "áis", "an"),
        "ir": ("a", "as", "ás", "a", "amos", "áis", "an"),
    },
    ("subjunctive", "subjImpf"): {
        "ar": ("ara", "aras", "aras", "ara", "áramos", "arais", "aran"),
        "er": ("iera", "ieras", "ieras", "iera", "iéramos", "ierais", "ieran"),
        "ir": ("iera", "ieras", "ieras", "iera", "iéramos", "ierais", "ieran"),
    },
    ("subjunctive", "subjFut"): {
        "ar": ("are", "ares", "ares", "are", "áremos", "areis", "aren"),
        "er": ("iere", "ieres", "ieres", "iere", "iéremos", "iereis", "ieren"),
        "ir": ("iere", "ieres", "ieres", "iere", "iéremos", "iereis", "ieren"),
    },
    ("imperative", "impAff"): {
        "ar": (None, "a", "á", "e", "emos", "ad", "en"),
        "er": (None, "e", "é", "a", "amos", "ed", "an"),
        "ir": (None, "e", "í", "a", "amos", "id", "an"),
    },
}

# Endings appended to the whole infinitive
_INFINITIVE_ENDINGS = {
    ("indicative", "fut"): ("é", "ás", "ás", "á", "emos", "éis", "án"),
    ("conditional", "cond"): ("ía", "ías", "ías", "ía", "íamos", "íais", "ían"),
}

_HABER = {
    "pretPerf": ("he", "has", "has", "ha", "hemos", "habéis", "han"),
    "plusc": ("había", "habías", "habías", "había", "habíamos", "habíais", "habían"),
    "futPerf": ("habré", "habrás", "habrás", "habrá", "habremos", "habréis", "habrán"),
    "condPerf": ("habría", "habrías", "habrías", "habría", "habríamos", "habríais", "habrían"),
    "subjPerf": ("haya", "hayas", "hayas", "haya", "hayamos", "hayáis", "hayan"),
    "subjPlusc": ("hubiera", "hubieras", "hubieras", "hubiera", "hubiéramos", "hubierais", "hubieran"),
    "subjFutPerf": ("hubiere", "hubieres", "hubieres", "hubiere", "hubiéremos", "hubiereis", "hubieren"),
}

_PARTICIPLE = {"ar": "ado", "er": "ido", "ir": "ido"}
_GERUND = {"ar": "ando", "er": "iendo", "ir": "iendo"}


def _infinitive(lemma: str) -> str:
    return lemma[:-2] if lemma.endswith("se") else lemma


def _stem(lemma: str) -> str:
    return _infinitive(lemma)[:-2]


def normalize_value(value: Optional[str]) -> str:
    return " ".join((value or "").lower().split())


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn" or ch == "\u0303")
    return unicodedata.normalize("NFC", stripped)


def regular_participle(lemma: str) -> Optional[str]:
    ending = lemma_ending(lemma)
    if not ending:
        return None
    return _stem(lemma) + _PARTICIPLE[ending]


def regular_gerund(lemma: str) -> Optional[str]:
    ending = lemma_ending(lemma)
    if not ending:
        return None
    return _stem(lemma) + _GERUND[ending]


def regular_form(lemma: str, mood: str, tense: str, person: Optional[str]) -> Optional[str]:
    """Expected regular surface form, or None when the cell does not exist."""
    ending = lemma_ending(lemma)
    if not ending:
        return None

    if mood == "nonfinite":
        if tense == "inf":
            return _infinitive(lemma)
        if tense == "infPerf":
            return f"haber {regular_participle(lemma)}"
        if tense == "ger":
            return regular_gerund(lemma)
        if tense == "part":
            return regular_participle(lemma)
        return None

    if person not in PERSONS or tense not in TENSES_BY_MOOD.get(mood, ()):
        return None
    idx = PERSONS.index(person)

    if tense in COMPOUND_TENSES:
        return f"{_HABER[tense][idx]} {regular_participle(lemma)}"

    if tense == "impNeg":
        if person == "1s":
            return None
        subj = _STEM_ENDINGS[("subjunctive", "subjPres")][ending]
        # Negative voseo uses the tuteo subjunctive
        neg_idx = PERSONS.index("2s_tu") if person == "2s_vos" else idx
        return f"no {_stem(lemma)}{subj[neg_idx]}"

    if (mood, tense) in _INFINITIVE_ENDINGS:
        return _infinitive(lemma) + _INFINITIVE_ENDINGS[(mood, tense)][idx]

    endings = _STEM_ENDINGS.get((mood, tense))
    if not endings:
        return None
    suffix = endings[ending][idx]
    if suffix is None:
        return None
    return _stem(lemma) + suffix


def is_regular_form_for_mood(lemma: str, mood: str, tense: str, person: Optional[str], value: str) -> bool:
    expected = regular_form(lemma, mood, tense, person)
    if expected is None:
        return False
    return normalize_value(value) == normalize_value(expected)


def is_regular_nonfinite_form(lemma: str, tense: str, value: str) -> bool:
    return is_regular_form_for_mood(lemma, "nonfinite", tense, None, value)


def verify_regular_form(form: Form) -> bool:
    """Independent morphology check used by regular-only drills."""
    if form.tense in COMPOUND_TENSES or form.tense == "infPerf":
        participle = regular_participle(form.lemma)
        tokens = normalize_value(form.value).split()
        return bool(participle and tokens) and tokens[-1] == participle
    if form.is_nonfinite:
        return is_regular_nonfinite_form(form.lemma, form.tense, form.value)
    return is_regular_form_for_mood(form.lemma, form.mood, form.tense, form.person, form.value)


def conjugate_regular_paradigm(lemma: str) -> list[dict]:
    """Every regular form of a verb as plain dicts (lemma, mood, tense, person, value)."""
    rows = []
    for mood, tenses in TENSES_BY_MOOD.items():
        for tense in tenses:
            persons = (None,) if mood == "nonfinite" else PERSONS
            for person in persons:
                value = regular_form(lemma, mood, tense, person)
                if value is None:
                    continue
                rows.append({
                    "lemma": lemma,
                    "mood": mood,
                    "tense": tense,
                    "person": person,
                    "value": value,
                })
    return rows
