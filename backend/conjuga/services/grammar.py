"""Grammatical vocabulary shared by the drill engine.

Forms and verbs are plain frozen dataclasses built by the verb catalog from
database rows; every service below the routers works on these instead of ORM
objects so filtering and selection stay pure.
"""

from dataclasses import dataclass, field
from typing import Optional

PERSONS = ("1s", "2s_tu", "2s_vos", "3s", "1p", "2p_vosotros", "3p")

MOODS = ("indicative", "subjunctive", "imperative", "conditional", "nonfinite")

TENSES_BY_MOOD = {
    "indicative": ("pres", "pretIndef", "impf", "fut", "pretPerf", "plusc", "futPerf"),
    "subjunctive": ("subjPres", "subjImpf", "subjFut", "subjPerf", "subjPlusc", "subjFutPerf"),
    "imperative": ("impAff", "impNeg"),
    "conditional": ("cond", "condPerf"),
    "nonfinite": ("inf", "infPerf", "ger", "part"),
}

COMPOUND_TENSES = {"pretPerf", "plusc", "futPerf", "condPerf", "subjPerf", "subjPlusc", "subjFutPerf"}

# Reference forms, never drilled as answers
EXCLUDED_NONFINITE = {"inf", "infPerf"}

RARE_SUBJUNCTIVE_TENSES = {"subjFut", "subjFutPerf"}

# Virtual tenses accepted by specific practice
MIXED_TENSES = {
    "impMixed": ("imperative", {"impAff", "impNeg"}),
    "nonfiniteMixed": ("nonfinite", {"ger", "part"}),
}


@dataclass(frozen=True)
class Form:
    lemma: str
    mood: str
    tense: str
    person: Optional[str]
    value: str
    region_tag: Optional[str] = None
    verb_type: str = "regular"
    id: Optional[int] = None

    @property
    def cell_key(self) -> str:
        return make_cell_key(self.mood, self.tense, self.person, self.lemma)

    @property
    def is_nonfinite(self) -> bool:
        return self.mood == "nonfinite"


@dataclass(frozen=True)
class VerbInfo:
    lemma: str
    type: str = "regular"
    irregularity: dict = field(default_factory=dict, hash=False, compare=False)
    frequency: Optional[str] = None
    families: tuple = ()
    id: Optional[int] = None


def make_cell_key(mood: str, tense: str, person: Optional[str], lemma: str) -> str:
    return f"{mood}|{tense}|{person or '-'}|{lemma}"


def is_irregular_in_tense(verb: Optional[VerbInfo], tense: str) -> bool:
    """Per-tense irregularity, falling back to the verb's global type."""
    if verb is None:
        return False
    flag = verb.irregularity.get(tense) if verb.irregularity else None
    if isinstance(flag, bool):
        return flag
    return verb.type == "irregular"


def matches_specific(form: Form, mood: Optional[str], tense: Optional[str]) -> bool:
    """True if the form satisfies a specific-practice mood/tense request."""
    if tense in MIXED_TENSES:
        mixed_mood, tenses = MIXED_TENSES[tense]
        return form.mood == mixed_mood and form.tense in tenses
    if mood and form.mood != mood:
        return False
    if tense and form.tense != tense:
        return False
    return True


def lemma_ending(lemma: str) -> Optional[str]:
    """Return 'ar', 'er' or 'ir' for an infinitive (reflexive -se stripped)."""
    base = lemma[:-2] if lemma.endswith("se") else lemma
    base = base.replace("í", "i")
    for ending in ("ar", "er", "ir"):
        if base.endswith(ending):
            return ending
    return None
