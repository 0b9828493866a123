"""CEFR curriculum and dialect legality.

Pure lookups: which (mood, tense) combinations a level may drill and which
grammatical persons a dialect region uses. ``gate_forms`` applies both to a
form list, plus the specific-practice restriction and region tags.
"""

import logging
from typing import Iterable, Optional

from conjuga.services.grammar import PERSONS, Form, matches_specific

logger = logging.getLogger(__name__)

LEVEL_ORDER = ("A1", "A2", "B1", "B2", "C1", "C2")

# (mood, tense) -> level where the combination is introduced
CURRICULUM = {
    ("indicative", "pres"): "A1",
    ("nonfinite", "part"): "A1",
    ("nonfinite", "ger"): "A1",
    ("indicative", "pretIndef"): "A2",
    ("indicative", "impf"): "A2",
    ("indicative", "fut"): "A2",
    ("imperative", "impAff"): "A2",
    ("indicative", "plusc"): "B1",
    ("indicative", "pretPerf"): "B1",
    ("indicative", "futPerf"): "B1",
    ("subjunctive", "subjPres"): "B1",
    ("subjunctive", "subjPerf"): "B1",
    ("imperative", "impNeg"): "B1",
    ("conditional", "cond"): "B1",
    ("subjunctive", "subjImpf"): "B2",
    ("subjunctive", "subjPlusc"): "B2",
    ("conditional", "condPerf"): "B2",
    ("subjunctive", "subjFut"): "C1",
    ("subjunctive", "subjFutPerf"): "C2",
}

REGION_PERSONS = {
    "rioplatense": frozenset({"1s", "2s_vos", "3s", "1p", "3p"}),
    "la_general": frozenset({"1s", "2s_tu", "3s", "1p", "3p"}),
    "peninsular": frozenset({"1s", "2s_tu", "3s", "1p", "2p_vosotros", "3p"}),
    "other": frozenset(PERSONS),
}

UNIVERSAL_REGION_TAGS = {None, "", "universal", "all"}


def level_rank(level: str) -> int:
    """Position of a level in the CEFR ordering, -1 if unknown."""
    try:
        return LEVEL_ORDER.index(level)
    except ValueError:
        return -1


def allowed_combos(level: str) -> set[tuple[str, str]]:
    if level == "ALL":
        return set(CURRICULUM)
    rank = level_rank(level)
    if rank < 0:
        return set()
    return {combo for combo, intro in CURRICULUM.items() if level_rank(intro) <= rank}


def allowed_persons(region: Optional[str]) -> frozenset:
    return REGION_PERSONS.get(region or "", REGION_PERSONS["other"])


def introduction_level(mood: str, tense: str) -> Optional[str]:
    return CURRICULUM.get((mood, tense))


def region_tag_compatible(form: Form, region: Optional[str]) -> bool:
    """Untagged forms are universal; tagged ones only show in their own region."""
    if form.region_tag in UNIVERSAL_REGION_TAGS:
        return True
    if region in (None, "", "other"):
        return True
    return form.region_tag == region


def person_allowed(form: Form, persons: Iterable[str]) -> bool:
    if form.is_nonfinite or not form.person:
        return True
    return form.person in persons


def dialect_predicate(settings):
    """Person and region-tag legality. Applies in every practice mode."""
    persons = allowed_persons(settings.region)

    def _dialect_ok(form: Form) -> bool:
        return person_allowed(form, persons) and region_tag_compatible(form, settings.region)

    return _dialect_ok


def gate_predicate(settings):
    """Level combos and the specific-practice restriction."""
    combos = allowed_combos(settings.level)
    restrict_specific = settings.practice_mode == "specific" and not settings.came_from_tema

    def _legal(form: Form) -> bool:
        if (form.mood, form.tense) not in combos:
            return False
        if restrict_specific and not matches_specific(form, settings.specific_mood, settings.specific_tense):
            return False
        return True

    return _legal


def gate_forms(forms: list[Form], settings) -> list[Form]:
    """Curriculum and dialect gate for one learner request."""
    legal = gate_predicate(settings)
    dialect_ok = dialect_predicate(settings)
    gated = [form for form in forms if dialect_ok(form) and legal(form)]
    logger.debug(f"Curriculum gate kept {len(gated)}/{len(forms)} forms for {settings.level}/{settings.region}")
    return gated
