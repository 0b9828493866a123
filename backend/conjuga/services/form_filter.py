"""Eligibility filter: which forms may be drilled for this learner right now.

An ordered pipeline of named predicates. A form survives only if it passes
every stage; the order only affects the per-stage counts in FilterReport.

Stages:
1. validity         - form has a surface value
2. dialect          - persons and region tags for the learner's region
3. curriculum       - level combos and specific restriction (skipped in theme mode)
4. rare_tense       - future subjunctive only behind the production toggle
5. verb_type        - regular (flag + morphology) / irregular (form or verb flag)
6. level_verbs      - per-level verb allow/deny lists
7. family           - selected irregularity family
8. allowed_lemmas   - explicit lemma set from a content pack
9. specific         - exact mood/tense in specific practice
10. nonfinite       - infinitives are reference forms, never answers
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from conjuga.services.conjugation_rules import verify_regular_form
from conjuga.services.curriculum import dialect_predicate, gate_predicate
from conjuga.services.grammar import (
    EXCLUDED_NONFINITE,
    RARE_SUBJUNCTIVE_TENSES,
    Form,
    VerbInfo,
    is_irregular_in_tense,
    matches_specific,
)
from conjuga.services.verb_families import (
    PRETERITE_THIRD_PERSON_EXCLUDE,
    PRETERITE_THIRD_PERSON_INCLUDE,
    categorize_verb,
    expand_family,
)
from conjuga.services.verb_levels import is_unipersonal_violation, should_filter_verb_by_level

logger = logging.getLogger(__name__)

PRETERITE_THIRD_PERSON = "PRETERITE_THIRD_PERSON"


@dataclass
class FilterStage:
    name: str
    predicate: Callable[[Form], bool]


@dataclass
class FilterReport:
    initial: int = 0
    removed: dict[str, int] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)

    @property
    def remaining(self) -> int:
        return self.initial - sum(self.removed.values())


def curriculum_bypassed(settings) -> bool:
    """Thematic picks skip curriculum, level and lemma gating, never dialect."""
    if settings.practice_mode == "theme":
        return True
    return settings.practice_mode == "specific" and settings.came_from_tema


def _families_for(form: Form, verbs: dict[str, VerbInfo]) -> Optional[list[str]]:
    """Families for the form's verb, or None when categorization fails."""
    try:
        return categorize_verb(form.lemma, verbs.get(form.lemma))
    except Exception as e:
        logger.debug(f"Family categorization failed for {form.lemma}: {e}")
        return None


def _is_preterite_third_person_drill(settings) -> bool:
    return settings.selected_family == PRETERITE_THIRD_PERSON


def _verb_type_predicate(settings, verbs):
    if settings.verb_type == "regular":
        def _regular(form: Form) -> bool:
            return form.verb_type == "regular" and verify_regular_form(form)
        return _regular

    if settings.verb_type == "irregular":
        def _irregular(form: Form) -> bool:
            if form.verb_type == "irregular":
                return True
            if form.verb_type in (None, ""):
                verb = verbs.get(form.lemma)
                return verb is not None and verb.type == "irregular"
            return False
        return _irregular

    return None


def _level_predicate(settings, verbs):
    level = settings.level
    pure_regular = settings.verb_type == "regular"
    pret_drill = _is_preterite_third_person_drill(settings)

    def _appropriate(form: Form) -> bool:
        if pure_regular:
            verb = verbs.get(form.lemma)
            if form.verb_type == "regular" or (verb is not None and verb.type == "regular"):
                return True
        if is_unipersonal_violation(form.lemma, form.person, level):
            return False
        if pret_drill and form.tense == "pretIndef":
            return True
        families = _families_for(form, verbs)
        if families is None:
            return True
        return not should_filter_verb_by_level(form.lemma, families, level, form.tense)

    return _appropriate


def _family_predicate(settings, verbs):
    if not settings.selected_family or settings.verb_type == "regular":
        return None
    if settings.practice_mode != "theme" and settings.came_from_tema:
        return None

    selected = settings.selected_family
    expanded = expand_family(selected)
    pret_drill = _is_preterite_third_person_drill(settings)

    def _in_family(form: Form) -> bool:
        families = _families_for(form, verbs)
        if families is None:
            return True
        found = set(families)
        if pret_drill and form.tense == "pretIndef":
            return bool(found & PRETERITE_THIRD_PERSON_INCLUDE) and not (found & PRETERITE_THIRD_PERSON_EXCLUDE)
        return bool(found & expanded)

    return _in_family


def _specific_predicate(settings, verbs):
    if settings.practice_mode != "specific":
        return None
    mood, tense = settings.specific_mood, settings.specific_tense
    irregular_only = settings.verb_type == "irregular" and tense == "nonfiniteMixed"

    def _matches(form: Form) -> bool:
        if not matches_specific(form, mood, tense):
            return False
        if irregular_only:
            verb = verbs.get(form.lemma)
            return verb is not None and (verb.type == "irregular" or is_irregular_in_tense(verb, form.tense))
        return True

    return _matches


def build_filter_stages(settings, verbs: dict[str, VerbInfo]) -> list[FilterStage]:
    bypass = curriculum_bypassed(settings)
    stages = [
        FilterStage("validity", lambda f: bool(f.value and f.value.strip())),
        FilterStage("dialect", dialect_predicate(settings)),
    ]

    if not bypass:
        stages.append(FilterStage("curriculum", gate_predicate(settings)))

    if not settings.enable_futuro_subj_prod:
        stages.append(FilterStage("rare_tense", lambda f: f.tense not in RARE_SUBJUNCTIVE_TENSES))

    verb_type = _verb_type_predicate(settings, verbs)
    if verb_type:
        stages.append(FilterStage("verb_type", verb_type))

    if not bypass:
        stages.append(FilterStage("level_verbs", _level_predicate(settings, verbs)))

    family = _family_predicate(settings, verbs)
    if family:
        stages.append(FilterStage("family", family))

    if settings.allowed_lemmas and not bypass:
        allowed = set(settings.allowed_lemmas)
        stages.append(FilterStage("allowed_lemmas", lambda f: f.lemma in allowed))

    specific = _specific_predicate(settings, verbs)
    if specific:
        stages.append(FilterStage("specific", specific))

    stages.append(FilterStage("nonfinite", lambda f: not (f.is_nonfinite and f.tense in EXCLUDED_NONFINITE)))
    return stages


def run_filter_pipeline(forms: list[Form], settings, verbs: dict[str, VerbInfo] | None = None) -> tuple[list[Form], FilterReport]:
    verbs = verbs or {}
    report = FilterReport(initial=len(forms))
    pool = list(forms)
    for stage in build_filter_stages(settings, verbs):
        before = len(pool)
        pool = [form for form in pool if stage.predicate(form)]
        report.removed[stage.name] = before - len(pool)
    if curriculum_bypassed(settings):
        report.skipped.extend(["curriculum", "level_verbs"])

    logger.debug(
        f"Filter kept {len(pool)}/{report.initial} forms "
        f"({', '.join(f'{k}:-{v}' for k, v in report.removed.items() if v)})"
    )
    return pool, report


def filter_eligible_forms(forms: list[Form], settings, verbs: dict[str, VerbInfo] | None = None) -> list[Form]:
    pool, _ = run_filter_pipeline(forms, settings, verbs)
    return pool


def exclude_current_item(forms: list[Form], current: Optional[Form], settings) -> list[Form]:
    """Drop the previous item (same lemma in specific mode) unless that empties the pool."""
    if current is None or not forms:
        return forms
    if settings.practice_mode == "specific":
        remaining = [f for f in forms if f.lemma != current.lemma]
    else:
        remaining = [
            f for f in forms
            if not (f.lemma == current.lemma and f.mood == current.mood
                    and f.tense == current.tense and f.person == current.person)
        ]
    return remaining or forms


def create_fallback_pool(forms: list[Form], settings) -> list[Form]:
    """Relaxed single pass: legal dialect, requested mood/tense, no infinitives."""
    dialect_ok = dialect_predicate(settings)
    pool = []
    for form in forms:
        if not (form.value and form.value.strip()):
            continue
        if form.is_nonfinite and form.tense in EXCLUDED_NONFINITE:
            continue
        if not dialect_ok(form):
            continue
        if settings.practice_mode == "specific" and not matches_specific(form, settings.specific_mood, settings.specific_tense):
            continue
        pool.append(form)
    return pool
