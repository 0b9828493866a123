"""Weighted stochastic choice of the next drill item from the eligible pool.

Weighting is repetition: each stage returns a candidate list in which a
form may appear several times, and the final draw is uniform over that
list. Stages, in order:

1. exclude the previous item (unless that empties the pool)
2. regular/irregular balance when verb_type is "all" (default 30/70)
3. A1 override: present indicative dominates participles 99:1
4. curriculum weighting by level (new tenses repeated more)
5. SRS boost for cells the scheduler reports as due
6. pure-regular narrowing for regular drills
7. person rotation ("conmutación") at C2
8. draw, with -ar/-er/-ir buckets for specific regular practice
9. enclitics on affirmative imperatives
10. strict validation of specific requests, then fallback

All randomness comes from the injected ``random.Random``.
"""

import logging
import math
import random
from typing import Optional

from conjuga.config import settings as app_settings
from conjuga.services.conjugation_rules import verify_regular_form
from conjuga.services.curriculum import allowed_persons, introduction_level, level_rank
from conjuga.services.emergency_fallback import EmergencyFallback
from conjuga.services.form_filter import exclude_current_item
from conjuga.services.grammar import COMPOUND_TENSES, PERSONS, Form, VerbInfo, is_irregular_in_tense, lemma_ending, matches_specific
from conjuga.services.imperative_clitics import maybe_attach_clitics

logger = logging.getLogger(__name__)

A1_PRESENT_COPIES = 99
A1_PARTICIPLE_COPIES = 1

SRS_DUE_EXTRA_COPIES = 2
CONMUTACION_WEIGHT = 3

# Tenses singled out for extra practice at intermediate levels
SALIENT_TENSES = {"subjPres", "impNeg"}
INTERMEDIATE_LEVELS = {"B1", "B2"}

# Cumulative thresholds for the specific-regular ending draw
IR_BUCKET_THRESHOLD = 0.3
ER_BUCKET_THRESHOLD = 0.6


def _is_irregular(form: Form, verbs: dict[str, VerbInfo]) -> bool:
    verb = verbs.get(form.lemma)
    if verb is None:
        return form.verb_type == "irregular"
    return is_irregular_in_tense(verb, form.tense)


def balance_regular_irregular(forms: list[Form], verbs: dict[str, VerbInfo], rng: random.Random, regular_ratio: float) -> list[Form]:
    """Resample toward the target regular share, back-filling any shortfall."""
    regular = [f for f in forms if not _is_irregular(f, verbs)]
    irregular = [f for f in forms if _is_irregular(f, verbs)]
    total = len(forms)
    regular_quota = math.floor(total * regular_ratio)
    irregular_quota = total - regular_quota

    selected = rng.sample(regular, min(regular_quota, len(regular)))
    selected += rng.sample(irregular, min(irregular_quota, len(irregular)))

    if len(selected) < total:
        chosen = {id(f) for f in selected}
        remaining = [f for f in forms if id(f) not in chosen]
        selected += rng.sample(remaining, min(total - len(selected), len(remaining)))
    return selected


def apply_a1_override(forms: list[Form]) -> list[Form]:
    present = [f for f in forms if f.mood == "indicative" and f.tense == "pres"]
    participles = [f for f in forms if f.mood == "nonfinite" and f.tense == "part"]
    if present and participles:
        return present * A1_PRESENT_COPIES + participles * A1_PARTICIPLE_COPIES
    if present:
        return present
    return forms


def tense_weight(level: str, mood: str, tense: str) -> int:
    """Copies of a (mood, tense) in the candidate list at this level."""
    intro = introduction_level(mood, tense)
    rank = level_rank(level)
    if intro is None or rank < 0:
        return 1
    distance = rank - level_rank(intro)
    if distance <= 0:
        weight = 3
    elif distance == 1:
        weight = 2
    else:
        weight = 1
    if level in INTERMEDIATE_LEVELS:
        if tense in COMPOUND_TENSES:
            weight = max(1, weight - 1)
        if tense in SALIENT_TENSES:
            weight += 1
    return weight


def apply_curriculum_weighting(forms: list[Form], level: str) -> list[Form]:
    if level in ("A1", "ALL"):
        return forms
    weighted = []
    for form in forms:
        weighted.extend([form] * tense_weight(level, form.mood, form.tense))
    return weighted


def apply_srs_boost(forms: list[Form], due_cells: set[str]) -> list[Form]:
    if not due_cells:
        return forms
    boosted = list(forms)
    for form in forms:
        if form.cell_key in due_cells:
            boosted.extend([form] * SRS_DUE_EXTRA_COPIES)
    return boosted


def narrow_to_pure_regular(forms: list[Form]) -> list[Form]:
    narrowed = [f for f in forms if verify_regular_form(f)]
    return narrowed or forms


def conmutacion_sequence(settings) -> list[str]:
    persons = allowed_persons(settings.region)
    seq = [p for p in settings.conmutacion_seq if p in persons]
    if not seq:
        seq = [p for p in PERSONS if p in persons]
    return seq


def apply_conmutacion(forms: list[Form], settings, rng: random.Random) -> list[Form]:
    """Boost one lemma in the next target person and advance the rotation pointer."""
    seq = conmutacion_sequence(settings)
    if not seq or not forms:
        return forms

    start = settings.conmutacion_idx % len(seq)
    for offset in range(len(seq)):
        idx = (start + offset) % len(seq)
        target = seq[idx]
        candidates = [f for f in forms if f.person == target]
        if not candidates:
            continue
        base = rng.choice(candidates)
        matching = [f for f in forms if f.lemma == base.lemma and f.person == target]
        settings.conmutacion_idx = (idx + 1) % len(seq)
        logger.debug(f"Conmutación: target {target} on {base.lemma}, next index {settings.conmutacion_idx}")
        return forms + matching * (CONMUTACION_WEIGHT - 1)

    return forms


def prefer_canonical_participles(forms: list[Form], listed: Optional[list[Form]] = None) -> list[Form]:
    """Keep only the first-listed participle variant per lemma.

    ``listed`` gives the listing order when ``forms`` has been shuffled.
    """
    canonical: dict[str, str] = {}
    for form in listed if listed is not None else forms:
        if form.mood == "nonfinite" and form.tense == "part":
            canonical.setdefault(form.lemma, form.value)
    if not canonical:
        return forms
    return [
        f for f in forms
        if not (f.mood == "nonfinite" and f.tense == "part") or f.value == canonical[f.lemma]
    ]


def draw_by_ending(forms: list[Form], rng: random.Random) -> Form:
    buckets: dict[str, list[Form]] = {"ar": [], "er": [], "ir": []}
    for form in forms:
        ending = lemma_ending(form.lemma)
        if ending:
            buckets[ending].append(form)

    r = rng.random()
    if r < IR_BUCKET_THRESHOLD and buckets["ir"]:
        bucket = buckets["ir"]
    elif r < ER_BUCKET_THRESHOLD and buckets["er"]:
        bucket = buckets["er"]
    elif buckets["ar"]:
        bucket = buckets["ar"]
    else:
        bucket = buckets["er"] or buckets["ir"] or forms
    return rng.choice(bucket)


def draw_form(forms: list[Form], settings, rng: random.Random) -> Form:
    if settings.practice_mode == "specific" and settings.verb_type == "regular":
        return draw_by_ending(forms, rng)
    return rng.choice(forms)


def validate_specific(chosen: Form, eligible: list[Form], settings, rng: random.Random, fallback: EmergencyFallback, all_forms: Optional[list[Form]]) -> Form:
    """Never hand back a form outside a specific mood/tense request."""
    if settings.practice_mode != "specific" or not settings.strict_specific:
        return chosen
    mood, tense = settings.specific_mood, settings.specific_tense
    if not mood and not tense:
        return chosen
    if matches_specific(chosen, mood, tense):
        return chosen

    exact = prefer_canonical_participles([f for f in eligible if matches_specific(f, mood, tense)])
    if exact:
        logger.warning(f"Selected {chosen.mood}/{chosen.tense} for a {mood}/{tense} request; retrying on the eligible pool")
        return rng.choice(exact)

    logger.warning(f"No {mood}/{tense} form in the eligible pool; using emergency fallback")
    return fallback.resolve(all_forms if all_forms is not None else eligible, settings)


def select_form(
    eligible: list[Form],
    settings,
    verbs: dict[str, VerbInfo] | None = None,
    rng: Optional[random.Random] = None,
    previous: Optional[Form] = None,
    fallback: Optional[EmergencyFallback] = None,
    all_forms: Optional[list[Form]] = None,
) -> Optional[Form]:
    """Pick one form from the eligible pool, or None if the pool is empty.

    May advance ``settings.conmutacion_idx`` at C2.
    """
    if not eligible:
        return None
    verbs = verbs or {}
    rng = rng or random.Random()
    fallback = fallback or EmergencyFallback(rng=rng)

    pool = exclude_current_item(eligible, previous, settings)

    if settings.verb_type == "all":
        ratio = settings.regular_ratio if settings.regular_ratio is not None else app_settings.regular_ratio
        pool = balance_regular_irregular(pool, verbs, rng, ratio)

    if settings.level == "A1":
        pool = apply_a1_override(pool)

    pool = apply_curriculum_weighting(pool, settings.level)
    pool = apply_srs_boost(pool, settings.due_cells)

    if settings.verb_type == "regular":
        pool = narrow_to_pure_regular(pool)

    if settings.level == "C2" and settings.enable_c2_conmutacion:
        pool = apply_conmutacion(pool, settings, rng)

    pool = prefer_canonical_participles(pool, eligible)
    chosen = draw_form(pool, settings, rng)
    chosen = maybe_attach_clitics(chosen, settings.clitics_percent, rng)
    return validate_specific(chosen, eligible, settings, rng, fallback, all_forms)
