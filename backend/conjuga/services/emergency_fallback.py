"""Last-resort item provider when the eligible pool is empty.

Tier 1 relaxes the learner's constraints one at a time over the original
form pool (level, verb type, tense, mood). Tier 2 rescans the database for
the requested mood/tense, then the same mood in the present. Tier 3
returns a visibly broken sentinel form so callers always get something.
resolve() never returns None and never raises on empty data.
"""

import logging
import random
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Optional

from conjuga.services.curriculum import allowed_combos, allowed_persons, person_allowed, region_tag_compatible
from conjuga.services.grammar import EXCLUDED_NONFINITE, MIXED_TENSES, Form, matches_specific

logger = logging.getLogger(__name__)

DEFAULT_MOOD = "indicative"
DEFAULT_TENSE = "pres"

RELAXATION_ORDER = ("level", "verb_type", "tense", "mood")


@dataclass
class FallbackPreferences:
    mood: Optional[str] = None
    tense: Optional[str] = None
    verb_type: str = "all"
    level: str = "ALL"
    region: Optional[str] = None

    @classmethod
    def from_settings(cls, prefs) -> "FallbackPreferences":
        if prefs is None:
            return cls()
        if isinstance(prefs, FallbackPreferences):
            return prefs
        get = prefs.get if isinstance(prefs, Mapping) else (lambda k, d=None: getattr(prefs, k, d))
        return cls(
            mood=get("mood") or get("specific_mood"),
            tense=get("tense") or get("specific_tense"),
            verb_type=get("verb_type") or "all",
            level=get("level") or "ALL",
            region=get("region"),
        )


@dataclass
class FallbackStats:
    fallbacks_used: int = 0
    database_searches: int = 0
    emergency_minimal_used: int = 0


def error_sentinel(mood: Optional[str], tense: Optional[str]) -> Form:
    return Form(
        lemma="ERROR",
        mood=mood or "ERROR",
        tense=tense or "ERROR",
        person="1s",
        value=f"No {tense or 'forms'} available",
        verb_type="error",
    )


class EmergencyFallback:
    def __init__(self, catalog=None, rng: Optional[random.Random] = None, stats: Optional[FallbackStats] = None):
        self.catalog = catalog
        self.rng = rng or random.Random()
        self.counters = stats if stats is not None else FallbackStats()

    def stats(self) -> dict:
        return asdict(self.counters)

    def resolve(self, all_forms: list[Form], preferences=None) -> Form:
        self.counters.fallbacks_used += 1
        prefs = FallbackPreferences.from_settings(preferences)

        form = self._relax_pool(all_forms or [], prefs)
        if form is not None:
            return form

        form = self._search_database(prefs)
        if form is not None:
            return form

        self.counters.emergency_minimal_used += 1
        logger.error(f"No forms available for {prefs.mood}/{prefs.tense}; returning error sentinel")
        return error_sentinel(prefs.mood, prefs.tense)

    def _matches(self, form: Form, prefs: FallbackPreferences, relaxed: set[str]) -> bool:
        if not form.value or (form.is_nonfinite and form.tense in EXCLUDED_NONFINITE):
            return False
        if not form.is_nonfinite:
            if not person_allowed(form, allowed_persons(prefs.region)):
                return False
            if not region_tag_compatible(form, prefs.region):
                return False
        if "level" not in relaxed and (form.mood, form.tense) not in allowed_combos(prefs.level):
            return False
        if "verb_type" not in relaxed and prefs.verb_type in ("regular", "irregular"):
            if form.verb_type != prefs.verb_type:
                return False
        mood = None if "mood" in relaxed else prefs.mood
        tense = None if "tense" in relaxed else prefs.tense
        return matches_specific(form, mood, tense)

    def _relax_pool(self, all_forms: list[Form], prefs: FallbackPreferences) -> Optional[Form]:
        relaxed: set[str] = set()
        for step in RELAXATION_ORDER:
            relaxed.add(step)
            pool = [f for f in all_forms if self._matches(f, prefs, relaxed)]
            if pool:
                logger.warning(f"Fallback tier 1: relaxed {sorted(relaxed)} -> {len(pool)} forms")
                return self.rng.choice(pool)
        return None

    def _search_database(self, prefs: FallbackPreferences) -> Optional[Form]:
        if self.catalog is None:
            return None
        mood = prefs.mood or DEFAULT_MOOD
        tense = prefs.tense or DEFAULT_TENSE
        if tense in MIXED_TENSES:
            mood, concrete = MIXED_TENSES[tense]
            attempts = [(mood, t) for t in sorted(concrete)]
        else:
            attempts = [(mood, tense)]
        if tense != DEFAULT_TENSE:
            attempts.append((mood, DEFAULT_TENSE))

        for search_mood, search_tense in attempts:
            self.counters.database_searches += 1
            forms = [
                f for f in self.catalog.find_forms(search_mood, search_tense)
                if f.value and (f.is_nonfinite or person_allowed(f, allowed_persons(prefs.region)))
            ]
            if forms:
                logger.warning(f"Fallback tier 2: database search found {len(forms)} {search_mood}/{search_tense} forms")
                return self.rng.choice(forms)
        return None
