"""Verb dataset access for the drill engine.

Reads Verb/VerbForm rows once, converts them to immutable VerbInfo/Form
objects and keeps them in a LookupCache. The cache is owned here and passed
in by the caller, so the engine never touches module-level state.
"""

import json
import logging
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from conjuga.config import settings
from conjuga.models import Verb, VerbForm
from conjuga.services.grammar import Form, VerbInfo
from conjuga.services.lookup_cache import LookupCache

logger = logging.getLogger(__name__)

ALL_VERBS_KEY = ("verbs", "all")
ALL_FORMS_KEY = ("forms", "all")


def parse_json_column(data, default=None):
    """Safely parse a JSON column that may be dict, list, str, None, or corrupted."""
    if default is None:
        default = {}
    if data is None:
        return default
    if isinstance(data, (dict, list)):
        return data
    try:
        return json.loads(data)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Corrupted JSON column data, returning default")
        return default


def verb_info_from_row(verb: Verb) -> VerbInfo:
    irregularity = parse_json_column(verb.irregularity_json)
    families = parse_json_column(verb.families_json, default=[])
    return VerbInfo(
        lemma=verb.lemma,
        type=verb.type or "regular",
        irregularity=irregularity if isinstance(irregularity, dict) else {},
        frequency=verb.frequency,
        families=tuple(families) if isinstance(families, list) else (),
        id=verb.id,
    )


def form_from_row(row: VerbForm, lemma: str) -> Form:
    return Form(
        lemma=lemma,
        mood=row.mood,
        tense=row.tense,
        person=row.person,
        value=row.value,
        region_tag=row.region_tag,
        verb_type=row.type or "",
        id=row.id,
    )


_default_cache: Optional[LookupCache] = None


def default_cache() -> LookupCache:
    """Process-wide cache handed to catalogs built by the request dependency."""
    global _default_cache
    if _default_cache is None:
        _default_cache = LookupCache(settings.cache_max_size, settings.cache_ttl_seconds)
    return _default_cache


class VerbCatalog:
    def __init__(self, db: Session, cache: Optional[LookupCache] = None):
        self.db = db
        self.cache = cache if cache is not None else LookupCache(settings.cache_max_size, settings.cache_ttl_seconds)

    def _load_verbs(self) -> list[VerbInfo]:
        rows = self.db.query(Verb).order_by(Verb.lemma).all()
        logger.debug(f"Loaded {len(rows)} verbs from database")
        return [verb_info_from_row(v) for v in rows]

    def _load_forms(self) -> list[Form]:
        rows = (
            self.db.query(Verb)
            .options(selectinload(Verb.forms))
            .order_by(Verb.lemma)
            .all()
        )
        forms = [form_from_row(f, v.lemma) for v in rows for f in v.forms]
        logger.debug(f"Loaded {len(forms)} forms from database")
        return forms

    def get_all_verbs(self) -> list[VerbInfo]:
        return self.cache.get_or_load(ALL_VERBS_KEY, self._load_verbs)

    def verbs_by_lemma(self) -> dict[str, VerbInfo]:
        return {v.lemma: v for v in self.get_all_verbs()}

    def get_verb_by_lemma(self, lemma: str) -> Optional[VerbInfo]:
        key = ("verb", lemma)
        verb = self.cache.get(key)
        if verb is not None:
            return verb
        row = self.db.query(Verb).filter(Verb.lemma == lemma).first()
        if row is None:
            return None
        verb = verb_info_from_row(row)
        self.cache.set(key, verb)
        return verb

    def get_all_forms(self) -> list[Form]:
        return self.cache.get_or_load(ALL_FORMS_KEY, self._load_forms)

    def get_form(self, form_id: int) -> Optional[Form]:
        row = self.db.query(VerbForm).filter(VerbForm.id == form_id).first()
        if row is None:
            return None
        return form_from_row(row, row.verb.lemma)

    def find_forms(self, mood: str, tense: str) -> list[Form]:
        """Direct database scan, bypassing the cached form list."""
        rows = (
            self.db.query(VerbForm, Verb.lemma)
            .join(Verb, VerbForm.verb_id == Verb.id)
            .filter(VerbForm.mood == mood, VerbForm.tense == tense)
            .order_by(VerbForm.id)
            .all()
        )
        return [form_from_row(row, lemma) for row, lemma in rows]

    def invalidate(self) -> None:
        self.cache.clear()


def catalog_for(db: Session) -> VerbCatalog:
    """Catalog bound to a request session, sharing the process-wide cache."""
    return VerbCatalog(db, default_cache())
