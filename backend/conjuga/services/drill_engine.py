"""Next-item pipeline: catalog -> eligibility filter -> weighted selector -> fallback."""

import logging
import random
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from conjuga.schemas import SelectionSettings
from conjuga.services.emergency_fallback import EmergencyFallback
from conjuga.services.form_filter import create_fallback_pool, run_filter_pipeline
from conjuga.services.form_selector import select_form
from conjuga.services.grammar import Form
from conjuga.services.interaction_logger import log_interaction
from conjuga.services.srs_service import get_due_cells
from conjuga.services.verb_catalog import VerbCatalog

logger = logging.getLogger(__name__)


@dataclass
class DrillResult:
    form: Form
    conmutacion_idx: int
    fallback: bool
    eligible_count: int


def fallback_preferences(settings: SelectionSettings) -> dict:
    specific = settings.practice_mode == "specific"
    return {
        "mood": settings.specific_mood if specific else None,
        "tense": settings.specific_tense if specific else None,
        "verb_type": settings.verb_type,
        "level": settings.level,
        "region": settings.region,
    }


def next_drill_item(
    db: Session,
    settings: SelectionSettings,
    catalog: VerbCatalog,
    previous_form_id: Optional[int] = None,
    rng: Optional[random.Random] = None,
    fallback: Optional[EmergencyFallback] = None,
    user_id: str = "local",
) -> DrillResult:
    rng = rng or random.Random()
    fallback = fallback or EmergencyFallback(catalog, rng)

    due = get_due_cells(db, user_id)
    if due:
        settings.due_cells = set(settings.due_cells) | due

    all_forms = catalog.get_all_forms()
    verbs = catalog.verbs_by_lemma()
    previous = catalog.get_form(previous_form_id) if previous_form_id else None

    eligible, report = run_filter_pipeline(all_forms, settings, verbs)
    fallbacks_before = fallback.counters.fallbacks_used
    chosen = select_form(
        eligible, settings, verbs,
        rng=rng, previous=previous, fallback=fallback, all_forms=all_forms,
    )

    used_fallback = False
    if chosen is None:
        relaxed = create_fallback_pool(all_forms, settings)
        logger.warning(
            f"Empty eligible pool for {settings.level}/{settings.practice_mode} "
            f"(removed: {report.removed}); relaxed pool has {len(relaxed)} forms"
        )
        chosen = select_form(relaxed, settings, verbs, rng=rng, previous=previous, fallback=fallback, all_forms=all_forms)
        if chosen is None:
            chosen = fallback.resolve(all_forms, fallback_preferences(settings))
        used_fallback = True

    # strict specific validation may also hand off to the fallback
    used_fallback = used_fallback or fallback.counters.fallbacks_used > fallbacks_before
    if used_fallback:
        log_interaction(event="drill_fallback_used", context=f"{chosen.mood}|{chosen.tense}", level=settings.level)

    log_interaction(
        event="drill_item_served",
        form_id=chosen.id,
        context=chosen.cell_key,
        eligible=len(eligible),
    )
    return DrillResult(
        form=chosen,
        conmutacion_idx=settings.conmutacion_idx,
        fallback=used_fallback,
        eligible_count=len(eligible),
    )
