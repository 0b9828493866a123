import random

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from conjuga.database import get_db
from conjuga.schemas import AttemptIn, AttemptOut, DrillItemOut, DrillRequest, FormOut
from conjuga.services.drill_engine import next_drill_item
from conjuga.services.emergency_fallback import EmergencyFallback, FallbackStats
from conjuga.services.learner_settings import get_learner_settings, selection_settings_for
from conjuga.services.progress_tracker import record_attempt
from conjuga.services.verb_catalog import catalog_for

router = APIRouter(prefix="/api/drill", tags=["drill"])

fallback_stats = FallbackStats()


@router.post("/next", response_model=DrillItemOut)
def next_item(req: DrillRequest, db: Session = Depends(get_db)):
    """Pick the next practice item.

    Without explicit settings the learner's stored preferences are used,
    and the advanced conmutación pointer is saved back.
    """
    stored = None
    selection = req.settings
    if selection is None:
        stored = get_learner_settings(db, req.user_id)
        selection = selection_settings_for(stored)

    catalog = catalog_for(db)
    rng = random.Random(req.seed) if req.seed is not None else random.Random()
    fallback = EmergencyFallback(catalog, rng, stats=fallback_stats)

    result = next_drill_item(
        db, selection, catalog,
        previous_form_id=req.previous_form_id,
        rng=rng,
        fallback=fallback,
        user_id=req.user_id,
    )

    if stored is not None:
        stored.conmutacion_idx = result.conmutacion_idx
        db.commit()

    return DrillItemOut(
        form=FormOut.model_validate(result.form),
        conmutacion_idx=result.conmutacion_idx,
        fallback=result.fallback,
        eligible_count=result.eligible_count,
    )


@router.post("/answer", response_model=AttemptOut)
def submit_answer(req: AttemptIn, db: Session = Depends(get_db)):
    """Record the learner's answer and return the refreshed mastery."""
    try:
        result = record_attempt(
            db,
            form_id=req.form_id,
            correct=req.correct,
            latency_ms=req.latency_ms,
            hints_used=req.hints_used,
            error_tags=req.error_tags,
            user_answer=req.user_answer,
            user_id=req.user_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return result


@router.get("/fallback-stats")
def get_fallback_stats():
    return {
        "fallbacks_used": fallback_stats.fallbacks_used,
        "database_searches": fallback_stats.database_searches,
        "emergency_minimal_used": fallback_stats.emergency_minimal_used,
    }
