from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from conjuga.database import get_db
from conjuga.models import VerbForm
from conjuga.schemas import CellMasteryOut, ConfidenceOut
from conjuga.services.grammar import make_cell_key
from conjuga.services.mastery import classify_mastery_level, get_confidence_level, item_mastery
from conjuga.services.progress_tracker import cell_mastery, mastery_summary
from conjuga.services.verb_catalog import catalog_for, verb_info_from_row

router = APIRouter(prefix="/api/progress", tags=["progress"])


@router.get("/items/{form_id}")
def get_item_progress(form_id: int, user_id: str = "local", db: Session = Depends(get_db)):
    form = db.query(VerbForm).filter(VerbForm.id == form_id).first()
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    mastery = item_mastery(db, form_id, verb_info_from_row(form.verb), user_id=user_id)
    classification = classify_mastery_level(mastery["score"], mastery["weighted_attempts"])
    return {
        "form_id": form_id,
        "cell_key": make_cell_key(form.mood, form.tense, form.person, form.verb.lemma),
        **mastery,
        "classification": classification["level"],
        "recommendation": classification["recommendation"],
    }


@router.get("/cell", response_model=CellMasteryOut)
def get_cell_progress(
    mood: str,
    tense: str,
    person: Optional[str] = None,
    user_id: str = "local",
    db: Session = Depends(get_db),
):
    """Mastery for one mood|tense|person cell, aggregated over verbs."""
    verbs = catalog_for(db).verbs_by_lemma()
    return cell_mastery(db, mood, tense, person, verbs, user_id=user_id)


@router.get("/summary")
def get_summary(user_id: str = "local", db: Session = Depends(get_db)):
    verbs = catalog_for(db).verbs_by_lemma()
    return mastery_summary(db, verbs, user_id=user_id)


@router.get("/confidence", response_model=ConfidenceOut)
def get_confidence(weighted_n: float = Query(..., ge=0)):
    return get_confidence_level(weighted_n)
