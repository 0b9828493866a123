from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from conjuga.database import get_db
from conjuga.models import Verb, VerbForm
from conjuga.schemas import FormOut, VerbOut
from conjuga.services.verb_catalog import catalog_for, form_from_row, parse_json_column

router = APIRouter(prefix="/api/verbs", tags=["verbs"])


def _verb_out(verb: Verb, form_count: int) -> VerbOut:
    return VerbOut(
        id=verb.id,
        lemma=verb.lemma,
        type=verb.type or "regular",
        frequency=verb.frequency,
        families=parse_json_column(verb.families_json, default=[]),
        gloss_en=verb.gloss_en,
        form_count=form_count,
    )


@router.get("", response_model=list[VerbOut])
def list_verbs(
    verb_type: Optional[str] = Query(None, alias="type"),
    limit: int = Query(200, le=1000),
    offset: int = 0,
    db: Session = Depends(get_db),
):
    counts = dict(
        db.query(VerbForm.verb_id, func.count(VerbForm.id))
        .group_by(VerbForm.verb_id)
        .all()
    )
    query = db.query(Verb)
    if verb_type:
        query = query.filter(Verb.type == verb_type)
    verbs = query.order_by(Verb.lemma).offset(offset).limit(limit).all()
    return [_verb_out(v, counts.get(v.id, 0)) for v in verbs]


@router.get("/{lemma}")
def get_verb(lemma: str, db: Session = Depends(get_db)):
    """Verb detail with its full paradigm."""
    verb = db.query(Verb).filter(Verb.lemma == lemma).first()
    if not verb:
        raise HTTPException(status_code=404, detail="Verb not found")
    info = catalog_for(db).get_verb_by_lemma(lemma)
    out = _verb_out(verb, len(verb.forms)).model_dump()
    out["irregularity"] = info.irregularity if info else {}
    out["forms"] = [FormOut.model_validate(form_from_row(f, verb.lemma)).model_dump() for f in verb.forms]
    return out
