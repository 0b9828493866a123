from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from conjuga.database import get_db
from conjuga.schemas import LearnerSettingsIn, LearnerSettingsOut
from conjuga.services.learner_settings import get_learner_settings, update_learner_settings

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("", response_model=LearnerSettingsOut)
def read_settings(user_id: str = "local", db: Session = Depends(get_db)):
    row = get_learner_settings(db, user_id)
    db.commit()
    return row


@router.put("", response_model=LearnerSettingsOut)
def write_settings(req: LearnerSettingsIn, user_id: str = "local", db: Session = Depends(get_db)):
    """Partially update the learner's drill preferences."""
    try:
        return update_learner_settings(db, req.model_dump(exclude_unset=True), user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
