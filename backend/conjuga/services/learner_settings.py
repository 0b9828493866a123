import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from conjuga.config import settings as app_settings
from conjuga.models import LearnerSettings
from conjuga.schemas import SelectionSettings
from conjuga.services.verb_families import FAMILY_NAMES, SIMPLIFIED_GROUPS

logger = logging.getLogger(__name__)

NULLABLE_FIELDS = {"selected_family"}


def get_learner_settings(db: Session, user_id: str = "local") -> LearnerSettings:
    """Get or create the stored preferences row for a learner."""
    row = db.query(LearnerSettings).filter(LearnerSettings.user_id == user_id).first()
    if not row:
        row = LearnerSettings(
            user_id=user_id,
            level=app_settings.default_level,
            region=app_settings.default_region,
            practice_mode="mixed",
            verb_type="all",
            clitics_percent=app_settings.clitics_percent,
            enable_futuro_subj_prod=app_settings.enable_futuro_subj_prod,
            conmutacion_idx=0,
        )
        db.add(row)
        db.flush()
    return row


def update_learner_settings(db: Session, changes: dict, user_id: str = "local") -> LearnerSettings:
    """Apply a partial update.

    Raises ValueError for an unknown family id or a null in a required field.
    """
    cleared = sorted(k for k, v in changes.items() if v is None and k not in NULLABLE_FIELDS)
    if cleared:
        raise ValueError(f"Settings cannot be null: {', '.join(cleared)}")
    family = changes.get("selected_family")
    if family and family not in FAMILY_NAMES and family not in SIMPLIFIED_GROUPS:
        raise ValueError(f"Unknown verb family: {family}")

    row = get_learner_settings(db, user_id)
    for field, value in changes.items():
        setattr(row, field, value)
    if "level" in changes or "region" in changes:
        row.conmutacion_idx = 0
    row.updated_at = datetime.now(timezone.utc)
    db.commit()
    logger.info(f"Updated settings for {user_id}: {sorted(changes)}")
    return row


def selection_settings_for(row: LearnerSettings) -> SelectionSettings:
    """Drill settings built from a learner's stored preferences."""
    return SelectionSettings(
        level=row.level or app_settings.default_level,
        region=row.region or app_settings.default_region,
        practice_mode=row.practice_mode if row.practice_mode in ("mixed", "theme") else "mixed",
        verb_type=row.verb_type or "all",
        selected_family=row.selected_family,
        clitics_percent=row.clitics_percent or 0,
        enable_futuro_subj_prod=bool(row.enable_futuro_subj_prod),
        conmutacion_idx=row.conmutacion_idx or 0,
    )
