import logging
from datetime import datetime, timezone
from typing import Optional

from fsrs import Scheduler, Card, Rating, State
from sqlalchemy.orm import Session

from conjuga.models import CellSchedule
from conjuga.services.verb_catalog import parse_json_column

logger = logging.getLogger(__name__)

scheduler = Scheduler()

FAST_ANSWER_MS = 2500

STATE_MAP = {
    State.Learning: "learning",
    State.Review: "review",
    State.Relearning: "relearning",
}


def create_new_card() -> dict:
    card = Card()
    return card.to_dict()


def rating_for_attempt(correct: bool, hints_used: int = 0, latency_ms: Optional[int] = None) -> Rating:
    if not correct:
        return Rating.Again
    if hints_used:
        return Rating.Hard
    if latency_ms is not None and latency_ms < FAST_ANSWER_MS:
        return Rating.Easy
    return Rating.Good


def _as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def get_schedule(db: Session, user_id: str, cell_key: str) -> Optional[CellSchedule]:
    return (
        db.query(CellSchedule)
        .filter(CellSchedule.user_id == user_id, CellSchedule.cell_key == cell_key)
        .first()
    )


def update_schedule(
    db: Session,
    user_id: str,
    cell_key: str,
    correct: bool,
    hints_used: int = 0,
    latency_ms: Optional[int] = None,
    now: Optional[datetime] = None,
    commit: bool = True,
) -> dict:
    """Run one FSRS review for a cell and store the new card."""
    schedule = get_schedule(db, user_id, cell_key)
    if not schedule:
        schedule = CellSchedule(user_id=user_id, cell_key=cell_key, reps=0, lapses=0)
        db.add(schedule)

    card_data = parse_json_column(schedule.fsrs_card_json)
    card = Card() if not card_data else Card.from_dict(card_data)
    rating = rating_for_attempt(correct, hints_used, latency_ms)

    now = now or datetime.now(timezone.utc)
    new_card, _ = scheduler.review_card(card, rating, now)

    schedule.fsrs_card_json = new_card.to_dict()
    schedule.due = new_card.due
    schedule.last_reviewed = now
    schedule.reps = (schedule.reps or 0) + 1
    if rating == Rating.Again:
        schedule.lapses = (schedule.lapses or 0) + 1

    if commit:
        db.commit()
    else:
        db.flush()

    state = STATE_MAP.get(new_card.state, "learning")
    logger.debug(f"Rescheduled {cell_key} ({rating.name}) -> {state}, due {new_card.due.isoformat()}")
    return {"cell_key": cell_key, "state": state, "next_due": new_card.due, "rating": int(rating)}


def get_due_cells(db: Session, user_id: str = "local", now: Optional[datetime] = None, limit: int = 200) -> set[str]:
    """Cell keys whose FSRS due date has passed."""
    now = now or datetime.now(timezone.utc)
    rows = (
        db.query(CellSchedule.cell_key, CellSchedule.due)
        .filter(CellSchedule.user_id == user_id, CellSchedule.due.isnot(None))
        .order_by(CellSchedule.due)
        .limit(limit)
        .all()
    )
    return {key for key, due in rows if _as_utc(due) <= now}
