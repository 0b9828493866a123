from datetime import datetime, timedelta, timezone

from fsrs import Rating

from conjuga.models import CellSchedule
from conjuga.services.srs_service import (
    create_new_card,
    get_due_cells,
    get_schedule,
    rating_for_attempt,
    update_schedule,
)

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
CELL = "indicative|pres|1s|hablar"


class TestRating:
    def test_wrong_is_again(self):
        assert rating_for_attempt(False, 0, 1000) == Rating.Again

    def test_hints_make_it_hard(self):
        assert rating_for_attempt(True, 2, 1000) == Rating.Hard

    def test_fast_is_easy(self):
        assert rating_for_attempt(True, 0, 1500) == Rating.Easy

    def test_default_good(self):
        assert rating_for_attempt(True, 0, 5000) == Rating.Good
        assert rating_for_attempt(True) == Rating.Good


class TestSchedule:
    def test_new_card_dict(self):
        card = create_new_card()
        assert "due" in card

    def test_creates_schedule(self, db_session):
        result = update_schedule(db_session, "local", CELL, True, now=NOW)
        assert result["cell_key"] == CELL
        assert result["next_due"] > NOW
        row = get_schedule(db_session, "local", CELL)
        assert row.reps == 1
        assert row.lapses == 0
        assert row.fsrs_card_json

    def test_wrong_answer_counts_lapse(self, db_session):
        update_schedule(db_session, "local", CELL, True, now=NOW)
        update_schedule(db_session, "local", CELL, False, now=NOW + timedelta(days=1))
        row = get_schedule(db_session, "local", CELL)
        assert row.reps == 2
        assert row.lapses == 1

    def test_schedules_are_per_user(self, db_session):
        update_schedule(db_session, "ana", CELL, True, now=NOW)
        update_schedule(db_session, "ben", CELL, True, now=NOW)
        assert db_session.query(CellSchedule).count() == 2


class TestDueCells:
    def test_due_after_interval(self, db_session):
        update_schedule(db_session, "local", CELL, True, now=NOW)
        assert CELL not in get_due_cells(db_session, "local", now=NOW)
        assert CELL in get_due_cells(db_session, "local", now=NOW + timedelta(days=30))

    def test_other_users_ignored(self, db_session):
        update_schedule(db_session, "ana", CELL, True, now=NOW)
        assert get_due_cells(db_session, "local", now=NOW + timedelta(days=30)) == set()
