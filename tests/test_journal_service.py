# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from datetime import date, timedelta

import pytest
from freezegun import freeze_time

from goaltrack.schemas.engagement_schemas import JournalRequest, UpdateJournalRequest
from goaltrack.services import journal_service
from goaltrack.utils.errors import BadRequestError, DuplicateError, NotFoundError


def write(db, user, day, content="Felt good today"):
    return journal_service.create_entry(user, JournalRequest(content=content, journal_date=day), db)


@freeze_time("2024-01-10 21:00:00")
def test_seventh_consecutive_day_awards_a_shield(db, user):
    start = date(2024, 1, 4)
    awards = [write(db, user, start + timedelta(days=i))[1] for i in range(7)]

    assert awards == [False] * 6 + [True]
    db.refresh(user)
    assert user.streak_shields == 1
    assert journal_service.consecutive_days_ending(user, date(2024, 1, 10), db) == 7


@freeze_time("2024-01-10 21:00:00")
def test_award_respects_held_cap(db, make_user):
    user = make_user(streak_shields=2)
    start = date(2024, 1, 4)
    awards = [write(db, user, start + timedelta(days=i))[1] for i in range(7)]

    assert not any(awards)
    db.refresh(user)
    assert user.streak_shields == 2


@freeze_time("2024-01-10 21:00:00")
def test_broken_run_does_not_award(db, user):
    for day in (1, 2, 3, 5, 6, 7, 8, 9, 10):
        _, awarded = write(db, user, date(2024, 1, day))
        assert awarded is False


@freeze_time("2024-01-10 21:00:00")
def test_one_entry_per_day_and_no_future(db, user):
    journal, _ = write(db, user, None, content="Secret thoughts")
    assert journal.journal_date == date(2024, 1, 10)
    assert journal.content == "Secret thoughts"

    with pytest.raises(DuplicateError):
        write(db, user, date(2024, 1, 10))
    with pytest.raises(BadRequestError):
        write(db, user, date(2024, 1, 11))


@freeze_time("2024-01-10 21:00:00")
def test_crud_round(db, user, make_user):
    journal, _ = write(db, user, date(2024, 1, 9))

    assert journal_service.get_by_date(user, date(2024, 1, 9), db).id == journal.id
    updated = journal_service.update_entry(user, journal.id, UpdateJournalRequest(mood="great"), db)
    assert updated.mood.value == "great"
    assert len(journal_service.get_range(user, date(2024, 1, 1), date(2024, 1, 31), db)) == 1

    other = make_user(email="ravi@example.com", name="Ravi")
    with pytest.raises(NotFoundError):
        journal_service.get_entry(other, journal.id, db)

    journal_service.delete_entry(user, journal.id, db)
    assert journal_service.get_history(user, db) == []
