# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

from datetime import date, datetime

import pytest
from freezegun import freeze_time

from goaltrack.models.schedule_slot import TaskScheduleSlot, ScheduleSlotCreationType, RescheduleReason
from goaltrack.schemas.action_item_schemas import ScheduleSlotRequest, RescheduleSlotRequest
from goaltrack.services import schedule_slot_service
from goaltrack.utils.errors import BadRequestError, DuplicateError, NotFoundError


def test_pick_active_slot_prefers_most_recently_created():
    older = TaskScheduleSlot(id=1, slot_index=7, effective_from=date(2024, 1, 1), created_at=datetime(2024, 1, 1, 8))
    newer = TaskScheduleSlot(id=2, slot_index=9, effective_from=date(2024, 1, 5), created_at=datetime(2024, 1, 5, 8))
    closed = TaskScheduleSlot(
        id=3, slot_index=6, effective_from=date(2024, 1, 1), effective_until=date(2024, 1, 3),
        created_at=datetime(2024, 1, 9),
    )
    slots = [older, newer, closed]

    assert schedule_slot_service.pick_active_slot(slots, date(2024, 1, 2)) is closed
    assert schedule_slot_service.pick_active_slot(slots, date(2024, 1, 4)) is older
    assert schedule_slot_service.pick_active_slot(slots, date(2024, 1, 6)) is newer
    assert schedule_slot_service.pick_active_slot(slots, date(2023, 12, 31)) is None


@freeze_time("2024-03-01 09:00:00")
def test_reschedule_hands_over_on_change_date(db, user, make_goal, make_daily_item):
    item = make_daily_item(user, make_goal(user))
    slot_a = schedule_slot_service.create_slot(user, item.id, ScheduleSlotRequest(slot_index=7, specific_time="07:30"), db)

    slot_b = schedule_slot_service.reschedule(
        user, slot_a.id,
        RescheduleSlotRequest(slot_index=18, reason="energy", effective_from=date(2024, 3, 10)),
        db,
    )
    db.refresh(slot_a)

    assert slot_a.effective_until == date(2024, 3, 9)
    assert slot_b.effective_from == date(2024, 3, 10)
    assert slot_b.effective_until is None
    assert slot_b.rescheduled_from_slot_id == slot_a.id
    assert slot_b.created_via == ScheduleSlotCreationType.rescheduled
    assert slot_b.reschedule_reason == RescheduleReason.energy

    assert schedule_slot_service.resolve(user, item.id, date(2024, 3, 9), db).id == slot_a.id
    assert schedule_slot_service.resolve(user, item.id, date(2024, 3, 10), db).id == slot_b.id
    assert schedule_slot_service.resolve(user, item.id, date(2024, 6, 1), db).id == slot_b.id

    history = schedule_slot_service.slot_history(user, slot_b.id, db)
    assert [s.id for s in history] == [slot_b.id, slot_a.id]


@freeze_time("2024-03-01 09:00:00")
def test_only_open_slot_can_be_rescheduled(db, user, make_goal, make_daily_item):
    item = make_daily_item(user, make_goal(user))
    slot_a = schedule_slot_service.create_slot(user, item.id, ScheduleSlotRequest(slot_index=7), db)
    slot_b = schedule_slot_service.reschedule(user, slot_a.id, RescheduleSlotRequest(slot_index=8), db)

    with pytest.raises(BadRequestError):
        schedule_slot_service.reschedule(user, slot_a.id, RescheduleSlotRequest(slot_index=9), db)

    with pytest.raises(BadRequestError):
        schedule_slot_service.reschedule(
            user, slot_b.id, RescheduleSlotRequest(slot_index=9, effective_from=date(2024, 2, 1)), db
        )


@freeze_time("2024-03-01 09:00:00")
def test_same_index_cannot_be_active_twice(db, user, make_goal, make_daily_item):
    item = make_daily_item(user, make_goal(user))
    schedule_slot_service.create_slot(user, item.id, ScheduleSlotRequest(slot_index=7), db)

    with pytest.raises(DuplicateError):
        schedule_slot_service.create_slot(user, item.id, ScheduleSlotRequest(slot_index=7), db)

    # A different hour is fine
    schedule_slot_service.create_slot(user, item.id, ScheduleSlotRequest(slot_index=19), db)
    assert len(schedule_slot_service.list_active_slots(user, item.id, date(2024, 3, 1), db)) == 2


@freeze_time("2024-03-01 09:00:00")
def test_delete_is_a_soft_close(db, user, make_goal, make_daily_item):
    item = make_daily_item(user, make_goal(user))
    slot = schedule_slot_service.create_slot(
        user, item.id, ScheduleSlotRequest(slot_index=7, effective_from=date(2024, 2, 1)), db
    )

    closed = schedule_slot_service.delete_slot(user, slot.id, db)

    assert closed.effective_until == date(2024, 2, 29)
    assert schedule_slot_service.resolve(user, item.id, date(2024, 2, 15), db).id == slot.id
    with pytest.raises(NotFoundError):
        schedule_slot_service.resolve(user, item.id, date(2024, 3, 1), db)
    assert len(schedule_slot_service.list_slots(user, item.id, db)) == 1


@freeze_time("2024-03-01 09:00:00")
def test_slots_of_another_user_are_not_found(db, user, make_user, make_goal, make_daily_item):
    item = make_daily_item(user, make_goal(user))
    stranger = make_user(email="ravi@example.com", name="Ravi")

    with pytest.raises(NotFoundError):
        schedule_slot_service.create_slot(stranger, item.id, ScheduleSlotRequest(slot_index=7), db)
