# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

"""
Time-of-day slots for action items.

A slot is active on a day when effective_from <= day and effective_until is
open or >= day. Rescheduling never edits a slot in place: the open slot is
closed the day before the change and a new slot, pointing back at it, takes
over from the change date. Walking rescheduled_from_slot_id gives the full
history of a task's timing.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from goaltrack.models.user import User
from goaltrack.models.schedule_slot import TaskScheduleSlot, ScheduleSlotCreationType, RescheduleReason
from goaltrack.schemas.action_item_schemas import ScheduleSlotRequest, RescheduleSlotRequest
from goaltrack.services.query_helpers import get_owned_item, get_owned_slot
from goaltrack.utils.errors import BadRequestError, DuplicateError, NotFoundError, parse_enum

logger = logging.getLogger(__name__)


def pick_active_slot(slots: Iterable[TaskScheduleSlot], day: date) -> Optional[TaskScheduleSlot]:
    """Most recently created slot whose window contains `day`."""
    active = [s for s in slots if s.is_active_on(day)]
    if not active:
        return None
    return max(active, key=lambda s: (s.created_at or datetime.min, s.id or 0))


def _active_query(action_item_id: int, day: date, db: Session):
    return db.query(TaskScheduleSlot).filter(
        TaskScheduleSlot.action_item_id == action_item_id,
        TaskScheduleSlot.effective_from <= day,
        or_(TaskScheduleSlot.effective_until.is_(None), TaskScheduleSlot.effective_until >= day),
    )


def create_slot(user: User, action_item_id: int, req: ScheduleSlotRequest, db: Session) -> TaskScheduleSlot:
    item = get_owned_item(user, action_item_id, db)
    effective_from = req.effective_from or date.today()

    clash = _active_query(item.id, effective_from, db).filter(TaskScheduleSlot.slot_index == req.slot_index).first()
    if clash:
        raise DuplicateError(f"Slot {req.slot_index} is already active for this task on {effective_from.isoformat()}")

    slot = TaskScheduleSlot(
        action_item_id=item.id,
        slot_index=req.slot_index,
        specific_time=req.specific_time,
        created_via=parse_enum(ScheduleSlotCreationType, req.created_via, "created_via"),
        effective_from=effective_from,
    )
    db.add(slot)
    db.commit()
    db.refresh(slot)
    logger.info("Slot %s (index %s) created for item %s from %s", slot.id, slot.slot_index, item.id, effective_from)
    return slot


def list_slots(user: User, action_item_id: int, db: Session) -> List[TaskScheduleSlot]:
    item = get_owned_item(user, action_item_id, db)
    return (
        db.query(TaskScheduleSlot)
        .filter(TaskScheduleSlot.action_item_id == item.id)
        .order_by(TaskScheduleSlot.effective_from.asc(), TaskScheduleSlot.created_at.asc(), TaskScheduleSlot.id.asc())
        .all()
    )


def list_active_slots(user: User, action_item_id: int, day: date, db: Session) -> List[TaskScheduleSlot]:
    item = get_owned_item(user, action_item_id, db)
    return _active_query(item.id, day, db).order_by(TaskScheduleSlot.slot_index.asc()).all()


def resolve(user: User, action_item_id: int, day: date, db: Session) -> TaskScheduleSlot:
    item = get_owned_item(user, action_item_id, db)
    slot = pick_active_slot(_active_query(item.id, day, db).all(), day)
    if not slot:
        raise NotFoundError(f"No schedule slot active on {day.isoformat()}")
    return slot


def reschedule(user: User, slot_id: int, req: RescheduleSlotRequest, db: Session) -> TaskScheduleSlot:
    """
    Closes the slot the day before the change date and appends its
    replacement. Both writes land in one commit or not at all.
    """
    old = get_owned_slot(user, slot_id, db)
    change_date = req.effective_from or date.today()
    reason = parse_enum(RescheduleReason, req.reason, "reason")

    if not old.is_open:
        raise BadRequestError("Only the currently open slot can be rescheduled")
    if change_date < old.effective_from:
        raise BadRequestError("Reschedule date cannot be before the slot's effective_from")

    try:
        old.effective_until = change_date - timedelta(days=1)
        new = TaskScheduleSlot(
            action_item_id=old.action_item_id,
            slot_index=req.slot_index,
            specific_time=req.specific_time,
            created_via=ScheduleSlotCreationType.rescheduled,
            effective_from=change_date,
            rescheduled_from_slot_id=old.id,
            reschedule_reason=reason,
        )
        db.add(new)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(new)
    logger.info("Slot %s rescheduled to slot %s from %s (%s)", old.id, new.id, change_date, reason.value)
    return new


def delete_slot(user: User, slot_id: int, db: Session) -> TaskScheduleSlot:
    """Soft delete: the slot stops applying from today."""
    slot = get_owned_slot(user, slot_id, db)
    close_on = date.today() - timedelta(days=1)
    if slot.effective_until is None or slot.effective_until > close_on:
        slot.effective_until = close_on
    db.commit()
    db.refresh(slot)
    logger.info("Slot %s closed on %s", slot.id, slot.effective_until)
    return slot


def slot_history(user: User, slot_id: int, db: Session) -> List[TaskScheduleSlot]:
    """The slot and every slot it was rescheduled from, newest first."""
    slot = get_owned_slot(user, slot_id, db)
    chain = [slot]
    seen = {slot.id}
    while slot.rescheduled_from_slot_id is not None:
        slot = db.query(TaskScheduleSlot).filter(TaskScheduleSlot.id == slot.rescheduled_from_slot_id).first()
        if slot is None or slot.id in seen:
            break
        chain.append(slot)
        seen.add(slot.id)
    return chain


def serialize_slot(slot: TaskScheduleSlot) -> dict:
    return {
        "id": slot.id,
        "action_item_id": slot.action_item_id,
        "slot_index": slot.slot_index,
        "specific_time": slot.specific_time,
        "created_via": slot.created_via.value if slot.created_via else None,
        "effective_from": slot.effective_from.isoformat(),
        "effective_until": slot.effective_until.isoformat() if slot.effective_until else None,
        "rescheduled_from_slot_id": slot.rescheduled_from_slot_id,
        "reschedule_reason": slot.reschedule_reason.value if slot.reschedule_reason else None,
    }
