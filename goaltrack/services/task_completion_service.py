# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from goaltrack.models.database import commit_or_conflict
from goaltrack.models.user import User
from goaltrack.models.action_item import CompletionStatus
from goaltrack.models.scheduled_task import ScheduledTask
from goaltrack.models.schedule_slot import TaskScheduleSlot
from goaltrack.models.task_completion import TaskCompletion
from goaltrack.schemas.action_item_schemas import TaskCompletionRequest
from goaltrack.services import streak_service
from goaltrack.services.query_helpers import get_owned_item
from goaltrack.utils.errors import BadRequestError, DuplicateError, NotFoundError, parse_enum

logger = logging.getLogger(__name__)

RECORDABLE_STATUSES = (CompletionStatus.completed, CompletionStatus.partial)


def find_completion(action_item_id: int, day: date, db: Session) -> Optional[TaskCompletion]:
    return db.query(TaskCompletion).filter(
        TaskCompletion.action_item_id == action_item_id,
        TaskCompletion.completed_date == day,
    ).first()


def record_completion(user: User, action_item_id: int, req: TaskCompletionRequest, db: Session) -> TaskCompletion:
    """
    Records that the item was done on a day (today unless backfilling).
    Backfilled days are folded into every streak scope by the replay.
    """
    item = get_owned_item(user, action_item_id, db)
    day = req.completed_date or date.today()
    if day > date.today():
        raise BadRequestError("Completions cannot be recorded for a future date")

    status = parse_enum(CompletionStatus, req.status, "status")
    if status not in RECORDABLE_STATUSES:
        raise BadRequestError("Completion status must be completed or partial")

    if find_completion(item.id, day, db):
        raise DuplicateError(f"Action item {item.id} already has a completion on {day.isoformat()}")

    if req.schedule_slot_id is not None:
        slot = db.query(TaskScheduleSlot).filter(
            TaskScheduleSlot.id == req.schedule_slot_id,
            TaskScheduleSlot.action_item_id == item.id,
        ).first()
        if not slot:
            raise NotFoundError("Schedule slot not found")

    completion = TaskCompletion(
        action_item_id=item.id,
        goal_id=item.goal_id,
        user_id=user.id,
        schedule_slot_id=req.schedule_slot_id,
        completed_date=day,
        status=status,
        note=req.note,
        completed_at=datetime.utcnow(),
    )
    db.add(completion)

    if status == CompletionStatus.completed:
        scheduled = db.query(ScheduledTask).filter(
            ScheduledTask.action_item_id == item.id,
            ScheduledTask.scheduled_date == day,
        ).first()
        if scheduled and not scheduled.completed:
            scheduled.completed = True
            scheduled.completed_at = datetime.utcnow()

    db.flush()
    streak_service.recompute_streaks(user, db, action_item=item)
    commit_or_conflict(db)
    db.refresh(completion)

    backfill = " (backfill)" if day < date.today() else ""
    logger.info("✅ Completion %s recorded for item %s on %s%s", completion.id, item.id, day, backfill)
    return completion


def get_history(user: User, action_item_id: int, db: Session):
    item = get_owned_item(user, action_item_id, db)
    return (
        db.query(TaskCompletion)
        .filter(TaskCompletion.action_item_id == item.id)
        .order_by(TaskCompletion.completed_date.desc(), TaskCompletion.id.desc())
        .all()
    )


def get_by_range(user: User, action_item_id: int, start: date, end: date, db: Session):
    if end < start:
        raise BadRequestError("end_date must not be before start_date")
    item = get_owned_item(user, action_item_id, db)
    return (
        db.query(TaskCompletion)
        .filter(
            TaskCompletion.action_item_id == item.id,
            TaskCompletion.completed_date >= start,
            TaskCompletion.completed_date <= end,
        )
        .order_by(TaskCompletion.completed_date.asc())
        .all()
    )


def count_completions(user: User, action_item_id: int, db: Session, start: Optional[date] = None, end: Optional[date] = None) -> int:
    item = get_owned_item(user, action_item_id, db)
    query = db.query(TaskCompletion).filter(TaskCompletion.action_item_id == item.id)
    if start:
        query = query.filter(TaskCompletion.completed_date >= start)
    if end:
        query = query.filter(TaskCompletion.completed_date <= end)
    return query.count()


def delete_completion(user: User, action_item_id: int, completion_id: int, db: Session):
    item = get_owned_item(user, action_item_id, db)
    completion = db.query(TaskCompletion).filter(
        TaskCompletion.id == completion_id,
        TaskCompletion.action_item_id == item.id,
    ).first()
    if not completion:
        raise NotFoundError("Completion not found")

    scheduled = db.query(ScheduledTask).filter(
        ScheduledTask.action_item_id == item.id,
        ScheduledTask.scheduled_date == completion.completed_date,
    ).first()
    if scheduled:
        scheduled.completed = False
        scheduled.completed_at = None

    db.delete(completion)
    db.flush()
    streak_service.recompute_streaks(user, db, action_item=item)
    commit_or_conflict(db)
    logger.info("Completion %s deleted from item %s", completion_id, item.id)


def serialize_completion(completion: TaskCompletion) -> dict:
    return {
        "id": completion.id,
        "action_item_id": completion.action_item_id,
        "goal_id": completion.goal_id,
        "completed_date": completion.completed_date.isoformat(),
        "status": completion.status.value,
        "note": completion.note,
        "schedule_slot_id": completion.schedule_slot_id,
        "completed_at": completion.completed_at.isoformat() if completion.completed_at else None,
    }
