# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from goaltrack.models.database import commit_or_conflict
from goaltrack.models.user import User
from goaltrack.models.action_item import ActionItem, CompletionStatus
from goaltrack.models.scheduled_task import ScheduledTask
from goaltrack.schemas.action_item_schemas import TaskCompletionRequest
from goaltrack.services import streak_service, task_completion_service
from goaltrack.services.query_helpers import get_owned_goal, get_owned_goal_item, get_owned_scheduled_task
from goaltrack.utils.errors import BadRequestError, DuplicateError

logger = logging.getLogger(__name__)


def _exists(action_item_id: int, day: date, db: Session) -> bool:
    return db.query(ScheduledTask.id).filter(
        ScheduledTask.action_item_id == action_item_id,
        ScheduledTask.scheduled_date == day,
    ).first() is not None


def _after_schedule_change(user: User, item: ActionItem, days, db: Session):
    # Past days just became (or stopped being) due, so the replay changes
    if any(d <= date.today() for d in days):
        streak_service.recompute_streaks(user, db, action_item=item)
    commit_or_conflict(db)


def create_scheduled_task(user: User, goal_id: int, item_id: int, day: date, db: Session) -> ScheduledTask:
    item = get_owned_goal_item(user, goal_id, item_id, db)
    if _exists(item.id, day, db):
        raise DuplicateError(f"Action item {item.id} is already scheduled on {day.isoformat()}")

    task = ScheduledTask(action_item_id=item.id, goal_id=item.goal_id, scheduled_date=day, completed=False)
    db.add(task)
    db.flush()
    _after_schedule_change(user, item, [day], db)
    db.refresh(task)
    logger.info("Scheduled item %s on %s", item.id, day)
    return task


def bulk_create(user: User, goal_id: int, item_id: int, days: List[date], db: Session) -> List[ScheduledTask]:
    item = get_owned_goal_item(user, goal_id, item_id, db)
    created = []
    for day in sorted(set(days)):
        if _exists(item.id, day, db):
            continue
        task = ScheduledTask(action_item_id=item.id, goal_id=item.goal_id, scheduled_date=day, completed=False)
        db.add(task)
        created.append(task)
    db.flush()
    _after_schedule_change(user, item, [t.scheduled_date for t in created], db)
    for task in created:
        db.refresh(task)
    logger.info("Bulk scheduled %s/%s dates for item %s", len(created), len(set(days)), item.id)
    return created


def list_for_goal(user: User, goal_id: int, db: Session, start: Optional[date] = None, end: Optional[date] = None):
    goal = get_owned_goal(user, goal_id, db)
    query = db.query(ScheduledTask).filter(ScheduledTask.goal_id == goal.id)
    if start:
        query = query.filter(ScheduledTask.scheduled_date >= start)
    if end:
        query = query.filter(ScheduledTask.scheduled_date <= end)
    return query.order_by(ScheduledTask.scheduled_date.asc(), ScheduledTask.id.asc()).all()


def list_for_item(user: User, goal_id: int, item_id: int, db: Session):
    item = get_owned_goal_item(user, goal_id, item_id, db)
    return (
        db.query(ScheduledTask)
        .filter(ScheduledTask.action_item_id == item.id)
        .order_by(ScheduledTask.scheduled_date.asc())
        .all()
    )


def list_pending(user: User, goal_id: int, db: Session):
    goal = get_owned_goal(user, goal_id, db)
    return (
        db.query(ScheduledTask)
        .filter(
            ScheduledTask.goal_id == goal.id,
            ScheduledTask.completed.is_(False),
            ScheduledTask.scheduled_date <= date.today(),
        )
        .order_by(ScheduledTask.scheduled_date.asc())
        .all()
    )


def mark_completed(user: User, scheduled_task_id: int, db: Session) -> ScheduledTask:
    task = get_owned_scheduled_task(user, scheduled_task_id, db)
    if task.completed:
        raise BadRequestError("Scheduled task is already completed")
    if task.scheduled_date > date.today():
        raise BadRequestError("Future scheduled tasks cannot be completed yet")

    completion = task_completion_service.find_completion(task.action_item_id, task.scheduled_date, db)
    if completion is None:
        task_completion_service.record_completion(
            user, task.action_item_id, TaskCompletionRequest(completed_date=task.scheduled_date), db
        )
    else:
        # The day was logged as partial; finishing the task upgrades it
        completion.status = CompletionStatus.completed
        completion.completed_at = datetime.utcnow()
        task.completed = True
        task.completed_at = datetime.utcnow()
        db.flush()
        item = db.query(ActionItem).filter(ActionItem.id == task.action_item_id).first()
        streak_service.recompute_streaks(user, db, action_item=item)
        commit_or_conflict(db)
        logger.info("Scheduled task %s completed; completion %s upgraded from partial", task.id, completion.id)

    db.refresh(task)
    return task


def mark_incomplete(user: User, scheduled_task_id: int, db: Session) -> ScheduledTask:
    task = get_owned_scheduled_task(user, scheduled_task_id, db)
    completion = task_completion_service.find_completion(task.action_item_id, task.scheduled_date, db)
    if completion is not None:
        db.delete(completion)

    task.completed = False
    task.completed_at = None
    db.flush()

    item = db.query(ActionItem).filter(ActionItem.id == task.action_item_id).first()
    streak_service.recompute_streaks(user, db, action_item=item)
    commit_or_conflict(db)
    db.refresh(task)
    logger.info("Scheduled task %s reopened", task.id)
    return task


def delete_scheduled_task(user: User, scheduled_task_id: int, db: Session):
    task = get_owned_scheduled_task(user, scheduled_task_id, db)
    item = db.query(ActionItem).filter(ActionItem.id == task.action_item_id).first()
    day = task.scheduled_date
    db.delete(task)
    db.flush()
    _after_schedule_change(user, item, [day], db)
    logger.info("Scheduled task %s deleted", scheduled_task_id)


def serialize_scheduled_task(task: ScheduledTask) -> dict:
    return {
        "id": task.id,
        "action_item_id": task.action_item_id,
        "goal_id": task.goal_id,
        "scheduled_date": task.scheduled_date.isoformat(),
        "completed": bool(task.completed),
        "completed_at": task.completed_at.isoformat() if task.completed_at else None,
    }
