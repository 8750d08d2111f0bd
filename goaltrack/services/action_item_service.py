# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from datetime import date, datetime
from typing import List

from sqlalchemy.orm import Session

from goaltrack.models.database import commit_or_conflict
from goaltrack.models.user import User
from goaltrack.models.action_item import ActionItem, TaskType, TaskPriority, CompletionStatus
from goaltrack.models.scheduled_task import ScheduledTask
from goaltrack.models.task_completion import TaskCompletion
from goaltrack.models.schedule_slot import TaskScheduleSlot
from goaltrack.models.streak import StreakInfo
from goaltrack.schemas.action_item_schemas import ActionItemRequest, UpdateActionItemRequest, TaskCompletionRequest
from goaltrack.services import streak_service, task_completion_service
from goaltrack.services.query_helpers import get_owned_goal, get_owned_goal_item
from goaltrack.services.recurrence_calculator import dates_for_item
from goaltrack.utils.errors import BadRequestError, parse_enum

logger = logging.getLogger(__name__)

MAX_SCHEDULE_DAYS = 366


def _dump(value):
    return value.model_dump(mode="json") if value is not None else None


def _validate_shape(task_type: TaskType, recurrence, frequency_goal):
    if task_type == TaskType.recurring and (recurrence is None or not recurrence.get("enabled", True)):
        raise BadRequestError("Recurring tasks need an enabled recurrence")
    if task_type == TaskType.frequency_based and frequency_goal is None:
        raise BadRequestError("Frequency-based tasks need a frequency goal")


def create_item(user: User, goal_id: int, req: ActionItemRequest, db: Session) -> ActionItem:
    goal = get_owned_goal(user, goal_id, db)
    task_type = parse_enum(TaskType, req.task_type, "task_type")
    priority = parse_enum(TaskPriority, req.priority, "priority")
    recurrence = _dump(req.recurrence)
    frequency_goal = _dump(req.frequency_goal)
    _validate_shape(task_type, recurrence, frequency_goal)

    order_index = req.order_index
    if order_index is None:
        order_index = db.query(ActionItem).filter(ActionItem.goal_id == goal.id).count()

    item = ActionItem(
        goal_id=goal.id,
        title=req.title.strip(),
        description=req.description,
        task_type=task_type,
        priority=priority,
        target_date=req.target_date,
        order_index=order_index,
        notes=req.notes,
        recurrence=recurrence,
        frequency_goal=frequency_goal,
        reminder_override=_dump(req.reminder_override),
        created_at=datetime.utcnow(),
        completed=False,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info("Action item %s (%s) created on goal %s", item.id, task_type.value, goal.id)
    return item


def list_items(user: User, goal_id: int, db: Session) -> List[ActionItem]:
    goal = get_owned_goal(user, goal_id, db)
    return (
        db.query(ActionItem)
        .filter(ActionItem.goal_id == goal.id)
        .order_by(ActionItem.order_index.asc(), ActionItem.id.asc())
        .all()
    )


def get_item(user: User, goal_id: int, item_id: int, db: Session) -> ActionItem:
    return get_owned_goal_item(user, goal_id, item_id, db)


def update_item(user: User, goal_id: int, item_id: int, req: UpdateActionItemRequest, db: Session) -> ActionItem:
    item = get_owned_goal_item(user, goal_id, item_id, db)
    changes = req.model_dump(exclude_unset=True)

    if "priority" in changes and changes["priority"] is not None:
        changes["priority"] = parse_enum(TaskPriority, changes["priority"], "priority")
    for nested in ("recurrence", "frequency_goal", "reminder_override"):
        if nested in changes:
            changes[nested] = _dump(getattr(req, nested))

    _validate_shape(
        item.task_type,
        changes.get("recurrence", item.recurrence),
        changes.get("frequency_goal", item.frequency_goal),
    )

    for field, value in changes.items():
        if field in ("title", "priority") and value is None:
            continue
        setattr(item, field, value)

    db.commit()
    db.refresh(item)
    logger.info("Action item %s updated", item.id)
    return item


def delete_item(user: User, goal_id: int, item_id: int, db: Session):
    item = get_owned_goal_item(user, goal_id, item_id, db)
    goal = get_owned_goal(user, goal_id, db)

    for model in (ScheduledTask, TaskCompletion, TaskScheduleSlot, StreakInfo):
        db.query(model).filter(model.action_item_id == item.id).delete(synchronize_session=False)
    db.delete(item)
    db.flush()

    streak_service.recompute_streaks(user, db, goal=goal)
    commit_or_conflict(db)
    logger.info("Action item %s deleted from goal %s", item_id, goal_id)


def complete_item(user: User, goal_id: int, item_id: int, db: Session) -> ActionItem:
    """Marks a one-time item done and records today's completion."""
    item = get_owned_goal_item(user, goal_id, item_id, db)
    if item.task_type != TaskType.one_time:
        raise BadRequestError("Only one-time tasks can be completed outright; record a completion instead")
    if item.completed:
        raise BadRequestError("Action item is already completed")

    item.completed = True
    item.completed_at = datetime.utcnow()
    task_completion_service.record_completion(
        user, item.id, TaskCompletionRequest(status=CompletionStatus.completed.value), db
    )
    db.refresh(item)
    return item


def generate_schedule(user: User, goal_id: int, item_id: int, start: date, end: date, db: Session) -> List[ScheduledTask]:
    """
    Creates the ScheduledTasks the item is due for in [start, end] that do not
    exist yet. Running it twice over the same range creates nothing new.
    """
    item = get_owned_goal_item(user, goal_id, item_id, db)
    if end < start:
        raise BadRequestError("end_date must not be before start_date")
    if (end - start).days + 1 > MAX_SCHEDULE_DAYS:
        raise BadRequestError(f"Schedule range is limited to {MAX_SCHEDULE_DAYS} days")

    wanted = dates_for_item(item, start, end)
    existing = {
        row.scheduled_date for row in db.query(ScheduledTask.scheduled_date).filter(
            ScheduledTask.action_item_id == item.id,
            ScheduledTask.scheduled_date >= start,
            ScheduledTask.scheduled_date <= end,
        ).all()
    }

    created = []
    for day in wanted:
        if day in existing:
            continue
        task = ScheduledTask(action_item_id=item.id, goal_id=item.goal_id, scheduled_date=day, completed=False)
        db.add(task)
        created.append(task)
    db.flush()

    if created and min(t.scheduled_date for t in created) <= date.today():
        streak_service.recompute_streaks(user, db, action_item=item)
    commit_or_conflict(db)
    for task in created:
        db.refresh(task)

    logger.info("Generated %s scheduled tasks for item %s (%s..%s)", len(created), item.id, start, end)
    return created


def serialize_item(item: ActionItem) -> dict:
    return {
        "id": item.id,
        "goal_id": item.goal_id,
        "title": item.title,
        "description": item.description,
        "task_type": item.task_type.value,
        "priority": item.priority.value,
        "target_date": item.target_date.isoformat() if item.target_date else None,
        "order_index": item.order_index,
        "notes": item.notes,
        "completed": bool(item.completed),
        "completed_at": item.completed_at.isoformat() if item.completed_at else None,
        "recurrence": item.recurrence,
        "frequency_goal": item.frequency_goal,
        "reminder_override": item.reminder_override,
        "created_at": item.created_at.isoformat() if item.created_at else None,
    }
