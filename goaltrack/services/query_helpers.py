# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

"""
Ownership-checked lookups shared by the services. A row that belongs to
someone else is reported as missing.
"""

from sqlalchemy.orm import Session

from goaltrack.models.user import User
from goaltrack.models.goal import Goal
from goaltrack.models.action_item import ActionItem
from goaltrack.models.schedule_slot import TaskScheduleSlot
from goaltrack.models.scheduled_task import ScheduledTask
from goaltrack.utils.errors import NotFoundError


def get_owned_goal(user: User, goal_id: int, db: Session) -> Goal:
    goal = db.query(Goal).filter(Goal.id == goal_id, Goal.user_id == user.id).first()
    if not goal:
        raise NotFoundError("Goal not found")
    return goal


def get_owned_item(user: User, action_item_id: int, db: Session) -> ActionItem:
    item = (
        db.query(ActionItem)
        .join(Goal, Goal.id == ActionItem.goal_id)
        .filter(ActionItem.id == action_item_id, Goal.user_id == user.id)
        .first()
    )
    if not item:
        raise NotFoundError("Action item not found")
    return item


def get_owned_goal_item(user: User, goal_id: int, action_item_id: int, db: Session) -> ActionItem:
    get_owned_goal(user, goal_id, db)
    item = db.query(ActionItem).filter(ActionItem.id == action_item_id, ActionItem.goal_id == goal_id).first()
    if not item:
        raise NotFoundError("Action item not found")
    return item


def get_owned_slot(user: User, slot_id: int, db: Session) -> TaskScheduleSlot:
    slot = (
        db.query(TaskScheduleSlot)
        .join(ActionItem, ActionItem.id == TaskScheduleSlot.action_item_id)
        .join(Goal, Goal.id == ActionItem.goal_id)
        .filter(TaskScheduleSlot.id == slot_id, Goal.user_id == user.id)
        .first()
    )
    if not slot:
        raise NotFoundError("Schedule slot not found")
    return slot


def get_owned_scheduled_task(user: User, scheduled_task_id: int, db: Session) -> ScheduledTask:
    task = (
        db.query(ScheduledTask)
        .join(Goal, Goal.id == ScheduledTask.goal_id)
        .filter(ScheduledTask.id == scheduled_task_id, Goal.user_id == user.id)
        .first()
    )
    if not task:
        raise NotFoundError("Scheduled task not found")
    return task
