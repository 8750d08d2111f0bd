# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from goaltrack.models.database import commit_or_conflict
from goaltrack.models.user import User
from goaltrack.models.goal import Goal, GoalStatus, GoalCategory
from goaltrack.models.progress import ProgressEntry, Milestone
from goaltrack.models.obstacle import ObstacleEntry
from goaltrack.models.action_item import ActionItem
from goaltrack.models.scheduled_task import ScheduledTask
from goaltrack.models.task_completion import TaskCompletion
from goaltrack.models.schedule_slot import TaskScheduleSlot
from goaltrack.models.streak import StreakInfo
from goaltrack.models.reflection import GoalReflection
from goaltrack.models.guardian import GoalGuardian, GuardianNudge
from goaltrack.models.notification import NotificationLog
from goaltrack.schemas.goal_schemas import GoalRequest, UpdateGoalRequest
from goaltrack.services import entitlement_service, streak_service
from goaltrack.services.query_helpers import get_owned_goal
from goaltrack.utils.errors import BadRequestError, parse_enum

logger = logging.getLogger(__name__)

DEFAULT_MILESTONE_PERCENTAGES = (25, 50, 75, 100)

# target status -> statuses it may be reached from
_ALLOWED_FROM = {
    GoalStatus.paused: (GoalStatus.active,),
    GoalStatus.active: (GoalStatus.paused,),
    GoalStatus.completed: (GoalStatus.active, GoalStatus.paused),
    GoalStatus.abandoned: (GoalStatus.active, GoalStatus.paused),
}


def _validate_dates(start_date: Optional[date], target_date: Optional[date]):
    if start_date and target_date and target_date < start_date:
        raise BadRequestError("target_date must not be before start_date")


def create_goal(user: User, req: GoalRequest, db: Session) -> Goal:
    logger.debug("Creating goal for user %s", user.id)
    _validate_dates(req.start_date, req.target_date)
    category = parse_enum(GoalCategory, req.category, "category")
    entitlement_service.enforce_goal_limit(user, db)

    goal = Goal(
        user_id=user.id,
        title=req.title.strip(),
        description=req.description,
        category=category,
        motivation=req.motivation,
        target_value=req.target_value,
        unit=req.unit,
        start_date=req.start_date or date.today(),
        target_date=req.target_date,
        status=GoalStatus.active,
        current_progress=0.0,
    )
    db.add(goal)
    db.flush()

    for percentage in DEFAULT_MILESTONE_PERCENTAGES:
        db.add(Milestone(goal_id=goal.id, percentage=percentage, description=f"{percentage}% reached"))

    db.commit()
    db.refresh(goal)
    logger.info("Goal %s created for user %s", goal.id, user.id)
    return goal


def list_goals(user: User, db: Session, status: Optional[str] = None, include_archived: bool = False):
    query = db.query(Goal).filter(Goal.user_id == user.id)
    if status:
        query = query.filter(Goal.status == parse_enum(GoalStatus, status, "status"))
    if not include_archived:
        query = query.filter(Goal.archived_at.is_(None))
    return query.order_by(Goal.created_at.desc(), Goal.id.desc()).all()


def get_goal(user: User, goal_id: int, db: Session) -> Goal:
    return get_owned_goal(user, goal_id, db)


def update_goal(user: User, goal_id: int, req: UpdateGoalRequest, db: Session) -> Goal:
    goal = get_owned_goal(user, goal_id, db)
    changes = req.model_dump(exclude_unset=True)

    start_date = changes.get("start_date", goal.start_date)
    target_date = changes.get("target_date", goal.target_date)
    _validate_dates(start_date, target_date)

    if "category" in changes and changes["category"] is not None:
        changes["category"] = parse_enum(GoalCategory, changes["category"], "category")

    for field, value in changes.items():
        if field == "title" and value is None:
            continue
        setattr(goal, field, value)

    db.commit()
    db.refresh(goal)
    logger.info("Goal %s updated (%s)", goal.id, ", ".join(sorted(changes)) or "no changes")
    return goal


def change_status(user: User, goal_id: int, new_status: GoalStatus, db: Session) -> Goal:
    goal = get_owned_goal(user, goal_id, db)
    if goal.is_archived:
        raise BadRequestError("Unarchive the goal before changing its status")
    if goal.status == new_status:
        raise BadRequestError(f"Goal is already {new_status.value}")

    if goal.status not in _ALLOWED_FROM[new_status]:
        raise BadRequestError(f"Cannot move goal from {goal.status.value} to {new_status.value}")

    goal.previous_status = goal.status
    goal.status = new_status
    goal.completed_at = datetime.utcnow() if new_status == GoalStatus.completed else None

    streak_service.recompute_streaks(user, db, goal=goal)
    commit_or_conflict(db)
    db.refresh(goal)
    logger.info("Goal %s moved %s -> %s", goal.id, goal.previous_status.value, goal.status.value)
    return goal


def archive_goal(user: User, goal_id: int, db: Session) -> Goal:
    goal = get_owned_goal(user, goal_id, db)
    if goal.is_archived:
        raise BadRequestError("Goal is already archived")
    goal.archived_at = date.today()
    db.commit()
    db.refresh(goal)
    logger.info("Goal %s archived", goal.id)
    return goal


def unarchive_goal(user: User, goal_id: int, db: Session) -> Goal:
    goal = get_owned_goal(user, goal_id, db)
    if not goal.is_archived:
        raise BadRequestError("Goal is not archived")
    if goal.status in (GoalStatus.active, GoalStatus.paused):
        entitlement_service.enforce_goal_limit(user, db)
    goal.archived_at = None
    db.commit()
    db.refresh(goal)
    logger.info("Goal %s unarchived", goal.id)
    return goal


def delete_goal(user: User, goal_id: int, db: Session):
    goal = get_owned_goal(user, goal_id, db)
    item_ids = [row.id for row in db.query(ActionItem.id).filter(ActionItem.goal_id == goal.id).all()]

    if item_ids:
        db.query(TaskCompletion).filter(TaskCompletion.action_item_id.in_(item_ids)).delete(synchronize_session=False)
        db.query(TaskScheduleSlot).filter(TaskScheduleSlot.action_item_id.in_(item_ids)).delete(synchronize_session=False)
    for model in (ScheduledTask, StreakInfo, ProgressEntry, Milestone, ObstacleEntry,
                  GoalReflection, GuardianNudge, GoalGuardian, ActionItem):
        db.query(model).filter(model.goal_id == goal.id).delete(synchronize_session=False)

    db.query(NotificationLog).filter(NotificationLog.goal_id == goal.id).update(
        {NotificationLog.goal_id: None}, synchronize_session=False
    )
    db.delete(goal)
    db.flush()
    streak_service.recompute_streaks(user, db)
    commit_or_conflict(db)
    logger.info("Goal %s deleted for user %s", goal_id, user.id)


def serialize_goal(goal: Goal) -> dict:
    progress_pct = None
    if goal.target_value:
        progress_pct = round(min(goal.current_progress / goal.target_value * 100, 100.0), 1)
    return {
        "id": goal.id,
        "title": goal.title,
        "description": goal.description,
        "category": goal.category.value,
        "motivation": goal.motivation,
        "target_value": goal.target_value,
        "unit": goal.unit,
        "current_progress": goal.current_progress,
        "progress_percentage": progress_pct,
        "start_date": goal.start_date.isoformat() if goal.start_date else None,
        "target_date": goal.target_date.isoformat() if goal.target_date else None,
        "status": goal.status.value,
        "previous_status": goal.previous_status.value if goal.previous_status else None,
        "archived": goal.is_archived,
        "archived_at": goal.archived_at.isoformat() if goal.archived_at else None,
        "completed_at": goal.completed_at.isoformat() if goal.completed_at else None,
        "created_at": goal.created_at.isoformat() if goal.created_at else None,
    }
