# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from goaltrack.models.user import User
from goaltrack.models.goal import Goal, GoalStatus
from goaltrack.models.reflection import GoalReflection, ReflectionFrequency
from goaltrack.schemas.engagement_schemas import ReflectionRequest, UpdateReflectionRequest
from goaltrack.services.query_helpers import get_owned_goal
from goaltrack.utils.errors import DuplicateError, NotFoundError

logger = logging.getLogger(__name__)

_TEXT_FIELDS = ("went_well", "challenges", "adjustments", "mood_note")


@dataclass
class ReflectionPeriod:
    frequency: ReflectionFrequency
    start: date
    end: date


def frequency_for_duration(duration_days: int) -> ReflectionFrequency:
    """Shorter goals reflect more often."""
    if duration_days <= 14:
        return ReflectionFrequency.daily
    if duration_days <= 60:
        return ReflectionFrequency.every_3_days
    if duration_days <= 180:
        return ReflectionFrequency.weekly
    return ReflectionFrequency.bi_weekly


def frequency_for_goal(goal: Goal) -> ReflectionFrequency:
    if goal.start_date is None or goal.target_date is None:
        return ReflectionFrequency.weekly
    return frequency_for_duration((goal.target_date - goal.start_date).days)


def current_period(goal: Goal, today: Optional[date] = None) -> ReflectionPeriod:
    """
    [start + k*p, start + (k+1)*p - 1] for k = elapsed // p, with the end
    clamped to the goal's target date. Before the start date k is 0; past the
    target date k stays on the last period that begins on or before it.
    """
    today = today or date.today()
    frequency = frequency_for_goal(goal)
    days = frequency.days

    start_date = goal.start_date or (goal.created_at.date() if goal.created_at else today)
    elapsed = max(0, (today - start_date).days)
    k = elapsed // days
    if goal.target_date:
        k = min(k, max(0, (goal.target_date - start_date).days) // days)

    period_start = start_date + timedelta(days=k * days)
    period_end = period_start + timedelta(days=days - 1)
    if goal.target_date and period_end > goal.target_date:
        period_end = max(goal.target_date, period_start)
    return ReflectionPeriod(frequency, period_start, period_end)


def _reflection_for_period(goal: Goal, period: ReflectionPeriod, db: Session) -> Optional[GoalReflection]:
    return db.query(GoalReflection).filter(
        GoalReflection.goal_id == goal.id,
        GoalReflection.period_start == period.start,
    ).first()


def _is_due(period: ReflectionPeriod, completed: bool, today: date) -> bool:
    return not completed and today >= period.end


def get_status(user: User, goal_id: int, db: Session) -> dict:
    goal = get_owned_goal(user, goal_id, db)
    today = date.today()
    period = current_period(goal, today)
    completed = _reflection_for_period(goal, period, db) is not None

    last = (
        db.query(GoalReflection)
        .filter(GoalReflection.goal_id == goal.id)
        .order_by(GoalReflection.period_end.desc())
        .first()
    )
    total, average = db.query(func.count(GoalReflection.id), func.avg(GoalReflection.rating)).filter(
        GoalReflection.goal_id == goal.id
    ).one()

    return {
        "goal_id": goal.id,
        "goal_title": goal.title,
        "frequency": period.frequency.value,
        "frequency_days": period.frequency.days,
        "current_period_start": period.start.isoformat(),
        "current_period_end": period.end.isoformat(),
        "reflection_due": _is_due(period, completed, today),
        "reflection_completed": completed,
        "last_reflection_date": last.period_end.isoformat() if last else None,
        "total_reflections": total or 0,
        "average_rating": round(float(average), 2) if average is not None else None,
    }


def get_pending(user: User, db: Session) -> List[dict]:
    today = date.today()
    goals = db.query(Goal).filter(
        Goal.user_id == user.id,
        Goal.status == GoalStatus.active,
        Goal.archived_at.is_(None),
    ).all()

    pending = []
    for goal in goals:
        period = current_period(goal, today)
        completed = _reflection_for_period(goal, period, db) is not None
        if _is_due(period, completed, today):
            pending.append({
                "goal_id": goal.id,
                "goal_title": goal.title,
                "goal_category": goal.category.value if goal.category else None,
                "frequency": period.frequency.value,
                "period_start": period.start.isoformat(),
                "period_end": period.end.isoformat(),
                "days_overdue": max(0, (today - period.end).days),
            })
    return pending


def create_reflection(user: User, goal_id: int, req: ReflectionRequest, db: Session) -> GoalReflection:
    goal = get_owned_goal(user, goal_id, db)
    period = current_period(goal)
    if _reflection_for_period(goal, period, db):
        raise DuplicateError("A reflection already exists for the current period")

    reflection = GoalReflection(
        goal_id=goal.id,
        user_id=user.id,
        frequency=period.frequency,
        period_start=period.start,
        period_end=period.end,
        **req.model_dump(),
    )
    db.add(reflection)
    db.commit()
    db.refresh(reflection)
    logger.info("Reflection %s created for goal %s (%s..%s)", reflection.id, goal.id, period.start, period.end)
    return reflection


def get_history(user: User, goal_id: int, db: Session) -> List[GoalReflection]:
    goal = get_owned_goal(user, goal_id, db)
    return (
        db.query(GoalReflection)
        .filter(GoalReflection.goal_id == goal.id)
        .order_by(GoalReflection.period_end.desc())
        .all()
    )


def get_reflection(user: User, goal_id: int, reflection_id: int, db: Session) -> GoalReflection:
    goal = get_owned_goal(user, goal_id, db)
    reflection = db.query(GoalReflection).filter(
        GoalReflection.id == reflection_id,
        GoalReflection.goal_id == goal.id,
    ).first()
    if not reflection:
        raise NotFoundError("Reflection not found")
    return reflection


def update_reflection(user: User, goal_id: int, reflection_id: int, req: UpdateReflectionRequest, db: Session) -> GoalReflection:
    reflection = get_reflection(user, goal_id, reflection_id, db)
    for field, value in req.model_dump(exclude_unset=True).items():
        if field == "rating" and value is None:
            continue
        setattr(reflection, field, value)
    db.commit()
    db.refresh(reflection)
    logger.info("Reflection %s updated", reflection.id)
    return reflection


def serialize_reflection(reflection: GoalReflection) -> dict:
    data = {
        "id": reflection.id,
        "goal_id": reflection.goal_id,
        "frequency": reflection.frequency.value,
        "period_start": reflection.period_start.isoformat(),
        "period_end": reflection.period_end.isoformat(),
        "rating": reflection.rating,
        "will_continue": reflection.will_continue,
        "motivation_level": reflection.motivation_level,
        "created_at": reflection.created_at.isoformat() if reflection.created_at else None,
    }
    for field in _TEXT_FIELDS:
        data[field] = getattr(reflection, field)
    return data
