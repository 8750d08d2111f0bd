# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from datetime import date, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from goaltrack.models.user import User
from goaltrack.models.action_item import ActionItem, CompletionStatus
from goaltrack.models.scheduled_task import ScheduledTask
from goaltrack.models.task_completion import TaskCompletion
from goaltrack.models.reflection import GoalReflection
from goaltrack.services import streak_service
from goaltrack.services.query_helpers import get_owned_goal

logger = logging.getLogger(__name__)

INSIGHT_WINDOW_DAYS = 30


def get_goal_insights(user: User, goal_id: int, db: Session) -> dict:
    """Premium summary: how reliably the goal's schedule is being met."""
    goal = get_owned_goal(user, goal_id, db)
    today = date.today()
    window_start = today - timedelta(days=INSIGHT_WINDOW_DAYS - 1)

    due = db.query(ScheduledTask).filter(
        ScheduledTask.goal_id == goal.id,
        ScheduledTask.scheduled_date >= window_start,
        ScheduledTask.scheduled_date <= today,
    ).all()
    done = sum(1 for t in due if t.completed)

    completions = db.query(TaskCompletion).filter(
        TaskCompletion.goal_id == goal.id,
        TaskCompletion.completed_date >= window_start,
        TaskCompletion.completed_date <= today,
    ).all()
    partial = sum(1 for c in completions if c.status == CompletionStatus.partial)

    weekday_counts = [0] * 7
    for completion in completions:
        weekday_counts[(completion.completed_date.weekday() + 1) % 7] += 1

    rating_avg, rating_count = db.query(func.avg(GoalReflection.rating), func.count(GoalReflection.id)).filter(
        GoalReflection.goal_id == goal.id
    ).one()

    items = db.query(ActionItem).filter(ActionItem.goal_id == goal.id).count()

    best_day = None
    if any(weekday_counts):
        best_day = weekday_counts.index(max(weekday_counts))

    logger.debug("Insights computed for goal %s", goal.id)
    return {
        "goal_id": goal.id,
        "window_days": INSIGHT_WINDOW_DAYS,
        "action_items": items,
        "scheduled_tasks_due": len(due),
        "scheduled_tasks_completed": done,
        "completion_rate": round(done / len(due), 3) if due else None,
        "completions_in_window": len(completions),
        "partial_completions": partial,
        "most_active_weekday": best_day,  # 0=Sunday
        "streak": streak_service.get_goal_streak(user, goal.id, db),
        "reflections": {
            "count": rating_count or 0,
            "average_rating": round(float(rating_avg), 2) if rating_avg is not None else None,
        },
    }
