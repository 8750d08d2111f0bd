# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from goaltrack.models.user import User
from goaltrack.models.goal import Goal, GoalStatus
from goaltrack.models.streak import StreakInfo
from goaltrack.services import guardian_service, reflection_service, streak_service

logger = logging.getLogger(__name__)


def _unarchived_goals(user: User, db: Session):
    return db.query(Goal).filter(Goal.user_id == user.id, Goal.archived_at.is_(None)).all()


def get_dashboard(user: User, db: Session, today: Optional[date] = None) -> dict:
    """Home screen counters plus the goal streaks that lapse tonight without activity."""
    today = today or date.today()
    goals = _unarchived_goals(user, db)
    titles = {g.id: g.title for g in goals}

    at_risk = []
    for row in streak_service.find_streaks_at_risk(user, db, today):
        if row["scope"] != "goal" or row["goal_id"] not in titles:
            continue
        last = date.fromisoformat(row["last_activity_date"]) if row["last_activity_date"] else None
        at_risk.append({
            "goal_id": row["goal_id"],
            "goal_title": titles[row["goal_id"]],
            "current_streak": row["current_maintained_streak"],
            "days_without_progress": (today - last).days if last else None,
        })

    logger.debug("Dashboard built for user %s: %d goals, %d at risk", user.id, len(goals), len(at_risk))
    return {
        "active_goals_count": sum(1 for g in goals if g.status == GoalStatus.active),
        "completed_goals_count": sum(1 for g in goals if g.status == GoalStatus.completed),
        "pending_reflections_count": len(reflection_service.get_pending(user, db)),
        "unread_nudges_count": guardian_service.count_unread(user, db),
        "streak_shields_available": streak_service.get_user_streak(user, db)["shields_available"],
        "streaks_at_risk": at_risk,
    }


def get_goal_stats(user: User, db: Session) -> dict:
    goals = _unarchived_goals(user, db)
    by_status = {status: 0 for status in GoalStatus}
    by_category = {}
    for goal in goals:
        by_status[goal.status] += 1
        by_category[goal.category.value] = by_category.get(goal.category.value, 0) + 1

    active_ids = {g.id for g in goals if g.status == GoalStatus.active}
    rows = []
    if goals:
        rows = db.query(StreakInfo).filter(
            StreakInfo.user_id == user.id,
            StreakInfo.goal_id.in_([g.id for g in goals]),
            StreakInfo.action_item_id.is_(None),
        ).all()

    total = len(goals)
    completed = by_status[GoalStatus.completed]
    return {
        "total_goals": total,
        "active_goals": by_status[GoalStatus.active],
        "completed_goals": completed,
        "paused_goals": by_status[GoalStatus.paused],
        "abandoned_goals": by_status[GoalStatus.abandoned],
        "completion_rate": round(completed * 100 / total, 2) if total else 0.0,
        "best_streak": max((r.best_maintained_streak for r in rows), default=0),
        "current_best_streak": max(
            (r.current_maintained_streak for r in rows if r.goal_id in active_ids), default=0
        ),
        "goals_by_category": by_category,
    }
