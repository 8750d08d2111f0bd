# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from goaltrack.models.database import commit_or_conflict
from goaltrack.models.user import User
from goaltrack.models.goal import Goal
from goaltrack.models.progress import ProgressEntry, Milestone
from goaltrack.schemas.goal_schemas import ProgressRequest, MilestoneRequest
from goaltrack.services import entitlement_service, streak_service
from goaltrack.services.query_helpers import get_owned_goal
from goaltrack.utils.errors import BadRequestError, DuplicateError, NotFoundError
from goaltrack.utils.tier_logic import get_progress_history_days

logger = logging.getLogger(__name__)


def _progress_percentage(goal: Goal) -> Optional[float]:
    if not goal.target_value:
        return None
    return goal.current_progress / goal.target_value * 100


def _sync_goal_progress(goal: Goal, db: Session):
    """Recalculate current_progress from entries and settle milestones."""
    total = db.query(func.coalesce(func.sum(ProgressEntry.progress_value), 0.0)).filter(
        ProgressEntry.goal_id == goal.id
    ).scalar()
    goal.current_progress = float(total or 0.0)

    pct = _progress_percentage(goal)
    for milestone in db.query(Milestone).filter(Milestone.goal_id == goal.id).all():
        reached = pct is not None and pct >= milestone.percentage
        if reached and not milestone.achieved:
            milestone.achieved = True
            milestone.achieved_at = datetime.utcnow()
            logger.info("🎯 Milestone %s%% reached on goal %s", milestone.percentage, goal.id)
        elif not reached and milestone.achieved:
            milestone.achieved = False
            milestone.achieved_at = None


def add_progress(user: User, goal_id: int, req: ProgressRequest, db: Session) -> ProgressEntry:
    goal = get_owned_goal(user, goal_id, db)
    entry_date = req.entry_date or date.today()
    if entry_date > date.today():
        raise BadRequestError("Progress cannot be logged for a future date")

    entry = ProgressEntry(goal_id=goal.id, progress_value=req.progress_value, note=req.note, entry_date=entry_date)
    db.add(entry)
    db.flush()

    _sync_goal_progress(goal, db)
    streak_service.recompute_streaks(user, db, goal=goal)
    commit_or_conflict(db)
    db.refresh(entry)
    logger.info("Progress %.2f logged on goal %s for %s", req.progress_value, goal.id, entry_date)
    return entry


def list_progress(
    user: User,
    goal_id: int,
    db: Session,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    goal = get_owned_goal(user, goal_id, db)
    query = db.query(ProgressEntry).filter(ProgressEntry.goal_id == goal.id)

    # Free tier only sees a rolling window of history
    history_days = get_progress_history_days(entitlement_service.get_tier(user, db))
    if history_days is not None:
        earliest = date.today() - timedelta(days=history_days)
        start_date = max(start_date, earliest) if start_date else earliest

    if start_date:
        query = query.filter(ProgressEntry.entry_date >= start_date)
    if end_date:
        query = query.filter(ProgressEntry.entry_date <= end_date)
    return query.order_by(ProgressEntry.entry_date.desc(), ProgressEntry.id.desc()).all()


def delete_progress(user: User, goal_id: int, entry_id: int, db: Session):
    goal = get_owned_goal(user, goal_id, db)
    entry = db.query(ProgressEntry).filter(ProgressEntry.id == entry_id, ProgressEntry.goal_id == goal.id).first()
    if not entry:
        raise NotFoundError("Progress entry not found")

    db.delete(entry)
    db.flush()
    _sync_goal_progress(goal, db)
    streak_service.recompute_streaks(user, db, goal=goal)
    commit_or_conflict(db)
    logger.info("Progress entry %s removed from goal %s", entry_id, goal.id)


def add_milestone(user: User, goal_id: int, req: MilestoneRequest, db: Session) -> Milestone:
    goal = get_owned_goal(user, goal_id, db)
    exists = db.query(Milestone).filter(Milestone.goal_id == goal.id, Milestone.percentage == req.percentage).first()
    if exists:
        raise DuplicateError(f"Goal already has a {req.percentage}% milestone")

    milestone = Milestone(goal_id=goal.id, percentage=req.percentage, description=req.description)
    pct = _progress_percentage(goal)
    if pct is not None and pct >= req.percentage:
        milestone.achieved = True
        milestone.achieved_at = datetime.utcnow()

    db.add(milestone)
    db.commit()
    db.refresh(milestone)
    return milestone


def list_milestones(user: User, goal_id: int, db: Session):
    goal = get_owned_goal(user, goal_id, db)
    return db.query(Milestone).filter(Milestone.goal_id == goal.id).order_by(Milestone.percentage.asc()).all()


def serialize_progress(entry: ProgressEntry) -> dict:
    return {
        "id": entry.id,
        "goal_id": entry.goal_id,
        "progress_value": entry.progress_value,
        "note": entry.note,
        "entry_date": entry.entry_date.isoformat(),
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }


def serialize_milestone(milestone: Milestone) -> dict:
    return {
        "id": milestone.id,
        "goal_id": milestone.goal_id,
        "percentage": milestone.percentage,
        "description": milestone.description,
        "achieved": bool(milestone.achieved),
        "achieved_at": milestone.achieved_at.isoformat() if milestone.achieved_at else None,
    }
