# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


import logging
from typing import Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from goaltrack.models.database import get_db
from goaltrack.models.user import User
from goaltrack.models.goal import GoalStatus
from goaltrack.models.subscription import SubscriptionTier
from goaltrack.schemas.goal_schemas import GoalRequest, UpdateGoalRequest
from goaltrack.services import goal_service, insight_service
from goaltrack.utils.auth_utils import get_current_user
from goaltrack.utils.tier_check import require_subscription
from goaltrack.utils.rate_limit_utils import limiter, get_tier_limit

router = APIRouter(prefix="/goals", tags=["Goals"])
logger = logging.getLogger(__name__)


@router.post("")
@limiter.limit(get_tier_limit)
def create_goal(
    request: Request,
    payload: GoalRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    goal = goal_service.create_goal(user, payload, db)
    return goal_service.serialize_goal(goal)


@router.get("")
def list_goals(
    status: Optional[str] = None,
    include_archived: bool = False,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    goals = goal_service.list_goals(user, db, status=status, include_archived=include_archived)
    return [goal_service.serialize_goal(g) for g in goals]


@router.get("/{goal_id}")
def get_goal(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return goal_service.serialize_goal(goal_service.get_goal(user, goal_id, db))


@router.patch("/{goal_id}")
def update_goal(
    goal_id: int,
    payload: UpdateGoalRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return goal_service.serialize_goal(goal_service.update_goal(user, goal_id, payload, db))


# ---------------------- STATUS ----------------------
@router.post("/{goal_id}/pause")
def pause_goal(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return goal_service.serialize_goal(goal_service.change_status(user, goal_id, GoalStatus.paused, db))


@router.post("/{goal_id}/resume")
def resume_goal(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return goal_service.serialize_goal(goal_service.change_status(user, goal_id, GoalStatus.active, db))


@router.post("/{goal_id}/complete")
def complete_goal(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return goal_service.serialize_goal(goal_service.change_status(user, goal_id, GoalStatus.completed, db))


@router.post("/{goal_id}/abandon")
def abandon_goal(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return goal_service.serialize_goal(goal_service.change_status(user, goal_id, GoalStatus.abandoned, db))


@router.post("/{goal_id}/archive")
def archive_goal(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return goal_service.serialize_goal(goal_service.archive_goal(user, goal_id, db))


@router.post("/{goal_id}/unarchive")
def unarchive_goal(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return goal_service.serialize_goal(goal_service.unarchive_goal(user, goal_id, db))


@router.delete("/{goal_id}")
def delete_goal(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    goal_service.delete_goal(user, goal_id, db)
    return {"status": "deleted", "goal_id": goal_id}


# 🎯 Premium only
@router.get("/{goal_id}/insights")
def goal_insights(
    goal_id: int,
    user: User = Depends(require_subscription(SubscriptionTier.premium, ["aiInsights"])),
    db: Session = Depends(get_db),
):
    return insight_service.get_goal_insights(user, goal_id, db)
