# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.


from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from goaltrack.models.database import get_db
from goaltrack.models.user import User
from goaltrack.schemas.engagement_schemas import StreakShieldRequest
from goaltrack.services import streak_service
from goaltrack.utils.auth_utils import get_current_user

router = APIRouter(prefix="/streaks", tags=["Streaks"])


@router.get("/summary")
def get_summary(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return streak_service.get_summary(user, db)


@router.get("/user")
def get_user_streak(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return streak_service.get_user_streak(user, db)


@router.get("/goals/{goal_id}")
def get_goal_streak(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return streak_service.get_goal_streak(user, goal_id, db)


@router.get("/goals/{goal_id}/all")
def get_goal_streaks(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return streak_service.get_goal_streaks(user, goal_id, db)


@router.get("/tasks/{action_item_id}")
def get_task_streak(action_item_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return streak_service.get_task_streak(user, action_item_id, db)


@router.get("/at-risk")
def streaks_at_risk(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return streak_service.find_streaks_at_risk(user, db)


# 🛡️ Cover a missed day
@router.post("/shield")
def use_streak_shield(
    payload: StreakShieldRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    info = streak_service.use_streak_shield(user, db, payload.shield_date)
    data = streak_service.serialize_streak(info)
    data["shield_date"] = payload.shield_date.isoformat()
    data["shields_held"] = user.streak_shields
    return data
